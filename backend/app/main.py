import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.transactions import router as transactions_router
from app.core.config import get_settings
from app.core.dependencies import create_schema
from app.services.receipt_ingest.errors import IngestionError
from app.services.receipt_ingest.report import build_error_response

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SmortMoney API",
    version="0.1.0",
    docs_url="/docs" if settings.docs_enabled else None,
    openapi_url="/openapi.json" if settings.openapi_enabled else None,
)


@app.on_event("startup")
async def _startup_schema():
    if settings.database_auto_create:
        create_schema()


if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

app.include_router(transactions_router, prefix="/api/v1", tags=["transactions"])


@app.exception_handler(IngestionError)
async def _ingestion_error_handler(request: Request, exc: IngestionError):
    logger.warning("Receipt ingestion failed (%s): %s", exc.code, exc.message)
    body = build_error_response(exc)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json", exclude_none=True))


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Hide internal details for 5xx in production unless explicitly enabled.
    if exc.status_code >= 500 and not settings.expose_error_details:
        return JSONResponse(status_code=exc.status_code, content={"detail": "Internal server error"})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception")
    if settings.expose_error_details:
        return JSONResponse(status_code=500, content={"detail": str(exc)})
    return JSONResponse(status_code=500, content={"detail": "Server error processing request"})


@app.get("/health")
async def health_check():
    return {"status": "ok"}
