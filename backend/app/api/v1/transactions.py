"""Transaction endpoints: receipt upload and listing."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.core.dependencies import get_db
from app.models.ledger import Transaction
from app.schemas.transactions import (
    IngestionErrorResponse,
    IngestionResponse,
    TransactionListResponse,
)
from app.services.receipt_ingest.report import build_ingestion_response, transaction_out
from app.services.receipt_ingest.service import ingest_receipt

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/transactions/upload",
    response_model=IngestionResponse,
    response_model_exclude_none=True,
    status_code=201,
    summary="Extract and save transactions from a receipt or statement image",
    responses={
        400: {"model": IngestionErrorResponse},
        413: {"model": IngestionErrorResponse},
        422: {"model": IngestionErrorResponse},
        502: {"model": IngestionErrorResponse},
    },
)
async def upload_receipt(
    screenshot: UploadFile = File(...),
    override_provider: Optional[str] = Form(None),
    override_model: Optional[str] = Form(None),
    db: Session = Depends(get_db),
):
    content = await screenshot.read()
    logger.info(
        "Receipt upload received: filename=%r content_type=%r size=%d",
        screenshot.filename,
        screenshot.content_type,
        len(content),
    )

    outcome = await ingest_receipt(
        db,
        content,
        screenshot.content_type,
        filename=screenshot.filename,
        override_provider=override_provider,
        override_model=override_model,
    )
    return build_ingestion_response(outcome)


@router.get("/transactions", response_model=TransactionListResponse)
def list_transactions(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    total = db.execute(select(func.count()).select_from(Transaction)).scalar_one()
    rows = (
        db.execute(
            select(Transaction)
            .options(selectinload(Transaction.category))
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return TransactionListResponse(items=[transaction_out(t) for t in rows], total=total)
