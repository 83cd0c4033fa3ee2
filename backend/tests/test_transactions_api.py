import os
import unittest
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_db
from app.main import app
from app.models.ledger import Base, Category, Transaction
from app.services.ai.common.providers.base import ProviderResult

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


def _provider_returning(text: str) -> AsyncMock:
    provider = AsyncMock()
    provider.name = "mock"
    provider.generate.return_value = ProviderResult(raw_text=text, model="test-model", provider="mock")
    return provider


class TransactionsApiTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _count(self, model) -> int:
        db = self.SessionLocal()
        try:
            return db.execute(select(func.count()).select_from(model)).scalar_one()
        finally:
            db.close()

    def _upload(self, provider, content=PNG_BYTES, content_type="image/png", data=None):
        with patch("app.services.ai.common.router.get_provider", return_value=provider):
            return self.client.post(
                "/api/v1/transactions/upload",
                files={"screenshot": ("receipt.png", content, content_type)},
                data=data or {},
            )

    def test_upload_saves_transactions(self):
        provider = _provider_returning(
            '[{"merchant":"Cafe Luna","amount":-12.5,"date":"2024-03-15","category":"Dining"},'
            '{"merchant":"Payroll","amount":2000.0,"date":"2024-03-14","category":"Income"}]'
        )

        resp = self._upload(provider)

        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["message"], "Processed 2 potential transactions. Saved 2.")
        self.assertEqual(body["candidates_found"], 2)
        self.assertEqual(body["saved_count"], 2)
        self.assertNotIn("errors", body)
        first = body["transactions"][0]
        self.assertEqual(first["merchant"], "Cafe Luna")
        self.assertEqual(first["amount"], -12.5)
        self.assertEqual(first["date"], "2024-03-15")
        self.assertEqual(first["category"]["name"], "Dining")
        self.assertEqual(self._count(Transaction), 2)
        self.assertEqual(self._count(Category), 2)

        _, kwargs = provider.generate.call_args
        self.assertEqual(kwargs["images"][0].data, PNG_BYTES)
        self.assertEqual(kwargs["images"][0].mime_type, "image/png")

    def test_partial_success_lists_errors(self):
        provider = _provider_returning(
            '[{"merchant":"Cafe Luna","amount":-12.5,"date":"2024-03-15","category":"Dining"},'
            '{"merchant":"Kiosk","amount":"twelve","date":"2024-03-13","category":"Shopping"}]'
        )

        resp = self._upload(provider)

        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["saved_count"], 1)
        self.assertEqual(len(body["errors"]), 1)
        self.assertEqual(body["errors"][0]["index"], 1)
        self.assertEqual(body["errors"][0]["kind"], "item_invalid")
        self.assertEqual(body["errors"][0]["data"]["merchant"], "Kiosk")

    def test_all_candidates_invalid_returns_422_with_errors(self):
        provider = _provider_returning('[{"merchant":null,"amount":5.0,"date":"2024-01-01","category":"Other"}]')

        resp = self._upload(provider)

        self.assertEqual(resp.status_code, 422)
        body = resp.json()
        self.assertEqual(body["code"], "BATCH_EXHAUSTED")
        self.assertEqual(body["detail"], "Failed to save any transactions. 1 errors occurred.")
        self.assertIn("merchant", body["errors"][0]["message"])
        self.assertEqual(self._count(Transaction), 0)

    def test_malformed_response_returns_422(self):
        resp = self._upload(_provider_returning("I could not read this image, sorry."))

        self.assertEqual(resp.status_code, 422)
        body = resp.json()
        self.assertEqual(body["code"], "MALFORMED_EXTRACTION")
        self.assertNotIn("errors", body)
        self.assertEqual(self._count(Transaction), 0)

    def test_deeply_nested_response_returns_422(self):
        resp = self._upload(_provider_returning("[" * 100000))

        self.assertEqual(resp.status_code, 422)
        self.assertEqual(resp.json()["code"], "MALFORMED_EXTRACTION")

    def test_non_image_rejected_before_provider_call(self):
        provider = _provider_returning("[]")

        resp = self._upload(provider, content=b"hello", content_type="text/plain")

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "INPUT_REJECTED")
        provider.generate.assert_not_awaited()

    def test_missing_file_field_is_rejected(self):
        resp = self.client.post("/api/v1/transactions/upload", data={"note": "x"})
        self.assertEqual(resp.status_code, 422)

    @patch.dict(os.environ, {"RECEIPT_MAX_UPLOAD_BYTES": "16"}, clear=False)
    def test_oversized_upload_returns_413(self):
        provider = _provider_returning("[]")

        resp = self._upload(provider, content=b"\x00" * 32)

        self.assertEqual(resp.status_code, 413)
        provider.generate.assert_not_awaited()

    def test_provider_failure_returns_502(self):
        provider = AsyncMock()
        provider.name = "gemini"
        provider.generate.side_effect = httpx.ConnectError("connection refused")

        resp = self._upload(provider)

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["code"], "EXTRACTION_UNAVAILABLE")
        self.assertEqual(self._count(Transaction), 0)

    @patch.dict(os.environ, {"ENABLE_AI_OVERRIDES": "true", "AI_ALLOWED_MODELS": "{}"}, clear=False)
    def test_override_fields_reach_router(self):
        provider = _provider_returning('[{"merchant":"A","amount":-1,"date":"2024-03-15","category":null}]')

        with patch("app.services.ai.common.router.get_provider", return_value=provider) as factory:
            resp = self.client.post(
                "/api/v1/transactions/upload",
                files={"screenshot": ("r.jpg", PNG_BYTES, "image/jpeg")},
                data={"override_provider": "Mock", "override_model": "mock-v2"},
            )

        self.assertEqual(resp.status_code, 201)
        factory.assert_called_once_with("mock")
        self.assertEqual(provider.generate.call_args.kwargs["model"], "mock-v2")

    def test_list_transactions_newest_first(self):
        provider = _provider_returning(
            '[{"merchant":"Older","amount":-1,"date":"2024-03-01","category":"Dining"},'
            '{"merchant":"Newer","amount":-2,"date":"2024-03-20","category":null}]'
        )
        self._upload(provider)

        resp = self.client.get("/api/v1/transactions")

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total"], 2)
        self.assertEqual([t["merchant"] for t in body["items"]], ["Newer", "Older"])
        self.assertIsNone(body["items"][0]["category"])
        self.assertEqual(body["items"][1]["category"]["name"], "Dining")

    def test_list_transactions_limit(self):
        provider = _provider_returning(
            '[{"merchant":"A","amount":-1,"date":"2024-03-01"},{"merchant":"B","amount":-2,"date":"2024-03-02"}]'
        )
        self._upload(provider)

        resp = self.client.get("/api/v1/transactions", params={"limit": 1})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.json()["items"]), 1)
        self.assertEqual(resp.json()["total"], 2)

        self.assertEqual(self.client.get("/api/v1/transactions", params={"limit": 0}).status_code, 422)

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})
