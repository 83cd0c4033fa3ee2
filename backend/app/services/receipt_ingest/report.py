"""Response shaping for ingestion results."""

from __future__ import annotations

from collections.abc import Iterable

from app.models.ledger import Category, Transaction
from app.schemas.transactions import (
    CategoryOut,
    IngestionErrorResponse,
    IngestionFailureOut,
    IngestionResponse,
    TransactionOut,
)

from .errors import BatchExhausted, IngestionError
from .ingestor import IngestionFailure, IngestionOutcome


def category_out(category: Category) -> CategoryOut:
    return CategoryOut(
        id=str(category.id),
        name=category.name,
        icon_name=category.icon_name,
    )


def transaction_out(transaction: Transaction) -> TransactionOut:
    return TransactionOut(
        id=str(transaction.id),
        merchant=transaction.merchant,
        amount=transaction.amount,
        date=transaction.date,
        description=transaction.description,
        category_id=str(transaction.category_id) if transaction.category_id else None,
        category=category_out(transaction.category) if transaction.category is not None else None,
        created_at=transaction.created_at,
    )


def failures_out(failures: Iterable[IngestionFailure]) -> list[IngestionFailureOut]:
    return [
        IngestionFailureOut(index=f.index, kind=f.kind, message=f.message, data=f.data)
        for f in failures
    ]


def summary_message(candidates_found: int, saved_count: int) -> str:
    return f"Processed {candidates_found} potential transactions. Saved {saved_count}."


def build_ingestion_response(outcome: IngestionOutcome) -> IngestionResponse:
    return IngestionResponse(
        message=summary_message(outcome.candidates_found, outcome.saved_count),
        candidates_found=outcome.candidates_found,
        saved_count=outcome.saved_count,
        transactions=[transaction_out(t) for t in outcome.transactions],
        errors=failures_out(outcome.failures) if outcome.failures else None,
    )


def build_error_response(exc: IngestionError) -> IngestionErrorResponse:
    errors = None
    if isinstance(exc, BatchExhausted) and exc.failures:
        errors = failures_out(exc.failures)
    return IngestionErrorResponse(detail=exc.message, code=exc.code, errors=errors)
