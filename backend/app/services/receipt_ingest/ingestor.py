"""Per-candidate validation and persistence with failure isolation.

Each candidate is validated, categorised and committed on its own. A bad
candidate or a failed write becomes an ``IngestionFailure`` and the loop
moves on; nothing item-level escapes ``ingest_candidates``.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.models.ledger import Transaction
from app.schemas.transactions import IngestionFailureKind
from app.services.ai.receipt_extract.contracts import CandidateTransaction

from .categories import get_or_create_category
from .errors import ItemInvalid

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("merchant", "amount", "date")


@dataclass(frozen=True)
class ValidatedTransaction:
    """A candidate that passed every field check and may be persisted."""

    merchant: str
    amount: float
    date: date
    category_label: str | None = None


@dataclass(frozen=True)
class IngestionFailure:
    index: int
    kind: IngestionFailureKind
    message: str
    data: Any = None


@dataclass
class IngestionOutcome:
    candidates_found: int
    transactions: list[Transaction] = field(default_factory=list)
    failures: list[IngestionFailure] = field(default_factory=list)

    @property
    def saved_count(self) -> int:
        return len(self.transactions)


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_calendar_date(value: str) -> date:
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ItemInvalid(f"Transaction date {value!r} is not a valid calendar date") from None


def validate_candidate(candidate: CandidateTransaction) -> ValidatedTransaction:
    """Check presence, then types, then the calendar date. Raises ``ItemInvalid``."""
    if not candidate.is_object:
        raise ItemInvalid("Transaction entry is not an object")

    values = {
        "merchant": candidate.merchant,
        "amount": candidate.amount,
        "date": candidate.date,
    }
    missing = [name for name in REQUIRED_FIELDS if _is_absent(values[name])]
    if missing:
        raise ItemInvalid(f"Transaction missing required fields: {', '.join(missing)}")

    merchant = values["merchant"]
    if not isinstance(merchant, str):
        raise ItemInvalid("Transaction merchant must be a string")

    amount = values["amount"]
    # bool is an int subclass; JSON true/false is not an amount.
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ItemInvalid("Transaction amount must be a number value")
    try:
        amount_value = float(amount)
    except OverflowError:
        amount_value = math.inf
    if not math.isfinite(amount_value):
        raise ItemInvalid("Transaction amount must be a finite number")

    raw_date = values["date"]
    if not isinstance(raw_date, str):
        raise ItemInvalid("Transaction date must be a YYYY-MM-DD string")
    parsed_date = _parse_calendar_date(raw_date)

    label = candidate.category_label
    category_label = None
    if isinstance(label, str) and label.strip():
        category_label = label.strip()
    elif label is not None and not isinstance(label, str):
        logger.info("Ignoring non-string category %r on candidate %d", label, candidate.index)

    return ValidatedTransaction(
        merchant=merchant.strip(),
        amount=amount_value,
        date=parsed_date,
        category_label=category_label,
    )


def _persist_transaction(db: Session, item: ValidatedTransaction) -> Transaction:
    category_id = None
    if item.category_label:
        category = get_or_create_category(db, item.category_label)
        category_id = category.id

    transaction = Transaction(
        merchant=item.merchant,
        amount=item.amount,
        date=item.date,
        category_id=category_id,
    )
    db.add(transaction)
    db.commit()
    db.refresh(transaction)
    return transaction


def ingest_candidates(db: Session, candidates: Iterable[CandidateTransaction]) -> IngestionOutcome:
    """Fold candidates into (saved transactions, failures), in input order.

    Never raises for item-level problems; deciding whether the batch as a
    whole failed is left to the caller.
    """
    candidates = list(candidates)
    outcome = IngestionOutcome(candidates_found=len(candidates))

    for candidate in candidates:
        try:
            item = validate_candidate(candidate)
        except ItemInvalid as exc:
            logger.warning("Skipping invalid candidate %d: %s (%r)", candidate.index, exc, candidate.raw)
            outcome.failures.append(
                IngestionFailure(
                    index=candidate.index,
                    kind=IngestionFailureKind.ITEM_INVALID,
                    message=str(exc),
                    data=candidate.raw,
                )
            )
            continue

        try:
            transaction = _persist_transaction(db, item)
        except Exception as exc:
            db.rollback()
            reason = getattr(exc, "orig", None) or exc
            logger.error("Error saving candidate %d (%r): %s", candidate.index, candidate.raw, reason)
            outcome.failures.append(
                IngestionFailure(
                    index=candidate.index,
                    kind=IngestionFailureKind.ITEM_PERSISTENCE_FAILED,
                    message=f"Failed to save transaction {item.merchant}: {reason}",
                    data=candidate.raw,
                )
            )
            continue

        logger.info(
            "Saved transaction %s: %s %.2f on %s",
            transaction.id,
            transaction.merchant,
            transaction.amount,
            transaction.date.isoformat(),
        )
        outcome.transactions.append(transaction)

    return outcome
