from datetime import date, datetime
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel


class IngestionFailureKind(StrEnum):
    ITEM_INVALID = "item_invalid"
    ITEM_PERSISTENCE_FAILED = "item_persistence_failed"


class CategoryOut(BaseModel):
    id: str
    name: str
    icon_name: Optional[str] = None


class TransactionOut(BaseModel):
    id: str
    merchant: str
    amount: float
    date: date
    description: Optional[str] = None
    category_id: Optional[str] = None
    category: Optional[CategoryOut] = None
    created_at: Optional[datetime] = None


class IngestionFailureOut(BaseModel):
    index: int
    kind: IngestionFailureKind
    message: str
    data: Any = None


class IngestionResponse(BaseModel):
    message: str
    candidates_found: int
    saved_count: int
    transactions: list[TransactionOut]
    errors: Optional[list[IngestionFailureOut]] = None


class IngestionErrorResponse(BaseModel):
    detail: str
    code: str
    errors: Optional[list[IngestionFailureOut]] = None


class TransactionListResponse(BaseModel):
    items: list[TransactionOut]
    total: int
