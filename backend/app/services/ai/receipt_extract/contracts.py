"""Receipt extract scope contracts: untrusted candidates decoded from the model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Closed vocabulary offered to the model. Category resolution stays generic,
# so labels outside this list are still created on demand.
CATEGORY_VOCABULARY: tuple[str, ...] = (
    "Groceries",
    "Dining",
    "Transport",
    "Utilities",
    "Entertainment",
    "Shopping",
    "Income",
    "Transfer",
    "Rent/Mortgage",
    "Fees",
    "Other",
)

CANDIDATE_FIELDS: tuple[str, ...] = ("merchant", "amount", "date", "category")


@dataclass(frozen=True)
class CandidateTransaction:
    """One element of the decoded model array, exactly as the model sent it.

    Nothing here is validated: ``raw`` may not even be an object. Accessors
    return ``None`` for absent keys or non-object elements.
    """

    index: int
    raw: Any

    @property
    def is_object(self) -> bool:
        return isinstance(self.raw, dict)

    def _get(self, key: str) -> Any:
        if not isinstance(self.raw, dict):
            return None
        return self.raw.get(key)

    @property
    def merchant(self) -> Any:
        return self._get("merchant")

    @property
    def amount(self) -> Any:
        return self._get("amount")

    @property
    def date(self) -> Any:
        return self._get("date")

    @property
    def category_label(self) -> Any:
        return self._get("category")
