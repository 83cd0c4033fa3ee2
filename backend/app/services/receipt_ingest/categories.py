"""Find-or-create for spending categories."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.ledger import Category

logger = logging.getLogger(__name__)


def find_category(db: Session, name: str) -> Category | None:
    return db.execute(select(Category).where(Category.name == name)).scalars().one_or_none()


def get_or_create_category(db: Session, name: str) -> Category:
    """Return the category named exactly *name*, creating it (no icon) if missing.

    The new row is committed on its own. When a concurrent request inserts
    the same name first, the unique index rejects our insert; we roll back
    and return the row that won.
    """
    if not name:
        raise ValueError("Category name must be non-empty")

    category = find_category(db, name)
    if category is not None:
        return category

    category = Category(name=name, icon_name=None)
    db.add(category)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = find_category(db, name)
        if existing is None:
            raise
        logger.info("Category %r was created concurrently; using existing row", name)
        return existing

    db.refresh(category)
    logger.info("Created category %r (%s)", name, category.id)
    return category
