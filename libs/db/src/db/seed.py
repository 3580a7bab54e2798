"""Reference data: default categories and the default account.

Seeding is idempotent: rows are matched by name (categories) or id (account)
and only missing ones are inserted.
"""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models.ledger import Account, Category

DEFAULT_INCOME_CATEGORIES: tuple[str, ...] = (
    "Salary",
    "Freelance",
    "Investments",
    "Business",
    "Rental Income",
    "Other Income",
)

DEFAULT_EXPENSE_CATEGORIES: tuple[str, ...] = (
    "Food & Dining",
    "Transportation",
    "Shopping",
    "Bills & Utilities",
    "Entertainment",
    "Health & Fitness",
    "Education",
    "Travel",
    "Housing",
    "Personal Care",
    "Gifts & Donations",
    "Other Expenses",
)

UNCATEGORIZED: str = "Uncategorized"

DEFAULT_ACCOUNT_ID: str = "default"
DEFAULT_ACCOUNT_NAME: str = "Cash"


def seed_categories(session: Session) -> int:
    """Insert any missing default categories; return how many were added."""

    existing = set(session.scalars(select(func.lower(Category.name))).all())
    rows: list[tuple[str, bool]] = [
        *((n, True) for n in DEFAULT_INCOME_CATEGORIES),
        *((n, False) for n in DEFAULT_EXPENSE_CATEGORIES),
        (UNCATEGORIZED, False),
    ]
    added = 0
    for order, (name, is_income) in enumerate(rows):
        if name.lower() in existing:
            continue
        session.add(
            Category(id=str(uuid.uuid4()), name=name, is_income=is_income, sort_order=order)
        )
        added += 1
    session.flush()
    return added


def seed_default_account(session: Session, *, currency_code: str = "USD") -> str:
    if session.get(Account, DEFAULT_ACCOUNT_ID) is None:
        session.add(
            Account(id=DEFAULT_ACCOUNT_ID, name=DEFAULT_ACCOUNT_NAME, currency_code=currency_code)
        )
        session.flush()
    return DEFAULT_ACCOUNT_ID


__all__ = [
    "DEFAULT_INCOME_CATEGORIES",
    "DEFAULT_EXPENSE_CATEGORIES",
    "UNCATEGORIZED",
    "DEFAULT_ACCOUNT_ID",
    "seed_categories",
    "seed_default_account",
]
