"""Shared SQLAlchemy models registry for the ledger database."""

from .ledger import Account, Base, Category, LedgerTransaction

__all__ = [
    "Base",
    "Account",
    "Category",
    "LedgerTransaction",
]
