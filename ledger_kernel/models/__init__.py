"""ORM models for the journal store (read by the reporting engine)."""

from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntry, JournalLine

__all__ = ["Account", "JournalEntry", "JournalLine"]
