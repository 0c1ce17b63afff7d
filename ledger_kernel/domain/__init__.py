"""
Pure domain layer.

Immutable entities, money helpers and the injectable clock.  No
dependency on the ORM, the database or I/O.
"""

from ledger_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from ledger_kernel.domain.entities import (
    Account,
    AccountType,
    EntryStatus,
    FeeHead,
    Grade,
    Invoice,
    InvoiceItem,
    JournalEntry,
    JournalLine,
    LedgerSnapshot,
    ReceivablesContext,
    SchoolClass,
    Stage,
    Student,
)
from ledger_kernel.domain.money import (
    ZERO,
    round_money,
    safe_divide,
    sum_money,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Account",
    "AccountType",
    "EntryStatus",
    "FeeHead",
    "Grade",
    "Invoice",
    "InvoiceItem",
    "JournalEntry",
    "JournalLine",
    "LedgerSnapshot",
    "ReceivablesContext",
    "SchoolClass",
    "Stage",
    "Student",
    "ZERO",
    "round_money",
    "safe_divide",
    "sum_money",
    "to_decimal",
]
