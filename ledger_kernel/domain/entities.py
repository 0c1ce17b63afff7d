"""
Canonical ledger and receivable entities.

Responsibility:
    Fixed, typed snapshots of the records the reporting engine reads:
    accounts, journal entries and lines, and the student/invoice/fee
    records consumed by the receivables reports.  Every loosely typed
    input is converted into one of these exactly once, at the boundary
    (``ledger_reporting.adapters`` or ``ledger_kernel.selectors``).

Architecture position:
    Kernel > Domain -- pure data definitions with ZERO I/O.

Invariants enforced:
    - All entities are ``frozen=True``.
    - All monetary fields are ``Decimal``.
    - Ids are stripped strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.money import ZERO, sum_money


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"

    @classmethod
    def parse(cls, value: object) -> AccountType | None:
        """Case-insensitive lookup; unknown values return None."""
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        text = str(value).strip().casefold()
        for member in cls:
            if member.value.casefold() == text or member.name.casefold() == text:
                return member
        return None


class EntryStatus(str, Enum):
    """Journal entry lifecycle status as supplied by the journal store."""

    DRAFT = "DRAFT"
    POSTED = "POSTED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    VOID = "VOID"

    @classmethod
    def parse(cls, value: object) -> EntryStatus | None:
        if value is None:
            return None
        text = str(value).strip().upper()
        if text == "VOIDED":
            return cls.VOID
        try:
            return cls(text)
        except ValueError:
            return None


# =========================================================================
# Ledger
# =========================================================================


@dataclass(frozen=True)
class Account:
    """A node of the chart of accounts."""

    id: str
    code: str
    name: str
    account_type: AccountType | None
    parent_id: str | None = None
    system_tag: str | None = None
    is_cash: bool = False
    sub_type: str | None = None
    balance: Decimal = ZERO

    @property
    def is_main(self) -> bool:
        return not self.parent_id

    @property
    def label(self) -> str:
        return f"{self.code} - {self.name}"


@dataclass(frozen=True)
class JournalLine:
    """One debit/credit line of a journal entry."""

    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    note: str = ""

    @property
    def delta(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class JournalEntry:
    """
    A journal entry snapshot.

    ``entry_date`` and ``created_at`` are ``None`` when the source value
    was missing or unparsable; the period filter decides what to do with
    such entries.  ``is_balanced`` mirrors the upstream flag and is
    ``None`` when the source did not say.
    """

    id: str
    number: str
    entry_date: date | None
    source: str = ""
    description: str = ""
    status: EntryStatus | None = None
    lines: tuple[JournalLine, ...] = ()
    academic_year_id: str | None = None
    is_balanced: bool | None = None
    created_at: date | None = None

    @property
    def is_posted(self) -> bool:
        return self.status == EntryStatus.POSTED

    @property
    def total_debit(self) -> Decimal:
        return sum_money(line.debit for line in self.lines)

    @property
    def total_credit(self) -> Decimal:
        return sum_money(line.credit for line in self.lines)

    def touches(self, account_id: str) -> bool:
        """True if at least one line references ``account_id``."""
        return any(line.account_id == account_id for line in self.lines)


# =========================================================================
# Receivables
# =========================================================================


@dataclass(frozen=True)
class InvoiceItem:
    """One fee line on a student invoice."""

    fee_head_id: str | None
    name: str | None
    amount: Decimal = ZERO


@dataclass(frozen=True)
class Invoice:
    """A student invoice reduced to the fields the AR reports need."""

    id: str
    student_id: str
    academic_year_id: str | None = None
    grade_id: str | None = None
    is_approved: bool = False
    is_voided: bool = False
    items: tuple[InvoiceItem, ...] = ()
    discount_total: Decimal = ZERO
    total: Decimal = ZERO
    paid: Decimal = ZERO
    invoice_date: date | None = None


@dataclass(frozen=True)
class Student:
    """
    A student with the correlation keys used to find their grade, and the
    parent contact the overdue report groups by.

    ``code`` is the school-wide student number when the record has one.
    """

    id: str
    name: str = ""
    academic_year_id: str | None = None
    grade_id: str | None = None
    class_id: str | None = None
    class_name: str | None = None
    grade_name: str | None = None
    stage_id: str | None = None
    code: str | None = None
    parent_id: str | None = None
    parent_name: str | None = None
    parent_mobile: str | None = None


@dataclass(frozen=True)
class Grade:
    id: str
    name: str
    stage_id: str | None = None


@dataclass(frozen=True)
class Stage:
    id: str
    name: str


@dataclass(frozen=True)
class SchoolClass:
    id: str
    name: str
    grade_id: str | None = None


@dataclass(frozen=True)
class FeeHead:
    id: str
    name: str


@dataclass(frozen=True)
class ReceivablesContext:
    """
    Lookup tables for the receivables builders.

    Built once by ``ledger_reporting.adapters.build_receivables_context``;
    builders only read from it.
    """

    invoices: tuple[Invoice, ...] = ()
    students: dict[str, Student] = field(default_factory=dict)
    grades: dict[str, Grade] = field(default_factory=dict)
    stages: dict[str, Stage] = field(default_factory=dict)
    classes: dict[str, SchoolClass] = field(default_factory=dict)
    fee_names: dict[str, str] = field(default_factory=dict)
    grade_id_by_name: dict[str, str] = field(default_factory=dict)
    grade_id_by_class_name: dict[str, str] = field(default_factory=dict)


# =========================================================================
# Snapshot
# =========================================================================


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Accounts plus journal entries for one reporting call.

    ``account_index`` is derived from ``accounts``; when two accounts share
    an id the first one wins.
    """

    accounts: tuple[Account, ...] = ()
    entries: tuple[JournalEntry, ...] = ()
    account_index: dict[str, Account] = field(
        default_factory=dict, init=False, compare=False, repr=False,
    )

    def __post_init__(self) -> None:
        index: dict[str, Account] = {}
        for account in self.accounts:
            index.setdefault(account.id, account)
        object.__setattr__(self, "account_index", index)

    def account(self, account_id: str | None) -> Account | None:
        if not account_id:
            return None
        return self.account_index.get(account_id)
