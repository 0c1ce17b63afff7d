"""
Ledger Report Models (``ledger_reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for every report the engine produces:
journal listing, general ledger, trial balance, income statement, balance
sheet, cash flow, revenue & expense, receivables summary, student
balances, parents overdue and the opening-balance preview.

Architecture position
---------------------
**Reporting layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` / ``receivables.py`` and returned to
callers through ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* Every report carries ``metadata``, ``no_data`` and ``anomalies``, so the
  presentation layer can disable printing and surface data-quality
  problems the same way for every report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.money import ZERO


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    """Types of ledger reports."""

    JOURNAL = "journal"
    GENERAL_LEDGER = "general_ledger"
    TRIAL_BALANCE = "trial_balance"
    INCOME_STATEMENT = "income_statement"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    REVENUE_EXPENSE = "revenue_expense"
    AR_SUMMARY = "ar_summary"
    STUDENT_BALANCES = "student_balances"
    PARENTS_OVERDUE = "parents_overdue"
    OPENING_BALANCE_PREVIEW = "opening_balance_preview"


class BalanceType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class PaymentStatus(str, Enum):
    """Whether a parent still owes money on their children's invoices."""

    LATE = "late"
    REGULAR = "regular"


class CashFlowCategory(str, Enum):
    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


# =========================================================================
# Common to all reports
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    currency: str
    generated_at: str  # ISO format timestamp from injected clock
    period_start: date | None = None
    period_end: date | None = None
    as_of_date: date | None = None
    filters: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ReportAnomalies:
    """Data-quality findings reported alongside a result, never raised."""

    missing_account_lines: int = 0
    unbalanced_entries: tuple[str, ...] = ()
    undated_entries: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return (
            self.missing_account_lines == 0
            and not self.unbalanced_entries
            and not self.undated_entries
        )

    @property
    def count(self) -> int:
        return (
            self.missing_account_lines
            + len(self.unbalanced_entries)
            + len(self.undated_entries)
        )


# =========================================================================
# Journal
# =========================================================================


@dataclass(frozen=True)
class JournalRow:
    """One (entry, line) pair of the journal listing."""

    line_index: int  # 1-based, across the whole listing
    entry_id: str
    entry_number: str
    entry_date: date | None
    source: str
    description: str
    account_id: str
    account_label: str  # "code - name", or the raw id when unresolved
    debit: Decimal
    credit: Decimal
    note: str = ""


@dataclass(frozen=True)
class JournalReport:
    metadata: ReportMetadata
    rows: tuple[JournalRow, ...]
    entry_count: int
    total_debit: Decimal
    total_credit: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# General Ledger
# =========================================================================


@dataclass(frozen=True)
class LedgerRow:
    """One line on the selected account, with the balance after it."""

    entry_id: str
    entry_number: str
    entry_date: date | None
    description: str
    debit: Decimal
    credit: Decimal
    balance_after: Decimal


@dataclass(frozen=True)
class GeneralLedgerReport:
    metadata: ReportMetadata
    account_id: str | None
    account_code: str | None
    account_name: str | None
    opening_balance: Decimal
    rows: tuple[LedgerRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceRow:
    account_id: str
    account_code: str
    account_name: str
    account_type: str | None
    debit: Decimal
    credit: Decimal
    balance: Decimal  # magnitude |debit - credit|
    balance_type: BalanceType
    signed_balance: Decimal  # debit - credit


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    rows: tuple[TrialBalanceRow, ...]
    total_debit: Decimal
    total_credit: Decimal
    total_balance: Decimal  # signed; zero for a balanced ledger
    is_balanced: bool
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# Income Statement / Revenue & Expense
# =========================================================================


@dataclass(frozen=True)
class StatementRow:
    """An account and its amount in the account type's natural direction."""

    account_id: str
    account_code: str
    account_name: str
    amount: Decimal


@dataclass(frozen=True)
class IncomeStatementReport:
    metadata: ReportMetadata
    revenue: tuple[StatementRow, ...]
    expenses: tuple[StatementRow, ...]
    total_revenue: Decimal
    total_expense: Decimal
    net: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


@dataclass(frozen=True)
class RevenueExpenseReport:
    """Income-statement view over a required period, optionally one account."""

    metadata: ReportMetadata
    account_id: str | None
    revenue: tuple[StatementRow, ...]
    expenses: tuple[StatementRow, ...]
    total_revenue: Decimal
    total_expense: Decimal
    net: Decimal
    skipped_entries: tuple[str, ...]  # flagged is_balanced=False upstream
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetRow:
    account_id: str
    account_code: str
    account_name: str
    account_type: str
    balance: Decimal  # signed debit - credit
    amount: Decimal  # natural sign for the section


@dataclass(frozen=True)
class BalanceSheetSection:
    label: str
    rows: tuple[BalanceSheetRow, ...]
    total: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    metadata: ReportMetadata
    as_of_date: date | None
    assets: BalanceSheetSection
    liabilities: BalanceSheetSection
    equity: BalanceSheetSection
    current_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    difference: Decimal  # assets - (liabilities + equity)
    balanced: bool
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# Cash Flow
# =========================================================================


@dataclass(frozen=True)
class CashFlowRow:
    """A counter-account line of a cash-affecting entry."""

    entry_id: str
    entry_number: str
    entry_date: date | None
    account_id: str
    account_label: str
    inflow: Decimal
    outflow: Decimal


@dataclass(frozen=True)
class CashFlowSection:
    category: CashFlowCategory
    rows: tuple[CashFlowRow, ...] = ()
    total_inflow: Decimal = ZERO
    total_outflow: Decimal = ZERO
    net: Decimal = ZERO


@dataclass(frozen=True)
class CashFlowReport:
    metadata: ReportMetadata
    operating: CashFlowSection
    investing: CashFlowSection
    financing: CashFlowSection
    opening_cash: Decimal
    net_change: Decimal
    closing_cash: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)
    # In-period entries whose counter lines do not explain their whole cash
    # movement (unbalanced, or a counter line on an unknown account).  The
    # next period's opening cash exceeds this closing by the amount.
    unreconciled_entries: tuple[str, ...] = ()
    unreconciled_amount: Decimal = ZERO


# =========================================================================
# Opening balance preview
# =========================================================================


@dataclass(frozen=True)
class OpeningBalanceLine:
    account_id: str
    account_code: str
    account_name: str
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class OpeningBalancePreview:
    metadata: ReportMetadata
    lines: tuple[OpeningBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


# =========================================================================
# Receivables
# =========================================================================


@dataclass(frozen=True)
class ARSummaryRow:
    """One (grade, fee item) cell of the receivables summary."""

    stage_name: str
    grade_id: str
    grade_name: str
    fee_name: str
    student_count: int
    item_amount: Decimal  # total_item / student_count, 0 without students
    total_item: Decimal
    exemptions: Decimal  # the grade's discount total
    net: Decimal  # total_item - exemptions


@dataclass(frozen=True)
class ARMatrixRow:
    """One grade of the grade x fee-name pivot."""

    grade_id: str
    grade_name: str
    stage_name: str
    values: dict[str, Decimal]  # fee name -> per-student item amount
    total: Decimal
    discounts: Decimal
    student_count: int

    @property
    def net(self) -> Decimal:
        return self.total - self.discounts


@dataclass(frozen=True)
class ARSummaryReport:
    metadata: ReportMetadata
    academic_year_id: str | None
    rows: tuple[ARSummaryRow, ...]
    fee_names: tuple[str, ...]
    matrix: tuple[ARMatrixRow, ...]
    total_amount: Decimal
    total_discounts: Decimal
    total_net: Decimal
    total_students: int
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


@dataclass(frozen=True)
class StudentBalanceRow:
    student_id: str
    student_name: str
    grade_name: str
    class_name: str
    due: Decimal
    paid: Decimal
    balance: Decimal  # due - paid


@dataclass(frozen=True)
class StudentBalancesReport:
    metadata: ReportMetadata
    academic_year_id: str | None
    debtors: tuple[StudentBalanceRow, ...]
    creditors: tuple[StudentBalanceRow, ...]
    total_due: Decimal
    total_paid: Decimal
    total_debtors: Decimal
    total_creditors: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)


@dataclass(frozen=True)
class ParentOverdueRow:
    """One parent with the invoices of all their children summed."""

    parent_id: str
    parent_name: str
    mobile: str
    children: tuple[str, ...]  # distinct student codes, first-seen order
    total_due: Decimal
    total_paid: Decimal
    balance: Decimal  # total_due - total_paid
    oldest_invoice_date: date | None
    status: PaymentStatus

    @property
    def children_count(self) -> int:
        return len(self.children)


@dataclass(frozen=True)
class ParentsOverdueReport:
    metadata: ReportMetadata
    academic_year_id: str | None
    rows: tuple[ParentOverdueRow, ...]  # balance descending
    total_due: Decimal
    total_paid: Decimal
    total_balance: Decimal
    no_data: bool
    anomalies: ReportAnomalies = field(default_factory=ReportAnomalies)
