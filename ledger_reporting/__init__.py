"""
Ledger Reporting Engine (``ledger_reporting``).

Responsibility
--------------
Read-only engine that turns posted double-entry journal entries and a chart
of accounts into derived financial views: journal listing, general ledger,
trial balance, income statement, balance sheet, cash flow statement,
revenue & expense report and opening-balance preview.  Student invoices are
aggregated into the receivables summary (grade x fee item), per-student
balances and the parents overdue list.

Architecture position
---------------------
Raw records -> ``adapters`` -> ``filters`` -> ``aggregation`` ->
``statements`` / ``receivables`` -> frozen report models.
``ReportingService`` is the orchestrating entry point.

Invariants enforced
-------------------
* Nothing is written to the journal store.
* Only POSTED entries participate in any report.
* Data-quality problems are returned as ``ReportAnomalies``, not raised.
"""

from ledger_reporting.config import DatePolicy, OpeningBalanceMode, ReportingConfig
from ledger_reporting.filters import AccountLevel, ParentsOverdueFilter, ReportFilter
from ledger_reporting.models import (
    ARSummaryReport,
    BalanceSheetReport,
    CashFlowReport,
    GeneralLedgerReport,
    IncomeStatementReport,
    JournalReport,
    OpeningBalancePreview,
    ParentsOverdueReport,
    PaymentStatus,
    ReportAnomalies,
    ReportMetadata,
    ReportType,
    RevenueExpenseReport,
    StudentBalancesReport,
    TrialBalanceReport,
)
from ledger_reporting.service import ReportingService

__all__ = [
    "ARSummaryReport",
    "AccountLevel",
    "BalanceSheetReport",
    "CashFlowReport",
    "DatePolicy",
    "GeneralLedgerReport",
    "IncomeStatementReport",
    "JournalReport",
    "OpeningBalanceMode",
    "OpeningBalancePreview",
    "ParentsOverdueFilter",
    "ParentsOverdueReport",
    "PaymentStatus",
    "ReportAnomalies",
    "ReportFilter",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "RevenueExpenseReport",
    "StudentBalancesReport",
    "TrialBalanceReport",
]
