"""
Reporting Service (``ledger_reporting.service``).

Responsibility
--------------
Orchestrates report generation -- journal, general ledger, trial balance,
income statement, balance sheet, cash flow, revenue & expense, opening
balance preview, receivables summary, student balances and parents
overdue -- by normalizing
raw inputs once through the adapter and handing canonical snapshots to the
pure builders in ``statements.py`` and ``receivables.py``.  This is a
**read-only** service: nothing is written to the journal store.

Architecture position
---------------------
**Reporting layer** -- thin glue.  ``ReportingService`` is the public entry
point for callers that hold raw records or a database session.
Constructor: ``clock`` + ``config``; ``from_session`` additionally binds a
snapshot read through ``LedgerSnapshotSelector``.

Invariants enforced
-------------------
* Read-only -- no mutations to the journal store.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Report metadata carries the injected clock's timestamp and the filter
  echo for reproducibility.

Failure modes
-------------
* No snapshot passed and none bound -> ``ReportInputError``.
* Invalid filter values -> ``InvalidFilterError`` before any work.
* Data-quality problems -> reported in each result's ``anomalies``.

Audit relevance
---------------
A structured ``<report>_generated`` log event is emitted for every report,
carrying row counts, balance flags and anomaly counts.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Self

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entities import LedgerSnapshot, ReceivablesContext
from ledger_kernel.exceptions import ReportInputError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.snapshot_selector import LedgerSnapshotSelector
from ledger_reporting.adapters import build_receivables_context, build_snapshot
from ledger_reporting.config import ReportingConfig
from ledger_reporting.filters import ParentsOverdueFilter, ReportFilter, filter_entries
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
    ReportType,
    RevenueExpenseReport,
    StudentBalancesReport,
    TrialBalanceReport,
)
from ledger_reporting.receivables import (
    build_ar_summary,
    build_parents_overdue,
    build_student_balances,
)
from ledger_reporting.statements import (
    build_balance_sheet,
    build_cash_flow,
    build_general_ledger,
    build_income_statement,
    build_journal,
    build_opening_balance_preview,
    build_revenue_expense,
    build_trial_balance,
    render_to_dict,
)
from ledger_reporting.validation import ValidationResult, validate_entries

logger = get_logger("reporting.service")

Criteria = ReportFilter | Mapping[str, Any] | None

# Statements that need only a ledger snapshot and a filter
_LEDGER_BUILDERS = {
    ReportType.JOURNAL: build_journal,
    ReportType.GENERAL_LEDGER: build_general_ledger,
    ReportType.TRIAL_BALANCE: build_trial_balance,
    ReportType.INCOME_STATEMENT: build_income_statement,
    ReportType.BALANCE_SHEET: build_balance_sheet,
    ReportType.CASH_FLOW: build_cash_flow,
    ReportType.REVENUE_EXPENSE: build_revenue_expense,
    ReportType.OPENING_BALANCE_PREVIEW: build_opening_balance_preview,
}


def _row_count(report: Any) -> int:
    for name in ("rows", "lines"):
        if hasattr(report, name):
            return len(getattr(report, name))
    if isinstance(report, BalanceSheetReport):
        return sum(len(s.rows) for s in (report.assets, report.liabilities, report.equity))
    if isinstance(report, CashFlowReport):
        return sum(
            len(s.rows) for s in (report.operating, report.investing, report.financing)
        )
    if isinstance(report, (IncomeStatementReport, RevenueExpenseReport)):
        return len(report.revenue) + len(report.expenses)
    if isinstance(report, StudentBalancesReport):
        return len(report.debtors) + len(report.creditors)
    return 0


class ReportingService:
    """
    Ledger report generation service.

    Contract
    --------
    * Every public report method returns a typed report DTO (e.g.,
      ``TrialBalanceReport``, ``CashFlowReport``).
    * Every method accepts its filter as a ``ReportFilter`` or as the
      presentation layer's criteria mapping.
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report generation delegates to pure functions; no financial logic
      lives in this class.
    * Clock is injectable for deterministic testing.
    * Results for identical inputs are deep-equal.

    Non-goals
    ---------
    * Does NOT post, correct or close anything.
    * Does NOT convert currencies.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
        snapshot: LedgerSnapshot | None = None,
    ):
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._snapshot = snapshot

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "default_currency": self._config.default_currency,
                "date_policy": self._config.date_policy.value,
                "opening_balance_mode": self._config.opening_balance_mode.value,
            },
        )

    @classmethod
    def from_session(
        cls,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ) -> Self:
        """Bind a service to a snapshot of the POSTED ledger in ``session``."""
        snapshot = LedgerSnapshotSelector(session).snapshot(posted_only=True)
        return cls(clock=clock, config=config, snapshot=snapshot)

    @property
    def config(self) -> ReportingConfig:
        return self._config

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _resolve_snapshot(self, snapshot: LedgerSnapshot | None) -> LedgerSnapshot:
        if snapshot is not None:
            return snapshot
        if self._snapshot is None:
            raise ReportInputError(
                "snapshot", "no snapshot passed and none bound to the service",
            )
        return self._snapshot

    @staticmethod
    def _criteria(criteria: Criteria) -> ReportFilter:
        if isinstance(criteria, ReportFilter):
            return criteria
        return ReportFilter.from_dict(criteria)

    def _log_generated(self, report_type: ReportType, report: Any, **extra: Any) -> None:
        anomalies = report.anomalies
        with LogContext.bind(report_type=report_type.value):
            logger.info(
                f"{report_type.value}_generated",
                extra={
                    "row_count": _row_count(report),
                    "no_data": report.no_data,
                    "missing_account_lines": anomalies.missing_account_lines,
                    "unbalanced_entries": len(anomalies.unbalanced_entries),
                    "undated_entries": len(anomalies.undated_entries),
                    **extra,
                },
            )

    def _run(
        self,
        report_type: ReportType,
        snapshot: LedgerSnapshot | None,
        criteria: Criteria,
        **kwargs: Any,
    ) -> Any:
        resolved = self._resolve_snapshot(snapshot)
        flt = self._criteria(criteria)
        with LogContext.bind(report_type=report_type.value):
            report = _LEDGER_BUILDERS[report_type](
                resolved, flt, self._config, clock=self._clock, **kwargs,
            )
        return report

    # =========================================================================
    # Input normalization
    # =========================================================================

    def snapshot(
        self,
        accounts: Iterable[Any] | None,
        entries: Iterable[Any] | None,
    ) -> LedgerSnapshot:
        """Adapt raw account and entry records into a ``LedgerSnapshot``."""
        snapshot = build_snapshot(accounts, entries)
        logger.info(
            "ledger_snapshot_built",
            extra={
                "account_count": len(snapshot.accounts),
                "entry_count": len(snapshot.entries),
            },
        )
        return snapshot

    def receivables(
        self,
        invoices: Iterable[Any] | None,
        students: Iterable[Any] | None,
        grades: Iterable[Any] | None = (),
        stages: Iterable[Any] | None = (),
        classes: Iterable[Any] | None = (),
        fee_heads: Iterable[Any] | None = (),
        fee_items: Iterable[Any] | None = (),
    ) -> ReceivablesContext:
        """Adapt raw receivables records into a ``ReceivablesContext``."""
        return build_receivables_context(
            invoices,
            students,
            grades,
            stages,
            classes,
            fee_heads,
            fee_items,
            approved_statuses=self._config.approved_invoice_statuses,
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def journal(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> JournalReport:
        """Journal listing of the filtered POSTED entries."""
        report = self._run(ReportType.JOURNAL, snapshot, criteria)
        self._log_generated(
            ReportType.JOURNAL,
            report,
            entry_count=report.entry_count,
            total_debit=report.total_debit,
            total_credit=report.total_credit,
        )
        return report

    def general_ledger(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
        opening_balance: Decimal | None = None,
    ) -> GeneralLedgerReport:
        """
        Running balance of the account selected in ``criteria``.

        Args:
            opening_balance: Overrides the configured opening-balance mode.
        """
        report = self._run(
            ReportType.GENERAL_LEDGER, snapshot, criteria,
            opening_balance=opening_balance,
        )
        self._log_generated(
            ReportType.GENERAL_LEDGER,
            report,
            account_id=report.account_id,
            opening_balance=report.opening_balance,
            closing_balance=report.closing_balance,
        )
        return report

    def trial_balance(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> TrialBalanceReport:
        report = self._run(ReportType.TRIAL_BALANCE, snapshot, criteria)
        self._log_generated(
            ReportType.TRIAL_BALANCE,
            report,
            is_balanced=report.is_balanced,
            total_debit=report.total_debit,
            total_credit=report.total_credit,
        )
        return report

    def income_statement(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> IncomeStatementReport:
        report = self._run(ReportType.INCOME_STATEMENT, snapshot, criteria)
        self._log_generated(ReportType.INCOME_STATEMENT, report, net=report.net)
        return report

    def balance_sheet(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> BalanceSheetReport:
        report = self._run(ReportType.BALANCE_SHEET, snapshot, criteria)
        self._log_generated(
            ReportType.BALANCE_SHEET,
            report,
            balanced=report.balanced,
            difference=report.difference,
        )
        if not report.balanced and not report.no_data:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={
                    "as_of_date": report.as_of_date,
                    "difference": report.difference,
                },
            )
        return report

    def cash_flow(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> CashFlowReport:
        report = self._run(ReportType.CASH_FLOW, snapshot, criteria)
        self._log_generated(
            ReportType.CASH_FLOW,
            report,
            opening_cash=report.opening_cash,
            closing_cash=report.closing_cash,
            unreconciled_entries=len(report.unreconciled_entries),
        )
        return report

    def revenue_expense(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> RevenueExpenseReport:
        report = self._run(ReportType.REVENUE_EXPENSE, snapshot, criteria)
        self._log_generated(
            ReportType.REVENUE_EXPENSE,
            report,
            net=report.net,
            skipped_entries=len(report.skipped_entries),
        )
        return report

    def opening_balance_preview(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> OpeningBalancePreview:
        report = self._run(ReportType.OPENING_BALANCE_PREVIEW, snapshot, criteria)
        self._log_generated(
            ReportType.OPENING_BALANCE_PREVIEW,
            report,
            is_balanced=report.is_balanced,
        )
        return report

    def ar_summary(
        self,
        receivables: ReceivablesContext,
        academic_year_id: str | None,
    ) -> ARSummaryReport:
        """Receivables summary by grade x fee item for one academic year."""
        with LogContext.bind(
            report_type=ReportType.AR_SUMMARY.value,
            academic_year_id=academic_year_id,
        ):
            report = build_ar_summary(
                receivables, academic_year_id, self._config, clock=self._clock,
            )
            self._log_generated(
                ReportType.AR_SUMMARY,
                report,
                grade_count=len(report.matrix),
                total_net=report.total_net,
            )
        return report

    def student_balances(
        self,
        receivables: ReceivablesContext,
        academic_year_id: str | None = None,
    ) -> StudentBalancesReport:
        """Due, paid and balance per student, split into debtors and creditors."""
        with LogContext.bind(
            report_type=ReportType.STUDENT_BALANCES.value,
            academic_year_id=academic_year_id,
        ):
            report = build_student_balances(
                receivables, academic_year_id, self._config, clock=self._clock,
            )
            self._log_generated(
                ReportType.STUDENT_BALANCES,
                report,
                debtor_count=len(report.debtors),
                creditor_count=len(report.creditors),
            )
        return report

    def parents_overdue(
        self,
        receivables: ReceivablesContext,
        criteria: ParentsOverdueFilter | Mapping[str, Any] | None = None,
    ) -> ParentsOverdueReport:
        """Balance per parent across their children, largest balance first."""
        if not isinstance(criteria, ParentsOverdueFilter):
            criteria = ParentsOverdueFilter.from_dict(criteria)
        with LogContext.bind(
            report_type=ReportType.PARENTS_OVERDUE.value,
            academic_year_id=criteria.academic_year_id,
        ):
            report = build_parents_overdue(
                receivables, criteria, self._config, clock=self._clock,
            )
            self._log_generated(
                ReportType.PARENTS_OVERDUE,
                report,
                late_count=sum(1 for r in report.rows if r.status is PaymentStatus.LATE),
                total_balance=report.total_balance,
            )
        return report

    def validate(
        self,
        snapshot: LedgerSnapshot | None = None,
        criteria: Criteria = None,
    ) -> ValidationResult:
        """Balance-check the POSTED entries selected by ``criteria``."""
        selection = filter_entries(
            self._resolve_snapshot(snapshot).entries,
            self._criteria(criteria),
            date_policy=self._config.date_policy,
            clock=self._clock,
        )
        result = validate_entries(selection.entries, self._config.balance_tolerance)
        logger.info(
            "ledger_validated",
            extra={
                "entry_count": len(selection.entries),
                "unbalanced_count": len(result.unbalanced),
            },
        )
        return result

    def build_many(
        self,
        snapshot: LedgerSnapshot | None,
        requests: Mapping[ReportType | str, Criteria] | Iterable[ReportType | str],
        max_workers: int | None = None,
    ) -> dict[ReportType, Any]:
        """
        Build several ledger statements concurrently.

        ``requests`` maps each report type to its criteria; a plain iterable
        of report types uses empty criteria for each.  Statements are
        independent pure computations over the same immutable snapshot, so
        they run on a thread pool without coordination.

        Raises:
            ReportInputError: for a report type that needs more than a
                ledger snapshot (receivables reports) or an unknown name.
        """
        resolved = self._resolve_snapshot(snapshot)
        if isinstance(requests, Mapping):
            items = list(requests.items())
        else:
            items = [(r, None) for r in requests]

        jobs: list[tuple[ReportType, ReportFilter]] = []
        for raw_type, criteria in items:
            try:
                report_type = ReportType(raw_type)
            except ValueError:
                raise ReportInputError("requests", f"unknown report type {raw_type!r}") from None
            if report_type not in _LEDGER_BUILDERS:
                raise ReportInputError(
                    "requests", f"{report_type.value} needs receivables input",
                )
            jobs.append((report_type, self._criteria(criteria)))

        workers = max_workers or self._config.max_workers
        methods = {
            ReportType.JOURNAL: self.journal,
            ReportType.GENERAL_LEDGER: self.general_ledger,
            ReportType.TRIAL_BALANCE: self.trial_balance,
            ReportType.INCOME_STATEMENT: self.income_statement,
            ReportType.BALANCE_SHEET: self.balance_sheet,
            ReportType.CASH_FLOW: self.cash_flow,
            ReportType.REVENUE_EXPENSE: self.revenue_expense,
            ReportType.OPENING_BALANCE_PREVIEW: self.opening_balance_preview,
        }
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                report_type: executor.submit(methods[report_type], resolved, flt)
                for report_type, flt in jobs
            }
            # future.result() re-raises if a builder failed
            results = {report_type: f.result() for report_type, f in futures.items()}

        logger.info(
            "reports_built",
            extra={
                "report_types": [t.value for t in results],
                "max_workers": workers,
            },
        )
        return results

    @staticmethod
    def to_dict(report: Any) -> Any:
        """Render any report to JSON-friendly primitives."""
        return render_to_dict(report)
