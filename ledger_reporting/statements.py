"""
Pure ledger statement builders.

These functions turn a ``LedgerSnapshot`` plus a ``ReportFilter`` into the
report models of ``ledger_reporting.models``.  ZERO I/O.  ZERO side
effects.

All monetary values are Decimal.  All inputs/outputs are frozen dataclasses.

Functions in this module follow the ledger_kernel/domain/ purity convention:
- No database access
- No file I/O
- The clock is only read for metadata timestamps and for the "today"
  fallback applied to undated entries under ``DatePolicy.NOW``
- Deterministic: same inputs (and clock) always produce same outputs

Every summation goes through ``aggregation.aggregate``; rounding to the
configured precision happens here, once, at the result boundary.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entities import Account, AccountType, LedgerSnapshot
from ledger_kernel.domain.money import ZERO, round_money, sum_money
from ledger_reporting.aggregation import (
    Aggregation,
    aggregate,
    bucket_by_type,
    natural_amount,
    net_income,
    running_balance,
)
from ledger_reporting.config import OpeningBalanceMode, ReportingConfig
from ledger_reporting.filters import FilterResult, ReportFilter, filter_entries
from ledger_reporting.models import (
    BalanceSheetReport,
    BalanceSheetRow,
    BalanceSheetSection,
    BalanceType,
    CashFlowCategory,
    CashFlowReport,
    CashFlowRow,
    CashFlowSection,
    GeneralLedgerReport,
    IncomeStatementReport,
    JournalReport,
    JournalRow,
    OpeningBalanceLine,
    OpeningBalancePreview,
    ReportAnomalies,
    ReportMetadata,
    ReportType,
    RevenueExpenseReport,
    StatementRow,
    TrialBalanceReport,
    TrialBalanceRow,
)
from ledger_reporting.validation import validate_entries

CURRENT_EARNINGS_ID = "__current_earnings__"
CURRENT_EARNINGS_LABEL = "Current period earnings"


# =========================================================================
# Helpers
# =========================================================================


def build_metadata(
    report_type: ReportType,
    config: ReportingConfig,
    criteria: ReportFilter,
    clock: Clock,
) -> ReportMetadata:
    """Metadata for one report, stamped from the injected clock."""
    return ReportMetadata(
        report_type=report_type,
        entity_name=config.entity_name,
        currency=config.default_currency,
        generated_at=clock.now().isoformat(),
        period_start=criteria.date_from,
        period_end=criteria.date_to,
        as_of_date=criteria.as_of,
        filters=criteria.echo(),
    )


def _defaults(
    report_type: ReportType,
    criteria: ReportFilter | None,
    config: ReportingConfig | None,
    metadata: ReportMetadata | None,
    clock: Clock | None,
) -> tuple[ReportFilter, ReportingConfig, ReportMetadata, Clock]:
    criteria = criteria or ReportFilter()
    config = config or ReportingConfig()
    clock = clock or SystemClock()
    metadata = metadata or build_metadata(report_type, config, criteria, clock)
    return criteria, config, metadata, clock


def _select(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter,
    config: ReportingConfig,
    clock: Clock,
) -> FilterResult:
    return filter_entries(
        snapshot.entries,
        criteria,
        date_policy=config.date_policy,
        clock=clock,
    )


def _anomalies(
    selection: FilterResult,
    config: ReportingConfig,
    missing_account_lines: int = 0,
) -> ReportAnomalies:
    validation = validate_entries(selection.entries, config.balance_tolerance)
    return ReportAnomalies(
        missing_account_lines=missing_account_lines,
        unbalanced_entries=validation.unbalanced,
        undated_entries=selection.undated_entries,
    )


def _money(config: ReportingConfig):
    places = config.display_precision
    return lambda value: round_money(value, places)


def _statement_rows(
    pairs,
    account_type: AccountType,
    money,
) -> tuple[StatementRow, ...]:
    rows = []
    for account, totals in pairs:
        amount = money(natural_amount(account_type, totals))
        if amount == ZERO:
            continue
        rows.append(
            StatementRow(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                amount=amount,
            )
        )
    return tuple(sorted(rows, key=lambda r: r.account_code))


def _income_sections(
    aggregation: Aggregation,
    accounts: Mapping[str, Account],
    money,
) -> tuple[tuple[StatementRow, ...], tuple[StatementRow, ...]]:
    buckets = bucket_by_type(aggregation, accounts)
    revenue = _statement_rows(buckets[AccountType.REVENUE], AccountType.REVENUE, money)
    expenses = _statement_rows(buckets[AccountType.EXPENSE], AccountType.EXPENSE, money)
    return revenue, expenses


# =========================================================================
# Journal
# =========================================================================


def build_journal(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> JournalReport:
    """
    Flatten filtered entries into ``(entry, line)`` rows.

    ``line_index`` starts at 1 and increases across the whole listing.
    Lines on unknown accounts are listed with their raw id as label and
    counted as anomalies.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.JOURNAL, criteria, config, metadata, clock,
    )
    money = _money(config)
    selection = _select(snapshot, criteria, config, clock)

    rows: list[JournalRow] = []
    missing = 0
    for entry in selection.entries:
        for line in entry.lines:
            account = snapshot.account(line.account_id)
            if account is None:
                missing += 1
            rows.append(
                JournalRow(
                    line_index=len(rows) + 1,
                    entry_id=entry.id,
                    entry_number=entry.number,
                    entry_date=entry.entry_date,
                    source=entry.source or config.default_source_label,
                    description=entry.description,
                    account_id=line.account_id,
                    account_label=account.label if account else line.account_id,
                    debit=money(line.debit),
                    credit=money(line.credit),
                    note=line.note,
                )
            )

    return JournalReport(
        metadata=metadata,
        rows=tuple(rows),
        entry_count=len(selection.entries),
        total_debit=money(sum_money(r.debit for r in rows)),
        total_credit=money(sum_money(r.credit for r in rows)),
        no_data=not selection.entries,
        anomalies=_anomalies(selection, config, missing),
    )


# =========================================================================
# General Ledger
# =========================================================================


def compute_opening_balance(
    snapshot: LedgerSnapshot,
    account: Account,
    criteria: ReportFilter,
    config: ReportingConfig,
    clock: Clock,
) -> Decimal:
    """
    Opening balance for the General Ledger.

    CARRIED: the account's stored balance.
    HISTORY: debit - credit of all posted lines on the account dated
    strictly before ``criteria.date_from`` (zero without a start date).
    """
    if config.opening_balance_mode is OpeningBalanceMode.CARRIED:
        return account.balance
    if criteria.date_from is None:
        return ZERO
    prior = filter_entries(
        snapshot.entries,
        ReportFilter(account_id=account.id, before=criteria.date_from),
        date_policy=config.date_policy,
        clock=clock,
    )
    return aggregate(prior.entries, snapshot.account_index, account_id=account.id).get(
        account.id
    ).balance


def build_general_ledger(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
    opening_balance: Decimal | None = None,
) -> GeneralLedgerReport:
    """
    Running balance for the single account in ``criteria.account_id``.

    No account selected, an unknown account, or no matching lines all
    yield ``no_data=True``; none of them raise.  An explicit
    ``opening_balance`` overrides the configured opening-balance mode.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.GENERAL_LEDGER, criteria, config, metadata, clock,
    )
    money = _money(config)
    account = snapshot.account(criteria.account_id)
    if account is None:
        opening = money(opening_balance) if opening_balance is not None else ZERO
        return GeneralLedgerReport(
            metadata=metadata,
            account_id=criteria.account_id,
            account_code=None,
            account_name=None,
            opening_balance=opening,
            rows=(),
            total_debit=ZERO,
            total_credit=ZERO,
            closing_balance=opening,
            no_data=True,
        )

    if opening_balance is None:
        opening_balance = compute_opening_balance(
            snapshot, account, criteria, config, clock,
        )
    selection = _select(snapshot, criteria, config, clock)
    rows = tuple(
        dataclasses.replace(
            row,
            debit=money(row.debit),
            credit=money(row.credit),
            balance_after=money(row.balance_after),
        )
        for row in running_balance(opening_balance, selection.entries, account.id)
    )
    opening = money(opening_balance)

    return GeneralLedgerReport(
        metadata=metadata,
        account_id=account.id,
        account_code=account.code,
        account_name=account.name,
        opening_balance=opening,
        rows=rows,
        total_debit=money(sum_money(r.debit for r in rows)),
        total_credit=money(sum_money(r.credit for r in rows)),
        closing_balance=rows[-1].balance_after if rows else opening,
        no_data=not rows,
        anomalies=_anomalies(selection, config),
    )


# =========================================================================
# Trial Balance
# =========================================================================


def build_trial_balance(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> TrialBalanceReport:
    """
    Per-account debit/credit totals over the filtered period.

    ``balance`` is the magnitude of ``debit - credit`` and ``balance_type``
    its side; ``signed_balance`` keeps the sign.  Rows are sorted by
    account code.  Accounts with an unknown type are still listed.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.TRIAL_BALANCE, criteria, config, metadata, clock,
    )
    money = _money(config)
    selection = _select(snapshot, criteria, config, clock)
    aggregation = aggregate(
        selection.entries,
        snapshot.account_index,
        account_id=criteria.account_id,
        account_level=criteria.account_level,
    )

    rows: list[TrialBalanceRow] = []
    for totals in aggregation:
        account = snapshot.account_index[totals.account_id]
        debit = money(totals.debit)
        credit = money(totals.credit)
        signed = debit - credit
        rows.append(
            TrialBalanceRow(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type.value if account.account_type else None,
                debit=debit,
                credit=credit,
                balance=abs(signed),
                balance_type=BalanceType.DEBIT if signed >= 0 else BalanceType.CREDIT,
                signed_balance=signed,
            )
        )
    rows.sort(key=lambda r: r.account_code)

    total_debit = sum_money(r.debit for r in rows)
    total_credit = sum_money(r.credit for r in rows)
    return TrialBalanceReport(
        metadata=metadata,
        rows=tuple(rows),
        total_debit=total_debit,
        total_credit=total_credit,
        total_balance=sum_money(r.signed_balance for r in rows),
        is_balanced=total_debit == total_credit,
        no_data=not rows,
        anomalies=_anomalies(selection, config, aggregation.missing_account_lines),
    )


# =========================================================================
# Income Statement
# =========================================================================


def build_income_statement(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> IncomeStatementReport:
    """
    Revenue (credit - debit) and expense (debit - credit) per account.

    Zero rows are dropped.  ``net = total_revenue - total_expense``.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.INCOME_STATEMENT, criteria, config, metadata, clock,
    )
    money = _money(config)
    selection = _select(snapshot, criteria, config, clock)
    aggregation = aggregate(selection.entries, snapshot.account_index)
    revenue, expenses = _income_sections(aggregation, snapshot.account_index, money)

    total_revenue = sum_money(r.amount for r in revenue)
    total_expense = sum_money(r.amount for r in expenses)
    return IncomeStatementReport(
        metadata=metadata,
        revenue=revenue,
        expenses=expenses,
        total_revenue=total_revenue,
        total_expense=total_expense,
        net=total_revenue - total_expense,
        no_data=not revenue and not expenses,
        anomalies=_anomalies(selection, config, aggregation.missing_account_lines),
    )


def build_revenue_expense(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> RevenueExpenseReport:
    """
    Revenue and expense for a required period, optionally one account.

    Unlike the income statement, entries explicitly flagged unbalanced
    upstream are left out; their ids are listed in ``skipped_entries``.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.REVENUE_EXPENSE, criteria, config, metadata, clock,
    )
    if not criteria.has_period:
        return RevenueExpenseReport(
            metadata=metadata,
            account_id=criteria.account_id,
            revenue=(),
            expenses=(),
            total_revenue=ZERO,
            total_expense=ZERO,
            net=ZERO,
            skipped_entries=(),
            no_data=True,
        )

    money = _money(config)
    selection = _select(snapshot, criteria, config, clock)
    kept = tuple(e for e in selection.entries if e.is_balanced is not False)
    skipped = tuple(e.id for e in selection.entries if e.is_balanced is False)
    aggregation = aggregate(
        kept, snapshot.account_index, account_id=criteria.account_id,
    )
    revenue, expenses = _income_sections(aggregation, snapshot.account_index, money)

    total_revenue = sum_money(r.amount for r in revenue)
    total_expense = sum_money(r.amount for r in expenses)
    return RevenueExpenseReport(
        metadata=metadata,
        account_id=criteria.account_id,
        revenue=revenue,
        expenses=expenses,
        total_revenue=total_revenue,
        total_expense=total_expense,
        net=total_revenue - total_expense,
        skipped_entries=skipped,
        no_data=not revenue and not expenses,
        anomalies=_anomalies(selection, config, aggregation.missing_account_lines),
    )


# =========================================================================
# Balance Sheet
# =========================================================================


_SECTION_LABELS = {
    AccountType.ASSET: "Assets",
    AccountType.LIABILITY: "Liabilities",
    AccountType.EQUITY: "Equity",
}


def build_balance_sheet(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> BalanceSheetReport:
    """
    Cumulative position of asset, liability and equity accounts.

    Includes every posted entry dated on or before ``as_of`` (falling back
    to ``date_to``; without either, the whole ledger).  Each row carries
    the signed ``balance`` (debit - credit) and the section-natural
    ``amount``; section totals sum ``amount``.

    Revenue and expense not yet closed to equity appear as a synthetic
    equity row when ``config.include_current_earnings`` is set, which is
    what makes ``assets == liabilities + equity`` hold on an unclosed
    ledger.
    """
    criteria = criteria or ReportFilter()
    as_of = criteria.as_of or criteria.date_to
    criteria = criteria.replace(date_from=None, date_to=None, as_of=as_of)
    criteria, config, metadata, clock = _defaults(
        ReportType.BALANCE_SHEET, criteria, config, metadata, clock,
    )
    money = _money(config)
    selection = _select(snapshot, criteria, config, clock)
    aggregation = aggregate(
        selection.entries,
        snapshot.account_index,
        account_level=criteria.account_level,
    )

    sections: dict[AccountType, list[BalanceSheetRow]] = {t: [] for t in _SECTION_LABELS}
    for account in snapshot.accounts:
        if account.account_type not in _SECTION_LABELS:
            continue
        if snapshot.account_index.get(account.id) is not account:
            continue
        if not criteria.account_level.includes(account):
            continue
        totals = aggregation.get(account.id)
        amount = money(natural_amount(account.account_type, totals))
        if amount == ZERO and not criteria.show_zero:
            continue
        sections[account.account_type].append(
            BalanceSheetRow(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                account_type=account.account_type.value,
                balance=money(totals.balance),
                amount=amount,
            )
        )

    earnings = ZERO
    if config.include_current_earnings:
        earnings = money(net_income(aggregation, snapshot.account_index))
        if earnings != ZERO or criteria.show_zero:
            sections[AccountType.EQUITY].append(
                BalanceSheetRow(
                    account_id=CURRENT_EARNINGS_ID,
                    account_code="",
                    account_name=CURRENT_EARNINGS_LABEL,
                    account_type=AccountType.EQUITY.value,
                    balance=-earnings,
                    amount=earnings,
                )
            )

    def _section(account_type: AccountType) -> BalanceSheetSection:
        rows = sorted(
            sections[account_type],
            key=lambda r: (r.account_id == CURRENT_EARNINGS_ID, r.account_code),
        )
        return BalanceSheetSection(
            label=_SECTION_LABELS[account_type],
            rows=tuple(rows),
            total=sum_money(r.amount for r in rows),
        )

    assets = _section(AccountType.ASSET)
    liabilities = _section(AccountType.LIABILITY)
    equity = _section(AccountType.EQUITY)
    difference = money(assets.total - (liabilities.total + equity.total))

    return BalanceSheetReport(
        metadata=metadata,
        as_of_date=as_of,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        current_earnings=earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=equity.total,
        total_liabilities_and_equity=liabilities.total + equity.total,
        difference=difference,
        balanced=difference == ZERO,
        no_data=not selection.entries,
        anomalies=_anomalies(selection, config, aggregation.missing_account_lines),
    )


# =========================================================================
# Cash Flow
# =========================================================================


def is_cash_account(account: Account | None, config: ReportingConfig) -> bool:
    """Asset account flagged cash, or tagged with a configured cash tag."""
    if account is None or account.account_type is not AccountType.ASSET:
        return False
    return account.is_cash or config.is_cash_tag(account.system_tag)


def classify_cash_counterpart(
    account: Account,
    config: ReportingConfig,
) -> CashFlowCategory:
    """
    Cash-flow section for the counter-account of a cash movement.

    FIXED-subtype assets are investing, liabilities and equity are
    financing, everything else (revenue, expense, other assets, untyped)
    is operating.
    """
    if account.account_type is AccountType.ASSET:
        if account.sub_type and account.sub_type.upper() in config.fixed_asset_sub_types:
            return CashFlowCategory.INVESTING
        return CashFlowCategory.OPERATING
    if account.account_type in (AccountType.LIABILITY, AccountType.EQUITY):
        return CashFlowCategory.FINANCING
    return CashFlowCategory.OPERATING


def _empty_cash_flow(metadata: ReportMetadata) -> CashFlowReport:
    return CashFlowReport(
        metadata=metadata,
        operating=CashFlowSection(CashFlowCategory.OPERATING),
        investing=CashFlowSection(CashFlowCategory.INVESTING),
        financing=CashFlowSection(CashFlowCategory.FINANCING),
        opening_cash=ZERO,
        net_change=ZERO,
        closing_cash=ZERO,
        no_data=True,
    )


def build_cash_flow(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> CashFlowReport:
    """
    Cash movements over ``[date_from, date_to]`` by counter-account section.

    For every entry with at least one cash line, each non-cash line
    becomes a row with ``inflow = max(0, credit - debit)`` and
    ``outflow = max(0, debit - credit)``.  Opening cash is the sum of cash
    line movements dated strictly before ``date_from``;
    ``closing_cash = opening_cash + Σ section nets``.

    An in-period entry whose counter lines do not net to its cash movement
    (an unbalanced entry, or a counter line on an unknown account) is
    listed in ``unreconciled_entries``.  The gap is summed in
    ``unreconciled_amount``, by which the next period's opening differs
    from this closing.

    Both period bounds are required; without them the report is
    ``no_data`` with zero totals.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.CASH_FLOW, criteria, config, metadata, clock,
    )
    if not criteria.has_period:
        return _empty_cash_flow(metadata)

    money = _money(config)
    window = criteria.replace(date_from=None, account_id=None)
    selection = _select(snapshot, window, config, clock)

    opening = ZERO
    missing = 0
    unreconciled: dict[str, Decimal] = {}
    rows: dict[CashFlowCategory, list[CashFlowRow]] = {c: [] for c in CashFlowCategory}
    for entry in selection.entries:
        resolved = [(line, snapshot.account(line.account_id)) for line in entry.lines]
        missing += sum(1 for _, account in resolved if account is None)
        cash_lines = [line for line, account in resolved if is_cash_account(account, config)]
        if not cash_lines:
            continue
        cash_delta = sum_money(line.delta for line in cash_lines)
        if entry.entry_date < criteria.date_from:
            opening += cash_delta
            continue
        explained = ZERO
        for line, account in resolved:
            if account is None or is_cash_account(account, config):
                continue
            delta = line.delta
            explained -= delta
            rows[classify_cash_counterpart(account, config)].append(
                CashFlowRow(
                    entry_id=entry.id,
                    entry_number=entry.number,
                    entry_date=entry.entry_date,
                    account_id=account.id,
                    account_label=account.label,
                    inflow=money(-delta) if delta < 0 else ZERO,
                    outflow=money(delta) if delta > 0 else ZERO,
                )
            )
        if explained != cash_delta:
            unreconciled[entry.id] = cash_delta - explained

    def _section(category: CashFlowCategory) -> CashFlowSection:
        section_rows = tuple(rows[category])
        total_in = sum_money(r.inflow for r in section_rows)
        total_out = sum_money(r.outflow for r in section_rows)
        return CashFlowSection(
            category=category,
            rows=section_rows,
            total_inflow=total_in,
            total_outflow=total_out,
            net=total_in - total_out,
        )

    operating = _section(CashFlowCategory.OPERATING)
    investing = _section(CashFlowCategory.INVESTING)
    financing = _section(CashFlowCategory.FINANCING)
    opening_cash = money(opening)
    net_change = operating.net + investing.net + financing.net

    in_period = FilterResult(
        entries=tuple(e for e in selection.entries if e.entry_date >= criteria.date_from),
        undated_entries=selection.undated_entries,
    )
    return CashFlowReport(
        metadata=metadata,
        operating=operating,
        investing=investing,
        financing=financing,
        opening_cash=opening_cash,
        net_change=net_change,
        closing_cash=opening_cash + net_change,
        no_data=not any(rows.values()),
        anomalies=_anomalies(in_period, config, missing),
        unreconciled_entries=tuple(unreconciled),
        unreconciled_amount=money(sum_money(unreconciled.values())),
    )


# =========================================================================
# Opening balance preview
# =========================================================================


def build_opening_balance_preview(
    snapshot: LedgerSnapshot,
    criteria: ReportFilter | None = None,
    config: ReportingConfig | None = None,
    metadata: ReportMetadata | None = None,
    *,
    clock: Clock | None = None,
) -> OpeningBalancePreview:
    """
    Carried account balances laid out as an opening journal entry.

    Positive balances go to the debit side, negative ones to the credit
    side; accounts with a zero balance are left out.
    """
    criteria, config, metadata, clock = _defaults(
        ReportType.OPENING_BALANCE_PREVIEW, criteria, config, metadata, clock,
    )
    money = _money(config)
    lines = []
    for account in snapshot.accounts:
        if not criteria.account_level.includes(account):
            continue
        balance = money(account.balance)
        if balance == ZERO:
            continue
        lines.append(
            OpeningBalanceLine(
                account_id=account.id,
                account_code=account.code,
                account_name=account.name,
                debit=balance if balance > 0 else ZERO,
                credit=-balance if balance < 0 else ZERO,
            )
        )
    lines.sort(key=lambda l: l.account_code)
    total_debit = sum_money(l.debit for l in lines)
    total_credit = sum_money(l.credit for l in lines)
    return OpeningBalancePreview(
        metadata=metadata,
        lines=tuple(lines),
        total_debit=total_debit,
        total_credit=total_credit,
        is_balanced=total_debit == total_credit,
        no_data=not lines,
    )


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(render_to_dict(k)): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
