"""
Aggregator Core (``ledger_reporting.aggregation``).

Responsibility
--------------
Account-keyed debit/credit summation, running balances, and account-type
bucketing.  Trial Balance, Income Statement, Balance Sheet and the
Revenue & Expense report all read the same ``Aggregation``; none of them
sums lines on its own.

Invariants enforced
-------------------
* One linear pass over the filtered entries and their lines.
* Lines whose account id does not resolve are skipped and counted in
  ``missing_account_lines``; they never raise.
* Amounts are summed exactly; rounding happens in the statement builders.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from ledger_kernel.domain.entities import Account, AccountType, JournalEntry
from ledger_kernel.domain.money import ZERO, sum_money
from ledger_reporting.filters import AccountLevel, sort_chronologically
from ledger_reporting.models import LedgerRow


@dataclass(frozen=True)
class AccountTotals:
    """Debit and credit sums for one account."""

    account_id: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class Aggregation:
    """
    Result of one aggregation pass.

    ``totals`` preserves the order in which accounts were first seen.
    """

    totals: dict[str, AccountTotals] = field(default_factory=dict)
    missing_account_lines: int = 0

    def get(self, account_id: str) -> AccountTotals:
        return self.totals.get(account_id) or AccountTotals(account_id)

    def __iter__(self):
        return iter(self.totals.values())

    def __len__(self) -> int:
        return len(self.totals)


def aggregate(
    entries: Iterable[JournalEntry],
    accounts: Mapping[str, Account],
    *,
    account_id: str | None = None,
    account_level: AccountLevel = AccountLevel.ALL,
) -> Aggregation:
    """
    Sum debits and credits per account.

    ``account_id`` restricts summation to that account's lines;
    ``account_level`` restricts it to main or sub accounts.  Lines skipped
    by those restrictions are not anomalies; only unresolved account ids
    are counted.
    """
    sums: dict[str, list[Decimal]] = {}
    missing = 0
    for entry in entries:
        for line in entry.lines:
            account = accounts.get(line.account_id)
            if account is None:
                missing += 1
                continue
            if account_id and line.account_id != account_id:
                continue
            if not account_level.includes(account):
                continue
            bucket = sums.setdefault(line.account_id, [ZERO, ZERO])
            bucket[0] += line.debit
            bucket[1] += line.credit

    return Aggregation(
        totals={
            acct_id: AccountTotals(acct_id, debit, credit)
            for acct_id, (debit, credit) in sums.items()
        },
        missing_account_lines=missing,
    )


def running_balance(
    opening_balance: Decimal,
    entries: Iterable[JournalEntry],
    account_id: str,
) -> tuple[LedgerRow, ...]:
    """
    One row per line on ``account_id``, in chronological order.

    ``balance_after = previous + debit - credit``, starting from
    ``opening_balance``.
    """
    rows: list[LedgerRow] = []
    balance = opening_balance
    for entry in sort_chronologically(entries):
        for line in entry.lines:
            if line.account_id != account_id:
                continue
            balance = balance + line.debit - line.credit
            rows.append(
                LedgerRow(
                    entry_id=entry.id,
                    entry_number=entry.number,
                    entry_date=entry.entry_date,
                    description=entry.description,
                    debit=line.debit,
                    credit=line.credit,
                    balance_after=balance,
                )
            )
    return tuple(rows)


def bucket_by_type(
    aggregation: Aggregation,
    accounts: Mapping[str, Account],
) -> dict[AccountType, tuple[tuple[Account, AccountTotals], ...]]:
    """Group totals by account type; untyped accounts are left out."""
    buckets: dict[AccountType, list[tuple[Account, AccountTotals]]] = {
        t: [] for t in AccountType
    }
    for totals in aggregation:
        account = accounts.get(totals.account_id)
        if account is None or account.account_type is None:
            continue
        buckets[account.account_type].append((account, totals))
    return {t: tuple(pairs) for t, pairs in buckets.items()}


def natural_amount(account_type: AccountType, totals: AccountTotals) -> Decimal:
    """
    Balance in the direction the account type normally grows.

    Asset and Expense grow on debit; Liability, Equity and Revenue on
    credit.
    """
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return totals.debit - totals.credit
    return totals.credit - totals.debit


def net_income(aggregation: Aggregation, accounts: Mapping[str, Account]) -> Decimal:
    """Sum of revenue (credit - debit) minus sum of expense (debit - credit)."""
    buckets = bucket_by_type(aggregation, accounts)
    revenue = sum_money(
        natural_amount(AccountType.REVENUE, t) for _, t in buckets[AccountType.REVENUE]
    )
    expense = sum_money(
        natural_amount(AccountType.EXPENSE, t) for _, t in buckets[AccountType.EXPENSE]
    )
    return revenue - expense
