"""Aggregator core tests, run against the sample ledger."""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.entities import (
    Account,
    AccountType,
    EntryStatus,
    JournalEntry,
    JournalLine,
)
from ledger_reporting.aggregation import (
    AccountTotals,
    aggregate,
    bucket_by_type,
    natural_amount,
    net_income,
    running_balance,
)
from ledger_reporting.filters import AccountLevel, filter_entries


@pytest.fixture
def posted(ledger):
    return filter_entries(ledger.entries).entries


class TestAggregate:

    def test_balances_per_account(self, ledger, posted):
        aggregation = aggregate(posted, ledger.account_index)
        balances = {t.account_id: t.balance for t in aggregation}
        assert balances == {
            "acc-cash": Decimal("8000"),
            "acc-capital": Decimal("-10000"),
            "acc-tuition": Decimal("-5000"),
            "acc-ar-g1": Decimal("2000"),
            "acc-salaries": Decimal("1500"),
            "acc-bank": Decimal("2500"),
            "acc-bus": Decimal("5000"),
            "acc-loan": Decimal("-4000"),
        }
        assert aggregation.missing_account_lines == 0

    def test_first_seen_order(self, ledger, posted):
        aggregation = aggregate(posted, ledger.account_index)
        assert [t.account_id for t in aggregation][:3] == [
            "acc-cash", "acc-capital", "acc-tuition",
        ]

    def test_unknown_account_lines_counted_not_raised(self, ledger):
        entry = JournalEntry(
            id="x",
            number="1",
            entry_date=date(2024, 1, 1),
            status=EntryStatus.POSTED,
            lines=(
                JournalLine("acc-cash", debit=Decimal("5")),
                JournalLine("acc-ghost", credit=Decimal("5")),
            ),
        )
        aggregation = aggregate([entry], ledger.account_index)
        assert aggregation.missing_account_lines == 1
        assert len(aggregation) == 1

    def test_account_restriction(self, ledger, posted):
        aggregation = aggregate(posted, ledger.account_index, account_id="acc-bank")
        assert list(aggregation.totals) == ["acc-bank"]
        assert aggregation.get("acc-bank") == AccountTotals(
            "acc-bank", Decimal("4000"), Decimal("1500"),
        )

    def test_level_restriction(self, ledger, posted):
        sub = aggregate(posted, ledger.account_index, account_level=AccountLevel.SUB)
        assert list(sub.totals) == ["acc-ar-g1"]
        main = aggregate(posted, ledger.account_index, account_level=AccountLevel.MAIN)
        assert "acc-ar-g1" not in main.totals

    def test_get_unknown_is_zero(self, ledger):
        assert aggregate([], ledger.account_index).get("acc-cash").balance == Decimal("0")

    def test_amounts_are_not_rounded(self):
        accounts = {"a": Account("a", "1", "A", AccountType.ASSET)}
        entry = JournalEntry(
            id="x",
            number="1",
            entry_date=date(2024, 1, 1),
            status=EntryStatus.POSTED,
            lines=(JournalLine("a", debit=Decimal("0.005")),) * 3,
        )
        assert aggregate([entry], accounts).get("a").debit == Decimal("0.015")


class TestRunningBalance:

    def test_cash_running_balance(self, posted):
        rows = running_balance(Decimal("0"), posted, "acc-cash")
        assert [r.entry_id for r in rows] == ["je-1", "je-2", "je-5"]
        assert [r.balance_after for r in rows] == [
            Decimal("10000"), Decimal("13000"), Decimal("8000"),
        ]

    def test_starts_from_opening(self, posted):
        rows = running_balance(Decimal("100"), posted, "acc-bank")
        assert rows[-1].balance_after == Decimal("2600")

    def test_description_is_the_entry_description(self):
        entry = JournalEntry(
            id="x",
            number="1",
            entry_date=date(2024, 1, 1),
            status=EntryStatus.POSTED,
            description="Header",
            lines=(
                JournalLine("a", debit=Decimal("1"), note="Line note"),
                JournalLine("a", credit=Decimal("1")),
            ),
        )
        rows = running_balance(Decimal("0"), [entry], "a")
        assert [r.description for r in rows] == ["Header", "Header"]


class TestBucketing:

    def test_bucket_by_type(self, ledger, posted):
        buckets = bucket_by_type(aggregate(posted, ledger.account_index), ledger.account_index)
        assert {a.id for a, _ in buckets[AccountType.ASSET]} == {
            "acc-cash", "acc-bank", "acc-ar-g1", "acc-bus",
        }
        assert [a.id for a, _ in buckets[AccountType.REVENUE]] == ["acc-tuition"]

    def test_untyped_accounts_are_left_out(self):
        accounts = {"odd": Account("odd", "9", "Odd", None)}
        entry = JournalEntry(
            id="x",
            number="1",
            entry_date=date(2024, 1, 1),
            status=EntryStatus.POSTED,
            lines=(JournalLine("odd", debit=Decimal("1")),),
        )
        buckets = bucket_by_type(aggregate([entry], accounts), accounts)
        assert all(not pairs for pairs in buckets.values())

    @pytest.mark.parametrize(
        "account_type, expected",
        [
            (AccountType.ASSET, Decimal("30")),
            (AccountType.EXPENSE, Decimal("30")),
            (AccountType.LIABILITY, Decimal("-30")),
            (AccountType.EQUITY, Decimal("-30")),
            (AccountType.REVENUE, Decimal("-30")),
        ],
    )
    def test_natural_amount(self, account_type, expected):
        totals = AccountTotals("a", Decimal("50"), Decimal("20"))
        assert natural_amount(account_type, totals) == expected

    def test_net_income(self, ledger, posted):
        aggregation = aggregate(posted, ledger.account_index)
        assert net_income(aggregation, ledger.account_index) == Decimal("3500")
