"""
Pytest fixtures for the ledger reporting test suite.

The sample ledger is a small school year: owner capital, tuition collected
in cash and invoiced on account, salaries paid from the bank, a school bus
bought for cash and a bank loan.  Records use the mixed field names the
school application actually emits, so every fixture also exercises the
adapter.

Full-ledger balances (all POSTED entries):

    Cash          8000.00 Dr     Loan Payable    4000.00 Cr
    Bank          2500.00 Dr     Owner Capital  10000.00 Cr
    Grade 1 AR    2000.00 Dr     Tuition        5000.00 Cr
    School Bus    5000.00 Dr     Salaries       1500.00 Dr
"""

import json
import logging
from collections.abc import Generator
from datetime import UTC, datetime
from io import StringIO

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_reporting.adapters import build_receivables_context, build_snapshot
from ledger_reporting.config import ReportingConfig
from ledger_reporting.service import ReportingService

# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service, ledger):
            service.trial_balance(ledger)
            logs = captured_logs()
            assert any(r["message"] == "trial_balance_generated" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock / config fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock fixed at 2024-03-01 09:00 UTC."""
    return DeterministicClock(datetime(2024, 3, 1, 9, 0, 0, tzinfo=UTC))


@pytest.fixture
def config():
    return ReportingConfig(entity_name="Al Noor School")


@pytest.fixture
def service(deterministic_clock, config):
    return ReportingService(clock=deterministic_clock, config=config)


# =============================================================================
# Sample ledger
# =============================================================================


def raw_accounts() -> list[dict]:
    return [
        {"id": "acc-cash", "code": "1000", "name": "Cash", "type": "Asset", "systemTag": "cash"},
        {"Account_ID": "acc-bank", "code": "1010", "name": "Bank", "type": "asset", "isCash": True},
        {"id": "acc-ar", "code": "1100", "name": "Student Receivables", "type": "Asset"},
        {
            "id": "acc-ar-g1",
            "code": "1101",
            "name": "Grade 1 Receivables",
            "type": "Asset",
            "parentId": "acc-ar",
        },
        {"id": "acc-bus", "code": "1500", "name": "School Bus", "type": "Asset", "subType": "fixed"},
        {"id": "acc-loan", "code": "2000", "name": "Loan Payable", "type": "Liability"},
        {
            "id": "acc-capital",
            "code": "3000",
            "name": "Owner Capital",
            "type": "Equity",
            "balance": "-10000",
        },
        {"id": "acc-tuition", "code": "4000", "name": "Tuition Revenue", "type": "Revenue"},
        {"id": "acc-salaries", "code": "5000", "name": "Salaries", "type": "Expense"},
    ]


def _entry(number, entry_date, lines, status="POSTED", **extra) -> dict:
    record = {
        "id": f"je-{number}",
        "number": str(number),
        "date": entry_date,
        "status": status,
        "description": extra.pop("description", f"Entry {number}"),
        "lines": [
            {"accountId": account, "debit": debit, "credit": credit}
            for account, debit, credit in lines
        ],
    }
    record.update(extra)
    return record


def raw_entries() -> list[dict]:
    return [
        _entry(
            1, "2024-01-02",
            [("acc-cash", "10000", 0), ("acc-capital", 0, "10000")],
            source="capital",
        ),
        _entry(
            2, "2024-01-05T08:30:00",
            [("acc-cash", "3000.00", 0), ("acc-tuition", 0, "3000.00")],
            source="fees",
        ),
        _entry(
            3, "2024-01-10",
            [("acc-ar-g1", 2000, 0), ("acc-tuition", 0, 2000)],
            entryType="fees-invoice",
        ),
        _entry(
            4, "2024-01-15",
            [("acc-salaries", "1500", 0), ("acc-bank", 0, "1500")],
        ),
        _entry(
            5, "2024-02-01",
            [("acc-bus", "5000", 0), ("acc-cash", 0, "5000")],
            source="purchase",
        ),
        _entry(
            6, "2024-02-10",
            [("acc-bank", "4000", 0), ("acc-loan", 0, "4000")],
            source="loan",
        ),
        _entry(
            7, "2024-02-20",
            [("acc-cash", "999", 0), ("acc-tuition", 0, "999")],
            status="DRAFT",
        ),
    ]


@pytest.fixture
def ledger():
    """Snapshot of the sample ledger."""
    return build_snapshot(raw_accounts(), raw_entries())


# =============================================================================
# Sample receivables
# =============================================================================


def raw_receivables() -> dict[str, list[dict]]:
    return {
        "stages": [{"Stage_ID": "ST1", "Stage_Name": "Primary"}],
        "grades": [
            {"Grade_ID": "G1", "Grade_Name": "Grade 1", "Stage_ID": "ST1"},
            {"Grade_ID": "G2", "Grade_Name": "Grade 2", "Stage_ID": "ST1"},
        ],
        "classes": [
            {"Class_ID": "C2A", "Class_Name": "2-A", "Grade_ID": "G2"},
        ],
        "fee_heads": [{"id": "FH-T", "name": "Tuition"}, {"id": "FH-B", "name": "Bus"}],
        "students": [
            {"Student_Global_ID": "S1", "Name_Ar": "Ahmed", "Academic_Year_ID": "Y24", "Grade_ID": "G1"},
            {"Student_ID": "S2", "Name_En": "Sara", "Academic_Year_ID": "Y24", "Grade_ID": "G1"},
            {"Student_ID": "S3", "Name_En": "Omar", "Academic_Year_ID": "Y24", "Class_ID": "C2A"},
        ],
        "invoices": [
            {
                "id": "INV-1",
                "Student_ID": "S1",
                "Academic_Year_ID": "Y24",
                "Status": "APPROVED",
                "items": [{"feeHeadId": "FH-T", "amount": "1000"}],
                "discounts": [{"amount": "150"}],
                "Total": "1000",
                "Paid": "400",
            },
            {
                "id": "INV-2",
                "studentId": "S2",
                "status": "posted",
                "items": [{"Fee_ID": "FH-T", "Amount": 1000}],
                "discountTotal": "50",
                "total": "1000",
                "paid": "1000",
            },
            {
                "id": "INV-3",
                "StudentId": "S3",
                "isApproved": True,
                "Items": [
                    {"feeHeadId": "FH-T", "amount": "1200"},
                    {"feeHeadId": "FH-B", "Price": "300"},
                ],
                "Total": "1500",
                "paidAmount": "1600",
            },
            {
                "id": "INV-4",
                "Student_ID": "S1",
                "Status": "DRAFT",
                "items": [{"feeHeadId": "FH-T", "amount": "999"}],
                "Total": "999",
            },
            {
                "id": "INV-5",
                "Student_ID": "S2",
                "Status": "APPROVED",
                "isVoided": True,
                "items": [{"feeHeadId": "FH-T", "amount": "777"}],
                "Total": "777",
            },
        ],
    }


@pytest.fixture
def receivables():
    raw = raw_receivables()
    return build_receivables_context(
        raw["invoices"],
        raw["students"],
        grades=raw["grades"],
        stages=raw["stages"],
        classes=raw["classes"],
        fee_heads=raw["fee_heads"],
    )


# =============================================================================
# Database fixtures (SQLite in-memory journal store)
# =============================================================================


@pytest.fixture
def session() -> Generator[Session, None, None]:
    init_engine_from_url("sqlite://")
    create_tables()
    session = get_session()
    yield session
    session.close()
    reset_engine()
