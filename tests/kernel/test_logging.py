"""
Structured logging tests.

Each record must come out as one JSON line carrying the bound report
context, the ``extra`` payload (amounts as exact strings) and, for kernel
errors, their structured fields.
"""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from ledger_kernel.exceptions import InvalidFilterError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from ledger_reporting.models import ReportType


@pytest.fixture
def lines():
    """Route the ledger logger into a buffer; returns a reader of parsed lines."""
    reset_logging()
    stream = StringIO()
    configure_logging(stream=stream, level=logging.DEBUG)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield _read
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestRecordShape:

    def test_envelope(self, lines):
        get_logger("reporting.service").info("trial_balance_generated")
        (record,) = lines()
        assert record["message"] == "trial_balance_generated"
        assert record["level"] == "INFO"
        assert record["logger"] == "ledger.reporting.service"
        assert record["ts"].endswith("+00:00")

    def test_extra_payload(self, lines):
        get_logger("x").info(
            "balance_sheet_generated",
            extra={
                "difference": Decimal("0.00"),
                "as_of": date(2024, 1, 31),
                "report_type": ReportType.BALANCE_SHEET,
                "skipped": ("je-9",),
            },
        )
        (record,) = lines()
        assert record["difference"] == "0.00"
        assert record["as_of"] == "2024-01-31"
        assert record["report_type"] == "balance_sheet"
        assert record["skipped"] == ["je-9"]

    def test_debug_is_emitted_at_debug_level(self, lines):
        get_logger("x").debug("rows_aggregated")
        assert [r["message"] for r in lines()] == ["rows_aggregated"]

    def test_kernel_error_fields(self, lines):
        try:
            raise InvalidFilterError("date_from", "31/01/2024", "not an ISO date")
        except InvalidFilterError:
            get_logger("x").warning("criteria_rejected", exc_info=True)
        (record,) = lines()
        assert record["exc_type"] == "InvalidFilterError"
        assert record["exc_code"] == "INVALID_FILTER"
        assert record["exc_field"] == "date_from"
        assert record["exc_value"] == "31/01/2024"
        assert "Traceback" in record["traceback"]


class TestContextOnRecords:

    def test_bound_fields_appear(self, lines):
        with LogContext.bind(report_type="cash_flow", school_code="NOOR"):
            get_logger("x").info("cash_flow_generated")
        (record,) = lines()
        assert record["report_type"] == "cash_flow"
        assert record["school_code"] == "NOOR"

    def test_unbound_fields_absent(self, lines):
        get_logger("x").info("journal_generated")
        (record,) = lines()
        assert not {"report_type", "correlation_id", "academic_year_id"} & set(record)


class TestLogContext:

    def test_set_keeps_existing_fields(self):
        LogContext.set(correlation_id="req-1")
        LogContext.set(school_code="NOOR", actor_id=None)
        assert LogContext.get_all() == {"correlation_id": "req-1", "school_code": "NOOR"}

    def test_clear(self):
        LogContext.set(academic_year_id="Y24")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(report_type="journal")
        with LogContext.bind(report_type="ar_summary", academic_year_id="Y24"):
            assert LogContext.get_all()["report_type"] == "ar_summary"
        assert LogContext.get_all() == {"report_type": "journal"}

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(report_type="general_ledger"):
                raise RuntimeError("builder failed")
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(term="T1")

    def test_threads_do_not_share_bindings(self):
        def worker(report_type):
            with LogContext.bind(report_type=report_type):
                return LogContext.get_all()["report_type"]

        names = ["journal", "trial_balance", "cash_flow", "balance_sheet"]
        with ThreadPoolExecutor(max_workers=4) as pool:
            assert list(pool.map(worker, names)) == names
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_is_ignored(self, lines):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert len(logging.getLogger("ledger").handlers) == 1

    def test_does_not_propagate_to_root(self, lines):
        assert logging.getLogger("ledger").propagate is False

    def test_reset_detaches_handlers(self):
        reset_logging()
        assert logging.getLogger("ledger").handlers == []
        configure_logging(level=logging.DEBUG)

    def test_formatter_usable_standalone(self):
        record = logging.LogRecord("ledger.x", logging.INFO, "", 0, "standalone", (), None)
        assert json.loads(StructuredFormatter().format(record))["message"] == "standalone"
