"""
Typed Exception Hierarchy for the Ledger Kernel.

Every error the engine raises has a typed class with a machine-readable
``code`` and structured attributes, so callers catch by type and never
parse messages.

The reporting engine raises only for programming-contract violations
(missing input arrays, unparsable filter values, invalid configuration).
Data-quality problems in the ledger itself -- unbalanced entries, lines
pointing at unknown accounts, undated entries -- are reported as data on
the result objects, not raised.

    LedgerKernelError (base)
    |
    +-- ReportInputError       INVALID_REPORT_INPUT
    +-- InvalidFilterError     INVALID_FILTER
    +-- MalformedDateError     MALFORMED_DATE
    +-- ConfigurationError     INVALID_CONFIGURATION

Example::

    try:
        report = service.trial_balance(snapshot, criteria)
    except InvalidFilterError as e:
        return {"error": e.code, "field": e.field, "value": e.value}
"""

from __future__ import annotations

from typing import Any


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


class ReportInputError(LedgerKernelError):
    """A required input collection was missing or of the wrong shape."""

    code: str = "INVALID_REPORT_INPUT"

    def __init__(self, argument: str, reason: str):
        self.argument = argument
        self.reason = reason
        super().__init__(f"Invalid report input '{argument}': {reason}")


class InvalidFilterError(LedgerKernelError):
    """A filter value could not be interpreted."""

    code: str = "INVALID_FILTER"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid filter {field}={value!r}: {reason}")


class MalformedDateError(LedgerKernelError):
    """A journal entry has no usable date and the date policy is RAISE."""

    code: str = "MALFORMED_DATE"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry {entry_id} has no usable date")


class ConfigurationError(LedgerKernelError):
    """Reporting configuration is invalid."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, setting: str, reason: str):
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid configuration '{setting}': {reason}")
