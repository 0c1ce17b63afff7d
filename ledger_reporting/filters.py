"""
Period & Scope Filter (``ledger_reporting.filters``).

Responsibility
--------------
Applies the date range, academic-year, account and entry-source predicates
uniformly for every statement, and puts the surviving entries in a single
deterministic chronological order.  Also holds the invoice criteria of
the parents overdue report.

Architecture position
---------------------
**Reporting layer** -- pure functions over canonical ``JournalEntry``
snapshots.  The only outside input is the injected ``Clock`` used by the
``DatePolicy.NOW`` fallback.

Invariants enforced
-------------------
* Only POSTED entries pass.
* Date bounds are inclusive and compare calendar dates.
* Every entry returned carries its resolved date in ``entry_date``.
* Ordering: resolved date, then entry number (numeric when both numbers
  are numeric), then original input order.

Failure modes
-------------
* Unparsable filter dates or ``date_from > date_to``
  -> ``InvalidFilterError``.
* An undated entry under ``DatePolicy.RAISE`` -> ``MalformedDateError``.
* An unknown overdue ``status`` or a non-numeric ``min_due``
  -> ``InvalidFilterError``.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Self

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.entities import Account, JournalEntry
from ledger_kernel.domain.money import to_decimal
from ledger_kernel.exceptions import (
    InvalidFilterError,
    MalformedDateError,
    ReportInputError,
)
from ledger_kernel.logging_config import get_logger
from ledger_reporting.config import DatePolicy
from ledger_reporting.models import PaymentStatus

logger = get_logger("reporting.filters")


class AccountLevel(str, Enum):
    """Chart-of-accounts level restriction."""

    ALL = "all"
    MAIN = "main"  # no parent
    SUB = "sub"  # has a parent

    def includes(self, account: Account) -> bool:
        if self is AccountLevel.MAIN:
            return account.is_main
        if self is AccountLevel.SUB:
            return not account.is_main
        return True


# Presentation-layer key -> ReportFilter field
_DICT_KEYS: dict[str, tuple[str, ...]] = {
    "date_from": ("date_from", "from", "dateFrom", "startDate"),
    "date_to": ("date_to", "to", "dateTo", "endDate"),
    "as_of": ("as_of", "asOf"),
    "before": ("before",),
    "entry_type": ("entry_type", "entryType"),
    "account_id": ("account_id", "accountId"),
    "academic_year_id": ("academic_year_id", "academicYearId", "yearId"),
    "account_level": ("account_level", "level", "accountLevel"),
    "show_zero": ("show_zero", "showZero"),
}

_DATE_FIELDS = ("date_from", "date_to", "as_of", "before")


def _parse_filter_date(field_name: str, value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise InvalidFilterError(field_name, value, "not an ISO date") from None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ReportFilter:
    """
    Criteria applied to journal entries before aggregation.

    ``entry_type`` of ``"all"`` or empty disables source filtering.
    ``before`` is exclusive and is used for opening-balance windows.
    """

    date_from: date | None = None
    date_to: date | None = None
    as_of: date | None = None
    before: date | None = None
    entry_type: str | None = None
    account_id: str | None = None
    academic_year_id: str | None = None
    account_level: AccountLevel = AccountLevel.ALL
    show_zero: bool = False

    def __post_init__(self) -> None:
        for name in _DATE_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, date):
                object.__setattr__(self, name, _parse_filter_date(name, value))
            elif isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
        if not isinstance(self.account_level, AccountLevel):
            try:
                level = AccountLevel(str(self.account_level or "all").strip().lower())
            except ValueError:
                raise InvalidFilterError(
                    "account_level", self.account_level, "must be all, main or sub",
                ) from None
            object.__setattr__(self, "account_level", level)
        object.__setattr__(self, "account_id", _clean_text(self.account_id))
        object.__setattr__(self, "academic_year_id", _clean_text(self.academic_year_id))
        object.__setattr__(self, "entry_type", _clean_text(self.entry_type))
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise InvalidFilterError(
                "date_from", self.date_from.isoformat(), "is after date_to",
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Self:
        """
        Build a filter from the presentation layer's criteria mapping.

        Accepts both snake_case field names and the camelCase keys the
        report screens send (``from``, ``to``, ``asOf``, ``entryType``,
        ``accountId``, ``yearId``, ``level``, ``showZero``).  Unknown keys
        are ignored.
        """
        if not data:
            return cls()
        values: dict[str, Any] = {}
        for field_name, keys in _DICT_KEYS.items():
            for key in keys:
                if key in data and data[key] not in (None, ""):
                    values[field_name] = data[key]
                    break
        if "show_zero" in values:
            values["show_zero"] = str(values["show_zero"]).strip().lower() in (
                "true", "1", "yes",
            )
        return cls(**values)

    @property
    def has_period(self) -> bool:
        return self.date_from is not None and self.date_to is not None

    @property
    def source_substring(self) -> str | None:
        if not self.entry_type or self.entry_type.casefold() == "all":
            return None
        return self.entry_type.casefold()

    def replace(self, **changes: Any) -> ReportFilter:
        return dataclasses.replace(self, **changes)

    def echo(self) -> tuple[tuple[str, str], ...]:
        """Non-default criteria as sorted ``(name, value)`` pairs."""
        pairs = []
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value == f.default:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            pairs.append((f.name, str(value)))
        return tuple(sorted(pairs))


_OVERDUE_DICT_KEYS: dict[str, tuple[str, ...]] = {
    "date_from": ("date_from", "from", "dateFrom", "startDate"),
    "date_to": ("date_to", "to", "dateTo", "endDate"),
    "academic_year_id": ("academic_year_id", "academicYearId", "yearId"),
    "stage_id": ("stage_id", "stageId"),
    "grade_id": ("grade_id", "gradeId"),
    "status": ("status",),
    "min_due": ("min_due", "minDue"),
}


@dataclass(frozen=True)
class ParentsOverdueFilter:
    """
    Criteria for the parents overdue report.

    Dates bound the invoice date, inclusively.  ``status`` of ``"all"`` or
    empty keeps both late and regular parents.  ``min_due`` keeps parents
    whose balance reaches it; zero or less disables it.
    """

    date_from: date | None = None
    date_to: date | None = None
    academic_year_id: str | None = None
    stage_id: str | None = None
    grade_id: str | None = None
    status: PaymentStatus | None = None
    min_due: Decimal | None = None

    def __post_init__(self) -> None:
        for name in ("date_from", "date_to"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
            elif value is not None and not isinstance(value, date):
                object.__setattr__(self, name, _parse_filter_date(name, value))
        for name in ("academic_year_id", "stage_id", "grade_id"):
            object.__setattr__(self, name, _clean_text(getattr(self, name)))
        if self.status is not None and not isinstance(self.status, PaymentStatus):
            text = str(self.status).strip().lower()
            if text in ("", "all"):
                status = None
            else:
                try:
                    status = PaymentStatus(text)
                except ValueError:
                    raise InvalidFilterError(
                        "status", self.status, "must be all, late or regular",
                    ) from None
            object.__setattr__(self, "status", status)
        if self.min_due is not None and not isinstance(self.min_due, Decimal):
            amount = to_decimal(self.min_due, default=None)
            if amount is None:
                raise InvalidFilterError("min_due", self.min_due, "not a number")
            object.__setattr__(self, "min_due", amount)
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise InvalidFilterError(
                "date_from", self.date_from.isoformat(), "is after date_to",
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> Self:
        """Build from the overdue screen's criteria (``stageId``, ``minDue`` and so on)."""
        if not data:
            return cls()
        values: dict[str, Any] = {}
        for field_name, keys in _OVERDUE_DICT_KEYS.items():
            for key in keys:
                if key in data and data[key] not in (None, ""):
                    values[field_name] = data[key]
                    break
        return cls(**values)

    def includes_date(self, invoice_date: date | None) -> bool:
        """Undated invoices are never excluded by the date range."""
        if invoice_date is None:
            return True
        if self.date_from and invoice_date < self.date_from:
            return False
        if self.date_to and invoice_date > self.date_to:
            return False
        return True

    def echo(self) -> tuple[tuple[str, str], ...]:
        pairs = []
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, date):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            pairs.append((f.name, str(value)))
        return tuple(sorted(pairs))


@dataclass(frozen=True)
class FilterResult:
    """Entries that passed the filter, plus the ids that had no usable date."""

    entries: tuple[JournalEntry, ...]
    undated_entries: tuple[str, ...] = ()


def resolve_entry_date(entry: JournalEntry) -> date | None:
    """The entry's own date, else its creation date, else ``None``."""
    return entry.entry_date or entry.created_at


def matches_scope(entry: JournalEntry, criteria: ReportFilter) -> bool:
    """Non-date predicates: source substring, account and academic year."""
    needle = criteria.source_substring
    if needle and needle not in entry.source.casefold():
        return False
    if criteria.account_id and not entry.touches(criteria.account_id):
        return False
    if (
        criteria.academic_year_id
        and entry.academic_year_id
        and entry.academic_year_id != criteria.academic_year_id
    ):
        return False
    return True


def in_window(entry_date: date, criteria: ReportFilter) -> bool:
    if criteria.date_from and entry_date < criteria.date_from:
        return False
    if criteria.date_to and entry_date > criteria.date_to:
        return False
    if criteria.as_of and entry_date > criteria.as_of:
        return False
    if criteria.before and entry_date >= criteria.before:
        return False
    return True


def _number_key(number: str) -> tuple[int, int, str]:
    text = number.strip()
    if text.isdigit():
        return (0, int(text), "")
    return (1, 0, text)


def sort_chronologically(entries: Iterable[JournalEntry]) -> tuple[JournalEntry, ...]:
    """
    Stable chronological order.

    Undated entries (only possible when the caller skipped the filter)
    sort first.
    """
    indexed = list(enumerate(entries))
    indexed.sort(
        key=lambda pair: (
            resolve_entry_date(pair[1]) or date.min,
            _number_key(pair[1].number),
            pair[0],
        )
    )
    return tuple(entry for _, entry in indexed)


def filter_entries(
    entries: Iterable[JournalEntry] | None,
    criteria: ReportFilter | None = None,
    *,
    date_policy: DatePolicy = DatePolicy.NOW,
    clock: Clock | None = None,
) -> FilterResult:
    """
    Select the POSTED entries matching ``criteria``, chronologically.

    Entries without a usable date are handled by ``date_policy``.  Their
    ids are reported in ``FilterResult.undated_entries`` when they are
    dropped (``EXCLUDE``) or selected on today's date (``NOW``); an entry
    that today's date puts outside the window is not reported.
    """
    if entries is None:
        raise ReportInputError("entries", "must be a list, got None")
    criteria = criteria or ReportFilter()
    clock = clock or SystemClock()

    selected: list[JournalEntry] = []
    undated: list[str] = []
    for entry in entries:
        if not entry.is_posted or not matches_scope(entry, criteria):
            continue
        resolved = resolve_entry_date(entry)
        if resolved is None:
            if date_policy is DatePolicy.RAISE:
                raise MalformedDateError(entry.id)
            if date_policy is DatePolicy.EXCLUDE:
                undated.append(entry.id)
                continue
            resolved = clock.today()
            if in_window(resolved, criteria):
                undated.append(entry.id)
        if not in_window(resolved, criteria):
            continue
        if entry.entry_date != resolved:
            entry = dataclasses.replace(entry, entry_date=resolved)
        selected.append(entry)

    if undated:
        logger.warning(
            "undated_entries_found",
            extra={"count": len(undated), "date_policy": date_policy.value},
        )
    return FilterResult(
        entries=sort_chronologically(selected),
        undated_entries=tuple(undated),
    )
