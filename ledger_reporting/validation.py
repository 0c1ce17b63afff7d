"""
Balance Validator (``ledger_reporting.validation``).

Annotates journal entries whose debits and credits disagree.  Validation
never removes an entry from aggregation; statement builders decide whether
to surface the annotation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ledger_kernel.domain.entities import JournalEntry
from ledger_kernel.domain.money import round_money
from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.validation")

DEFAULT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True)
class UnbalancedEntry:
    """One entry that failed the balance check."""

    entry_id: str
    entry_number: str
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal  # debit - credit
    flagged: bool  # upstream is_balanced was explicitly False


@dataclass(frozen=True)
class ValidationResult:
    unbalanced: tuple[str, ...] = ()
    details: tuple[UnbalancedEntry, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.unbalanced


def is_entry_balanced(
    entry: JournalEntry,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> bool:
    """
    True when ``|debit - credit| <= tolerance`` and the entry is not
    explicitly flagged unbalanced upstream.
    """
    if entry.is_balanced is False:
        return False
    return abs(entry.total_debit - entry.total_credit) <= tolerance


def validate_entries(
    entries: Iterable[JournalEntry],
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> ValidationResult:
    """Collect every unbalanced entry, in input order."""
    details: list[UnbalancedEntry] = []
    for entry in entries:
        if is_entry_balanced(entry, tolerance):
            continue
        debit = entry.total_debit
        credit = entry.total_credit
        details.append(
            UnbalancedEntry(
                entry_id=entry.id,
                entry_number=entry.number,
                total_debit=round_money(debit),
                total_credit=round_money(credit),
                difference=round_money(debit - credit),
                flagged=entry.is_balanced is False,
            )
        )

    if details:
        logger.warning(
            "unbalanced_entries_detected",
            extra={
                "count": len(details),
                "entry_ids": [d.entry_id for d in details[:20]],
            },
        )
    return ValidationResult(
        unbalanced=tuple(d.entry_id for d in details),
        details=tuple(details),
    )
