"""
Reporting Configuration Schema.

Caller-owned settings for the reporting engine: classification tags,
tolerance, and the two documented policy choices (what to do with undated
journal entries and where the General Ledger opening balance comes from).
Nothing here is process-wide state; every builder receives the config
object it should use.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Self

import yaml

from ledger_kernel.exceptions import ConfigurationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("reporting.config")


class DatePolicy(str, Enum):
    """How the period filter treats entries with no usable date."""

    NOW = "now"  # date the entry "today" and flag it
    EXCLUDE = "exclude"  # drop the entry and flag it
    RAISE = "raise"  # raise MalformedDateError


class OpeningBalanceMode(str, Enum):
    """Source of the General Ledger opening balance."""

    CARRIED = "carried"  # the account's stored balance
    HISTORY = "history"  # posted activity strictly before the period start


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting engine.

    Controls classification tags, tolerances and policy choices.
    """

    # Entity name shown on reports
    entity_name: str = "School"

    # Reporting currency label (no conversion is performed)
    default_currency: str = "USD"

    # Rounding precision for monetary results
    display_precision: int = 2

    # |debit - credit| above this marks an entry unbalanced
    balance_tolerance: Decimal = Decimal("0.01")

    date_policy: DatePolicy = DatePolicy.NOW

    opening_balance_mode: OpeningBalanceMode = OpeningBalanceMode.CARRIED

    # Show unclosed revenue/expense as an equity line on the balance sheet
    include_current_earnings: bool = True

    # Asset accounts carrying one of these system tags are cash
    cash_system_tags: tuple[str, ...] = ("CASH", "BANK")

    # Asset sub-types classified as investing activity
    fixed_asset_sub_types: tuple[str, ...] = ("FIXED",)

    # Invoice statuses that count as approved for receivables
    approved_invoice_statuses: tuple[str, ...] = ("APPROVED", "POSTED", "FINAL")

    # Label for journal rows whose entry has no source
    default_source_label: str = "manual"

    # Thread pool size for ReportingService.build_many
    max_workers: int = 4

    _ENUM_FIELDS = {
        "date_policy": DatePolicy,
        "opening_balance_mode": OpeningBalanceMode,
    }

    def __post_init__(self):
        for name, enum_cls in self._ENUM_FIELDS.items():
            value = getattr(self, name)
            if not isinstance(value, enum_cls):
                try:
                    setattr(self, name, enum_cls(str(value).lower()))
                except ValueError:
                    raise ConfigurationError(
                        name, f"must be one of {[m.value for m in enum_cls]}",
                    ) from None
        if not isinstance(self.balance_tolerance, Decimal):
            self.balance_tolerance = Decimal(str(self.balance_tolerance))
        if self.balance_tolerance < 0:
            raise ConfigurationError("balance_tolerance", "cannot be negative")
        if self.display_precision < 0:
            raise ConfigurationError("display_precision", "cannot be negative")
        if len(self.default_currency) != 3:
            raise ConfigurationError(
                "default_currency", "must be a 3-letter ISO 4217 code",
            )
        if self.max_workers < 1:
            raise ConfigurationError("max_workers", "must be at least 1")
        self.cash_system_tags = tuple(t.strip().upper() for t in self.cash_system_tags)
        self.fixed_asset_sub_types = tuple(
            t.strip().upper() for t in self.fixed_asset_sub_types
        )
        self.approved_invoice_statuses = tuple(
            s.strip().upper() for s in self.approved_invoice_statuses
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """Create config from a dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(unknown[0], "unknown setting")
        values = dict(data)
        for key in (
            "cash_system_tags",
            "fixed_asset_sub_types",
            "approved_invoice_statuses",
        ):
            if key in values and values[key] is not None:
                values[key] = tuple(values[key])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(values.keys())},
        )
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path | str) -> Self:
        """
        Load config from a YAML file.

        The file may hold the settings at top level or under a
        ``reporting:`` key.

        Raises:
            FileNotFoundError: if the file does not exist.
            yaml.YAMLError: if the file contains invalid YAML.
            ConfigurationError: if a setting is unknown or invalid.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(str(path), "YAML root must be a mapping")
        if isinstance(data.get("reporting"), dict):
            data = data["reporting"]
        return cls.from_dict(data)

    def is_cash_tag(self, tag: str | None) -> bool:
        return bool(tag) and tag.upper() in self.cash_system_tags
