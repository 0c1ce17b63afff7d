"""
Module: ledger_kernel.models.journal
Responsibility: ORM mapping for journal entries and their lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

``journal_lines.account_id`` deliberately carries no foreign key: lines
that point at accounts missing from the directory are reported by the
aggregator as anomalies instead of failing at the storage layer.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import Base


class JournalEntry(Base):
    """A journal entry header."""

    __tablename__ = "journal_entries"

    __table_args__ = (
        Index("idx_journal_status_date", "status", "entry_date"),
        Index("idx_journal_year", "academic_year_id"),
    )

    number: Mapped[str] = mapped_column(String(32), nullable=False)

    entry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    # payroll, receipts, payments, manual, assets, inventory-receive, ...
    source: Mapped[str] = mapped_column(String(50), default="manual", nullable=False)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(16), nullable=False)

    academic_year_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    is_balanced: Mapped[bool | None] = mapped_column(Boolean, nullable=True)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        order_by="JournalLine.line_seq",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.number} {self.status}>"


class JournalLine(Base):
    """A single debit/credit line."""

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("journal_entries.id"), nullable=False,
    )

    account_id: Mapped[str] = mapped_column(String(64), nullable=False)

    debit: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )

    credit: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )

    note: Mapped[str | None] = mapped_column(String(255), nullable=True)

    line_seq: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")
