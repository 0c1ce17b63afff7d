"""
Module: ledger_kernel.models.account
Responsibility: ORM mapping for the chart of accounts.
Architecture position: Kernel > Models.  May import from db/base.py only.

The reporting engine only reads this table.  ``account_type`` is stored as
the display string ("Asset", "Liability", ...) written by the school
application; ``balance`` is the carried balance maintained by the posting
side and is used as the General Ledger opening balance.
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base


class Account(Base):
    """Chart of Accounts entry."""

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_parent", "parent_id"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    account_type: Mapped[str] = mapped_column(String(20), nullable=False)

    parent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # CASH / BANK mark liquidity accounts for the cash-flow statement
    system_tag: Mapped[str | None] = mapped_column(String(32), nullable=True)

    is_cash: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    sub_type: Mapped[str | None] = mapped_column(String(32), nullable=True)

    balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name}>"
