"""
Module: ledger_kernel.db.base
Responsibility: Declarative base class for the journal store ORM models.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel; MUST NOT import from models/, selectors/ or outer layers.

Invariants enforced:
    - Decimal precision: type_annotation_map maps Python Decimal to
      Numeric(18, 2).  NEVER use float for monetary amounts.
    - Ids are strings: the journal store is fed by upstream systems that
      issue their own identifiers.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import Date, DateTime, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - id is a string primary key.
        - Decimal maps to Numeric(18, 2), date to Date, datetime to
          DateTime(timezone=True).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2, asdecimal=True),
        date: Date(),
        datetime: DateTime(timezone=True),
        str: String(255),
    }

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
