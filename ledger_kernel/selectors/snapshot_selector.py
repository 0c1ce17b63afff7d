"""
Module: ledger_kernel.selectors.snapshot_selector
Responsibility: Load the chart of accounts and journal entries from the
    journal store and convert them to canonical domain entities, producing
    the ``LedgerSnapshot`` the reporting engine consumes.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - Read-only: no mutations are performed on queried data.
    - Lines within each entry are ordered by line_seq.
    - Entries are ordered by (entry_date, number, id) so the snapshot's
      input order is stable across calls.

Failure modes:
    - Returns empty tuples when the store holds no matching rows.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from ledger_kernel.domain.entities import (
    Account,
    AccountType,
    EntryStatus,
    JournalEntry,
    JournalLine,
    LedgerSnapshot,
)
from ledger_kernel.domain.money import to_decimal
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account as AccountModel
from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
from ledger_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.snapshot")


class LedgerSnapshotSelector(BaseSelector[JournalEntryModel]):
    """
    Selector that materializes a ``LedgerSnapshot`` from the database.

    Non-goals:
        - Does NOT filter by period or account; the reporting filter does
          that uniformly for every statement.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    @staticmethod
    def _account_to_entity(row: AccountModel) -> Account:
        return Account(
            id=str(row.id).strip(),
            code=row.code,
            name=row.name,
            account_type=AccountType.parse(row.account_type),
            parent_id=row.parent_id or None,
            system_tag=(row.system_tag or "").strip().upper() or None,
            is_cash=bool(row.is_cash),
            sub_type=(row.sub_type or "").strip().upper() or None,
            balance=to_decimal(row.balance),
        )

    @staticmethod
    def _entry_to_entity(row: JournalEntryModel) -> JournalEntry:
        lines = tuple(
            JournalLine(
                account_id=str(line.account_id).strip(),
                debit=to_decimal(line.debit),
                credit=to_decimal(line.credit),
                note=line.note or "",
            )
            for line in sorted(row.lines, key=lambda x: x.line_seq)
        )
        created = row.created_at
        return JournalEntry(
            id=str(row.id),
            number=row.number,
            entry_date=row.entry_date,
            created_at=created.date() if isinstance(created, datetime) else created,
            source=row.source or "",
            description=row.description or "",
            status=EntryStatus.parse(row.status),
            lines=lines,
            academic_year_id=row.academic_year_id or None,
            is_balanced=row.is_balanced,
        )

    def accounts(self) -> tuple[Account, ...]:
        """Load the full chart of accounts ordered by code."""
        rows = self.session.execute(
            select(AccountModel).order_by(AccountModel.code)
        ).scalars().all()
        return tuple(self._account_to_entity(row) for row in rows)

    def entries(
        self,
        statuses: tuple[EntryStatus, ...] | None = (EntryStatus.POSTED,),
    ) -> tuple[JournalEntry, ...]:
        """
        Load journal entries with their lines.

        Args:
            statuses: Statuses to include; ``None`` loads every entry.
        """
        query = (
            select(JournalEntryModel)
            .options(selectinload(JournalEntryModel.lines))
            .order_by(
                JournalEntryModel.entry_date,
                JournalEntryModel.number,
                JournalEntryModel.id,
            )
        )
        if statuses is not None:
            query = query.where(
                func.upper(JournalEntryModel.status).in_([s.value for s in statuses])
            )
        rows = self.session.execute(query).scalars().all()
        return tuple(self._entry_to_entity(row) for row in rows)

    def snapshot(self, posted_only: bool = True) -> LedgerSnapshot:
        """Load accounts and entries into one ``LedgerSnapshot``."""
        statuses = (EntryStatus.POSTED,) if posted_only else None
        accounts = self.accounts()
        entries = self.entries(statuses=statuses)
        logger.info(
            "ledger_snapshot_loaded",
            extra={
                "account_count": len(accounts),
                "entry_count": len(entries),
                "posted_only": posted_only,
            },
        )
        return LedgerSnapshot(accounts=accounts, entries=entries)
