"""Read-only selectors over the journal store."""

from ledger_kernel.selectors.base import BaseSelector
from ledger_kernel.selectors.snapshot_selector import LedgerSnapshotSelector

__all__ = ["BaseSelector", "LedgerSnapshotSelector"]
