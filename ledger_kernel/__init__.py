"""
Ledger Kernel

Shared foundation for the school ledger reporting engine:
- Canonical, immutable ledger and receivable entities
- Decimal money helpers with a single rounding rule
- Structured JSON logging and typed exceptions
- Read-only access to the journal store (SQLAlchemy)
"""

__version__ = "0.1.0"
