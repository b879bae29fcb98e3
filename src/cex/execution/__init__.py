"""Account bookkeeping for simulated execution."""

from cex.execution.ledger import AccountLedger

__all__ = ["AccountLedger"]
