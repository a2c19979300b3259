"""ledgerlab: local multi-process test network for the MANY ledger stack."""

__version__ = "0.1.0"
