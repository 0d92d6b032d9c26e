"""
Accounting Engines

The transaction ledger, savings engine and loan engine share one
LedgerState and one record store. Each persists before it mutates.
"""

from ledger.engines.interest import predict_monthly_interest
from ledger.engines.loans import LoanEngine, compute_total_interest
from ledger.engines.savings import SavingsEngine
from ledger.engines.state import LedgerState
from ledger.engines.transactions import TransactionLedger, compute_history, signed_total

__all__ = [
    "LedgerState",
    "LoanEngine",
    "SavingsEngine",
    "TransactionLedger",
    "compute_history",
    "compute_total_interest",
    "predict_monthly_interest",
    "signed_total",
]
