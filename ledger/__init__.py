"""
Personal Ledger - Source Package

A single-user personal ledger that records transactions, derives
running balances, runs an automatic savings sweep and tracks one
installment loan per account. All state lives in flat CSV logs.

DESIGN PRINCIPLES:
1. The transaction log is the source of truth, balances are projections
2. Persist first, then mutate memory
3. Fail early, fail visibly
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Ledger Team"
