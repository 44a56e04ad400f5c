"""
Flat Ledger - Source Package

Rent and expense tracking for a shared household.

DESIGN PRINCIPLES:
1. Balances are derived, never stored
2. Every number on the dashboard can be traced to a transaction
3. Missing data yields empty results, not crashes
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Flat Ledger Team"
