"""
Household Ledger - Source Package

Shared household expense tracking over a spreadsheet-backed row store:
who paid for what, who consumed it, and what everyone owes.

DESIGN PRINCIPLES:
1. Fail early, fail visibly
2. No silent corrections
3. Every write must be auditable
4. Storage layer is swappable
"""

__version__ = "1.0.0"
