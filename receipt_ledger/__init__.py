"""
Receipt Ledger - Source Package

Turns a photographed shopping receipt into shared-expense entries in a
two-person household ledger.

DESIGN PRINCIPLES:
1. OCR reads -> Human reviews and categorizes -> System books
2. Fail early, fail visibly
3. No silent corrections
4. Balances are always recomputed from the append-only log
5. Every step must be auditable
6. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Receipt Ledger Team"
