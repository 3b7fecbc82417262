"""
Finanzas Pro - Source Package

The core of a personal / small-business finance tracker: transactions,
recurring fixed expenses and the reports built from them.

DESIGN PRINCIPLES:
1. Reports are pure functions of a snapshot
2. Refuse bad input, never silently fix it
3. Store failures are visible but never fatal
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finanzas Pro Team"
