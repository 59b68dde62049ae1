"""
Smart Daily Expense Tracker - Source Package

The expense aggregation and query layer of a single-user daily expense
tracker, plus the view-state objects that sit on top of it.

DESIGN PRINCIPLES:
1. One timezone decides every day boundary
2. Money is exact (integer minor units in storage)
3. Reads are live: views update when the data changes
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Smart Daily Expense Tracker Team"
