"""
Budget Tracker - Source Package

A personal budget tracker: income and expense entries, a
needs/wants/savings allocation plan, and budget-vs-actual summaries.

DESIGN PRINCIPLES:
1. Money is Decimal, never float
2. Every resource belongs to exactly one user
3. At most one active plan per user, enforced in one transaction
4. The summary is a pure function of stored data
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
