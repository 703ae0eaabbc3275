"""
Money Manager - Source Package

A personal finance tracker: income, expenses and a daily spending limit,
with periodic summaries, savings goals, recurring bills and AI-written
insights built on deterministic metrics.

DESIGN PRINCIPLES:
1. Numbers are computed, never generated
2. Metrics are pure functions over plain records
3. Every change to the data is auditable
4. Storage and AI providers are swappable
"""

__version__ = "1.0.0"
__author__ = "Money Manager Team"
