"""
Append-only JSONL journal of backtest runs, closed trades, and optimizations.
"""

from journal.writer import JournalWriter

__all__ = ["JournalWriter"]
