"""Formatting helpers for summaries and entry context."""

from .time_formatter import format_duration

__all__ = ["format_duration"]
