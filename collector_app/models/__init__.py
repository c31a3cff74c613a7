"""
Database models for the visitor collector.

ClientInfo is a per-request value object (see schemas); only the
first-seen snapshot plus counters is persisted here.
"""

from .visitor import Visitor

__all__ = ["Visitor"]
