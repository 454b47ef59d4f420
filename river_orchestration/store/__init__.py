"""
Record Store Package

DuckDB-backed, idempotent storage of river height observations.
"""

from .record_store import AppendResult, RecordStore

__all__ = ['AppendResult', 'RecordStore']
