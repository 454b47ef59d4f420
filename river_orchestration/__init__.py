"""
River Orchestration Package

Pipeline tools for Bureau of Meteorology river height bulletins:
- fetch: pooled FTP retrieval of bulletins, parsing into observation records
- store: idempotent DuckDB record store (single source of truth for history)
- datasets: per-region, per-day JSON snapshots projected from the store
"""

__version__ = "1.0.0"
