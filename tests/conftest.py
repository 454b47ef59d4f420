"""Pytest configuration and shared fixtures."""

import pytest

from river_orchestration.store import RecordStore
from tests.fakes import fixture_path


@pytest.fixture
def store(tmp_path):
    """Open record store backed by a temporary DuckDB file."""
    record_store = RecordStore(tmp_path / "rivers.duckdb").open()
    yield record_store
    record_store.close()


@pytest.fixture
def bulletin_html():
    """Sample BOM river height bulletin."""
    return fixture_path("river_heights_bulletin.html").read_text(encoding="utf-8")
