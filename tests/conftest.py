"""
Shared pytest configuration and fixtures for the election ledger.

This module provides common test fixtures and utilities used across
all test modules.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from election import ElectionLedger  # noqa: E402

ADMIN = "0xAdmin"


@pytest.fixture
def admin():
    """Administrator identity of the ``ledger`` fixture."""
    return ADMIN


@pytest.fixture
def ledger():
    """Provide a fresh in-memory ledger administered by ADMIN."""
    ledger = ElectionLedger(admin=ADMIN)
    yield ledger
    ledger.close()


@pytest.fixture
def temp_db_file():
    """Provide a path for a temporary ledger file (not yet created)."""
    fd, db_path = tempfile.mkstemp(suffix=".duckdb")
    os.close(fd)
    # DuckDB refuses to open an empty non-database file
    os.unlink(db_path)

    try:
        yield db_path
    finally:
        for path in (db_path, db_path + ".wal"):
            if os.path.exists(path):
                os.unlink(path)


@pytest.fixture
def sample_candidates():
    """Provide candidate registrations: (name, department, reg, year, position, img)."""
    return [
        ("Alice", "Physics", "S-A", 3, "President", "QmAlice"),
        ("Bob", "History", "S-B", 2, "President", "QmBob"),
        ("Carol", "Economics", "S-C", 4, "Treasurer", "QmCarol"),
    ]


@pytest.fixture
def populated_ledger(ledger, sample_candidates):
    """Ledger with three registered voters and the sample candidates."""
    for i in range(1, 4):
        ledger.register_voter(f"0xV{i}", f"Voter {i}", "Engineering", f"S{i}", 1)
    for candidate in sample_candidates:
        ledger.add_candidate(ADMIN, *candidate)
    return ledger


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests (ledger files, threads)",
    )
    config.addinivalue_line(
        "markers", "invariant: marks tests as ledger invariant validation"
    )
    config.addinivalue_line(
        "markers", "smoke: marks tests as smoke tests (basic functionality check)"
    )
