"""Shared pytest fixtures for groomreports tests."""

import copy
import json
import tempfile
import os
from datetime import date
from pathlib import Path
import pytest

from groomreports.database.factories import create_sqlite_database
from groomreports.domain.dataset import DatasetService
from groomreports.domain.entities import DatePreset, FilterState
from groomreports.domain.filters import resolve_filters
from groomreports.domain.normalization import normalize
from groomreports.domain.saved_views import SavedViewService

FIXTURES_DIR = Path(__file__).parent / "fixtures"

JANUARY = FilterState(
    date_preset=DatePreset.CUSTOM,
    start_date=date(2024, 1, 1),
    end_date=date(2024, 1, 31),
)


def load_sample_export() -> dict:
    with open(FIXTURES_DIR / "sample_export.json", encoding="utf-8") as f:
        return json.load(f)


def normalize_collections(collections: dict, version: int = 1):
    return normalize(
        collections.get("appointments", []),
        collections.get("transactions", []),
        collections.get("clients", []),
        collections.get("staff", []),
        collections.get("inventory", []),
        collections.get("messages", []),
        version=version,
    )


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def raw_collections():
    """Raw export for January 2024 (plus a few February records)."""
    return load_sample_export()


@pytest.fixture
def dataset(raw_collections):
    """Normalized dataset built from the sample export."""
    return normalize_collections(raw_collections)


@pytest.fixture
def january():
    """Resolved filters for the custom range 2024-01-01..2024-01-31."""
    return resolve_filters(JANUARY)


@pytest.fixture
def dataset_service(temp_db):
    """Create a DatasetService with a temporary database."""
    return DatasetService(temp_db)


@pytest.fixture
def saved_view_service(temp_db):
    """Create a SavedViewService with a temporary database."""
    return SavedViewService(temp_db)


@pytest.fixture
def loaded_db(temp_db, raw_collections):
    """Temporary database with the sample export loaded."""
    DatasetService(temp_db).load_collections(copy.deepcopy(raw_collections))
    return temp_db


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return FIXTURES_DIR
