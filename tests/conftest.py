"""
Shared fixtures for the tactical board tests.

Each test gets its own SQLite file under ``tmp_path`` so stores never
leak state between tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from tacboard_api.app.core.config import Settings
from tacboard_api.app.core.db import ComboStore
from tacboard_api.app.main import create_app
from tacboard_api.app.services.combo_service import ComboRepository


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=str(tmp_path / "combos.db"),
        static_dir=str(tmp_path / "static"),
        log_level="DEBUG",
    )


@pytest.fixture
def store(test_settings: Settings) -> ComboStore:
    combo_store = ComboStore(test_settings.database_url)
    assert combo_store.connect()
    return combo_store


@pytest.fixture
def offline_store(tmp_path: Path) -> ComboStore:
    """A store whose database directory does not exist, so connecting fails."""
    return ComboStore(str(tmp_path / "missing" / "combos.db"))


@pytest.fixture
def repository(store: ComboStore) -> ComboRepository:
    return ComboRepository(store)


@pytest.fixture
def client(test_settings: Settings, store: ComboStore) -> Iterator[TestClient]:
    app = create_app(test_settings, store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def offline_client(test_settings: Settings, offline_store: ComboStore) -> Iterator[TestClient]:
    app = create_app(test_settings, offline_store)
    with TestClient(app) as test_client:
        yield test_client
