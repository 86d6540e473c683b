from __future__ import annotations

import pytest

from discovery.analytics.events import clear_events
from discovery.app import app
from discovery.search import history
from discovery.store.data_store import RecordStore, get_store


@pytest.fixture
def install_store():
    """Serve the given RecordStore to the app for the duration of a test."""

    def _install(store: RecordStore) -> RecordStore:
        app.dependency_overrides[get_store] = lambda: store
        return store

    yield _install
    app.dependency_overrides.pop(get_store, None)


@pytest.fixture(autouse=True)
def _fresh_events():
    clear_events()
    history.clear_all()
    yield
    clear_events()
    history.clear_all()
