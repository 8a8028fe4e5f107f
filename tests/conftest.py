"""
Pytest configuration and shared fixtures.

This file contains pytest configuration and reusable test fixtures.
"""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from queryexplorer.config.settings import AppSettings
from queryexplorer.core.actions import ExplorerActions
from queryexplorer.core.models import Explorer, Query, Visualization


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    """
    Settings that keep everything inside the test's temporary directory.
    """
    return AppSettings(
        log_to_file=False,
        extraction_latest_limit=100,
        persistence_directory=tmp_path / "explorers",
        events_directory=tmp_path / "events",
    )


@pytest.fixture
def dispatcher() -> Mock:
    """A dispatch channel recording every dispatched record."""
    return Mock()


@pytest.fixture
def store() -> Mock:
    """An explorer store whose get() is configured per test."""
    return Mock()


@pytest.fixture
def actions(dispatcher, store, settings) -> ExplorerActions:
    return ExplorerActions(dispatcher, store, settings=settings)


@pytest.fixture
def sample_explorer() -> Explorer:
    """
    Create a valid count explorer.

    Returns:
        An idle Explorer with a count query on 'clicks'.
    """
    return Explorer(
        id='ABC-PREV-ID',
        name='Clicks',
        query=Query(event_collection='clicks', analysis_type='count'),
        visualization=Visualization(chart_type='metric'),
    )


@pytest.fixture
def persisted_models() -> list[dict]:
    """Raw records as returned by a persistence backend."""
    return [
        {
            'id': '1',
            'name': 'favorite 1',
            'query': {'event_collection': 'clicks', 'analysis_type': 'count'},
            'visualization': {'chart_type': 'metric'},
        },
        {
            'id': '2',
            'name': 'favorite 2',
            'query': {'event_collection': 'clicks', 'analysis_type': 'sum', 'target_property': 'size'},
            'visualization': {'chart_type': 'metric'},
        },
        {
            'id': '3',
            'name': 'favorite 3',
            'query': {'event_collection': 'clicks', 'analysis_type': 'max', 'target_property': 'amount'},
            'visualization': {'chart_type': 'metric'},
        },
    ]


class StubPersistence:
    """Persistence backend answering every call synchronously with canned data."""

    def __init__(self, records=None, created=None, error=None):
        self.records = records if records is not None else []
        self.created = created
        self.error = error
        self.calls = []

    def get(self, explorer_id, callback):
        self.calls.append(('get', explorer_id))
        callback(self.error, None if self.error else self.records)

    def create(self, attrs, callback):
        self.calls.append(('create', attrs))
        callback(self.error, None if self.error else self.created)

    def update(self, explorer_id, attrs, callback):
        self.calls.append(('update', explorer_id, attrs))
        callback(self.error, None if self.error else dict(attrs, id=explorer_id))

    def destroy(self, explorer_id, callback):
        self.calls.append(('destroy', explorer_id))
        callback(self.error, None)


@pytest.fixture
def stub_persistence_class():
    return StubPersistence


@pytest.fixture
def events_dir(tmp_path) -> Path:
    """
    Create a directory with a 'clicks' (JSON lines) and a 'purchases' (CSV)
    event collection.
    """
    data_dir = tmp_path / "events"
    data_dir.mkdir()

    clicks = [
        {'timestamp': '2024-01-01T10:00:00', 'size': 3, 'user': {'country': 'FR'}},
        {'timestamp': '2024-01-02T10:00:00', 'size': 5, 'user': {'country': 'US'}},
        {'timestamp': '2024-01-03T10:00:00', 'size': 7, 'user': {'country': 'FR'}},
        {'timestamp': '2024-01-04T10:00:00', 'size': 10, 'user': {'country': 'DE'}},
    ]
    with open(data_dir / "clicks.jsonl", 'w', encoding='utf-8') as f:
        for event in clicks:
            f.write(json.dumps(event) + "\n")

    with open(data_dir / "purchases.csv", 'w', encoding='utf-8') as f:
        f.write("timestamp,amount,item\n")
        f.write("2024-02-01T09:00:00,20.5,book\n")
        f.write("2024-02-02T09:00:00,10,pen\n")
        f.write("2024-02-03T09:00:00,30,book\n")

    return data_dir
