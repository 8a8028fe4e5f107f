"""
Tests for the stores and the Qt dispatch channel.

These tests wire real stores to a real AppDispatcher so update records
travel the same path they do in the application.
"""

from unittest.mock import Mock

import pytest

from queryexplorer.core.actions import ExplorerActions
from queryexplorer.core.models import ActionType, Explorer, Query, UpdateRecord
from queryexplorer.core.stores import AppStateStore, ExplorerStore, NoticeStore
from queryexplorer.infrastructure.local_client import LocalQueryClient
from queryexplorer.ui.dispatcher import AppDispatcher


@pytest.fixture
def app_dispatcher() -> AppDispatcher:
    return AppDispatcher()


@pytest.fixture
def explorer_store(app_dispatcher) -> ExplorerStore:
    return ExplorerStore(app_dispatcher)


@pytest.fixture
def notice_store(app_dispatcher) -> NoticeStore:
    return NoticeStore(app_dispatcher)


@pytest.fixture
def app_state_store(app_dispatcher) -> AppStateStore:
    return AppStateStore(app_dispatcher)


@pytest.fixture
def wired_actions(app_dispatcher, explorer_store, notice_store, app_state_store, settings) -> ExplorerActions:
    return ExplorerActions(app_dispatcher, explorer_store, settings=settings)


class TestAppDispatcher:
    """Tests for the signal-based dispatcher."""

    def test_delivers_records_synchronously_in_order(self, app_dispatcher):
        received = []
        app_dispatcher.register(lambda record: received.append(('first', record.action_type)))
        app_dispatcher.register(lambda record: received.append(('second', record.action_type)))

        app_dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CLEAR_ALL))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_REMOVE, id=1))

        assert received == [
            ('first', ActionType.NOTICE_CLEAR_ALL),
            ('second', ActionType.NOTICE_CLEAR_ALL),
            ('first', ActionType.EXPLORER_REMOVE),
            ('second', ActionType.EXPLORER_REMOVE),
        ]

    def test_unregister(self, app_dispatcher):
        received = []

        def callback(record):
            received.append(record)

        app_dispatcher.register(callback)
        app_dispatcher.unregister(callback)

        app_dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CLEAR_ALL))

        assert received == []


class TestExplorerStore:
    """Tests for ExplorerStore record handling."""

    def test_create_and_get(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(
            ActionType.EXPLORER_CREATE,
            attrs={'id': 'a', 'name': 'A', 'query': {'event_collection': 'clicks'}},
        ))

        explorer = explorer_store.get('a')
        assert explorer.name == 'A'
        assert explorer.query.event_collection == 'clicks'
        assert explorer_store.get('missing') is None

    def test_create_batch_preserves_order(self, app_dispatcher, explorer_store):
        models = [Explorer(id=str(i)) for i in (3, 1, 2)]
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE_BATCH, models=models))

        assert [e.id for e in explorer_store.get_all()] == ['3', '1', '2']

    def test_update_and_set_active(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE, attrs={'id': 'a'}))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_UPDATE, id='a', updates={'loading': True}))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_SET_ACTIVE, id='a'))

        assert explorer_store.get('a').loading is True
        assert explorer_store.get_active().id == 'a'

    def test_set_active_ignores_unknown_id(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_SET_ACTIVE, id='nope'))
        assert explorer_store.get_active() is None

    def test_remove_clears_active(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE, attrs={'id': 'a'}))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_SET_ACTIVE, id='a'))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_REMOVE, id='a'))

        assert explorer_store.get('a') is None
        assert explorer_store.get_active() is None

    def test_destroy_fail_restores_state(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE, attrs={'id': 'a'}))

        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROYING, id='a'))
        assert explorer_store.get('a').destroying is True

        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROY_FAIL, id='a'))
        assert explorer_store.get('a').destroying is False

    def test_destroy_success_removes(self, app_dispatcher, explorer_store):
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_CREATE, attrs={'id': 'a'}))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROYING, id='a'))
        app_dispatcher.dispatch(UpdateRecord(ActionType.EXPLORER_DESTROY_SUCCESS, id='a'))

        assert explorer_store.get('a') is None


def test_notice_store(app_dispatcher, notice_store):
    app_dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CREATE, attrs={'text': 'NOPE', 'type': 'error'}))
    assert [(n.text, n.type) for n in notice_store.get_all()] == [('NOPE', 'error')]

    app_dispatcher.dispatch(UpdateRecord(ActionType.NOTICE_CLEAR_ALL))
    assert notice_store.get_all() == []


def test_app_state_store(app_dispatcher, app_state_store):
    assert app_state_store.get('fetchingPersistedExplorers') is True

    app_dispatcher.dispatch(UpdateRecord(ActionType.APP_STATE_UPDATE, updates={'fetchingPersistedExplorers': False}))

    assert app_state_store.get('fetchingPersistedExplorers') is False


class TestActionsThroughStores:
    """End-to-end state transitions driven by actions."""

    def test_exec_state_machine(self, wired_actions, explorer_store, notice_store):
        wired_actions.create({'id': 'e1', 'query': {'event_collection': 'clicks', 'analysis_type': 'count'}})
        pending = []
        client = Mock()
        client.run.side_effect = lambda request, callback: pending.append(callback)

        wired_actions.exec(client, 'e1')
        assert explorer_store.get('e1').loading is True

        with pytest.raises(RuntimeError):
            wired_actions.exec(client, 'e1')
        assert client.run.call_count == 1

        pending[0](None, {'result': 4})
        explorer = explorer_store.get('e1')
        assert explorer.loading is False
        assert explorer.result == 4
        assert notice_store.get_all() == []

    def test_exec_error_surfaces_notice(self, wired_actions, explorer_store, notice_store):
        wired_actions.create({'id': 'e1', 'query': {'event_collection': 'clicks', 'analysis_type': 'count'}})
        client = Mock()
        client.run.side_effect = lambda request, callback: callback({'message': 'Server error'}, None)

        wired_actions.exec(client, 'e1')

        assert explorer_store.get('e1').loading is False
        assert [(n.text, n.type) for n in notice_store.get_all()] == [('Server error', 'error')]

    def test_exec_failing_analysis_clears_loading(self, wired_actions, explorer_store, notice_store, events_dir):
        wired_actions.create({'id': 'e1', 'query': {
            'event_collection': 'clicks', 'analysis_type': 'count',
            'filters': [{'property_name': 'size', 'operator': 'in', 'property_value': '5'}],
        }})

        wired_actions.exec(LocalQueryClient(events_dir), 'e1')

        assert explorer_store.get('e1').loading is False
        assert [n.type for n in notice_store.get_all()] == ['error']

    def test_get_persisted_fills_store(self, wired_actions, explorer_store, app_state_store,
                                       persisted_models, stub_persistence_class):
        persisted_models[1]['query'] = {'event_collection': 'clicks'}

        wired_actions.get_persisted(stub_persistence_class(records=persisted_models))

        assert [e.id for e in explorer_store.get_all()] == ['1', '3']
        assert app_state_store.get('fetchingPersistedExplorers') is False

    def test_save_new_keeps_active_explorer(self, wired_actions, explorer_store, stub_persistence_class):
        wired_actions.create_and_activate({'id': 'src', 'name': 'Source',
                                           'query': {'event_collection': 'clicks', 'analysis_type': 'count'}})
        persistence = stub_persistence_class(created={'id': 'NEW_ID_123', 'name': 'some name'})

        wired_actions.save_new(persistence, 'src', 'some name')

        assert explorer_store.get_active().id == 'src'
        assert explorer_store.get('src').saving is False
        saved = explorer_store.get('NEW_ID_123')
        assert saved.name == 'some name'
        assert saved.query.event_collection == 'clicks'
