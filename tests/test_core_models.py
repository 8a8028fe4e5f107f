"""
Tests for core domain models and explorer utilities.
"""

from unittest.mock import Mock

import pytest

from queryexplorer.core import explorer_utils
from queryexplorer.core.models import ActionType, Explorer, Query, UpdateRecord, Visualization


class TestQuery:
    """Tests for the Query model."""

    def test_to_params_drops_empty_values(self):
        query = Query(event_collection='clicks', analysis_type='count', latest='', filters=[], email=None)
        assert query.to_params() == {'event_collection': 'clicks', 'analysis_type': 'count'}

    def test_from_dict_ignores_unknown_keys(self):
        query = Query.from_dict({'event_collection': 'clicks', 'unknown': 1, 'filters': None})
        assert query.event_collection == 'clicks'
        assert query.filters == []

    def test_copy_is_independent(self):
        query = Query(filters=[{'property_name': 'a', 'operator': 'eq', 'property_value': 1}])
        copied = query.copy(latest=10)

        copied.filters[0]['property_value'] = 2

        assert copied.latest == 10
        assert query.latest is None
        assert query.filters[0]['property_value'] == 1


class TestExplorer:
    """Tests for the Explorer model."""

    def test_from_dict_with_missing_sections(self):
        explorer = Explorer.from_dict({'id': '3'})
        assert explorer.id == '3'
        assert explorer.query == Query()
        assert explorer.visualization == Visualization()
        assert explorer.loading is False

    @pytest.mark.parametrize("record", [
        "favorite",
        {'id': '3', 'query': 'count on clicks'},
        {'id': '3', 'visualization': ['metric']},
    ])
    def test_from_dict_rejects_non_dict_sections(self, record):
        with pytest.raises(TypeError):
            Explorer.from_dict(record)

    def test_apply_updates(self):
        explorer = Explorer(id=1)
        explorer.apply_updates({'loading': True, 'query': {'event_collection': 'views'}, 'bogus': 1})

        assert explorer.loading is True
        assert explorer.query.event_collection == 'views'
        assert not hasattr(explorer, 'bogus')


def test_update_record_wire_shape():
    record = UpdateRecord(ActionType.EXPLORER_UPDATE, id=5, updates={'loading': True})
    assert record.to_dict() == {'actionType': 'EXPLORER_UPDATE', 'id': 5, 'updates': {'loading': True}}

    assert UpdateRecord(ActionType.NOTICE_CLEAR_ALL).to_dict() == {'actionType': 'NOTICE_CLEAR_ALL'}


class TestExplorerUtils:
    """Tests for explorer_utils helpers."""

    def test_format_query_params(self):
        explorer = Explorer.from_dict({
            'id': '1',
            'query': {
                'event_collection': 'clicks',
                'analysis_type': 'min',
                'target_property': 'size',
                'latest': '50',
                'filters': [
                    {'property_name': 'size', 'operator': 'gt', 'property_value': '3'},
                    {'property_name': '', 'operator': 'eq', 'property_value': 'x'},
                    {'property_name': 'paid', 'operator': 'eq', 'property_value': 'true'},
                ],
            },
        })

        formatted = explorer_utils.format_query_params(explorer)

        assert formatted.query.analysis_type == 'minimum'
        assert formatted.query.latest == 50
        assert formatted.query.filters == [
            {'property_name': 'size', 'operator': 'gt', 'property_value': 3},
            {'property_name': 'paid', 'operator': 'eq', 'property_value': True},
        ]
        # The source explorer is not modified
        assert explorer.query.analysis_type == 'min'

    def test_to_json_leaves_out_runtime_state(self):
        explorer = Explorer(
            id='7',
            name='Views',
            query=Query(event_collection='views', analysis_type='count'),
            result=3,
            loading=True,
        )
        assert explorer_utils.to_json(explorer) == {
            'id': '7',
            'name': 'Views',
            'query': {'event_collection': 'views', 'analysis_type': 'count'},
            'visualization': {'chart_type': None},
        }

    def test_run_query_builds_request(self):
        client = Mock()
        callback = Mock()

        explorer_utils.run_query(client, Query(event_collection='clicks', analysis_type='max', target_property='size'), callback)

        request, passed_callback = client.run.call_args.args
        assert request.analysis_type == 'maximum'
        assert request.params == {'event_collection': 'clicks', 'analysis_type': 'maximum', 'target_property': 'size'}
        assert passed_callback is callback
