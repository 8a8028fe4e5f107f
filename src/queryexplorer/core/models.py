"""
Core domain models for explorer state.

This module contains pure data models for explorers, their queries and the
update records announced on the dispatch channel.
These models are GUI-agnostic and should not import any UI frameworks.
"""

import copy
from dataclasses import dataclass, field, fields, asdict
from enum import Enum
from typing import Any, Optional, Union


ExplorerId = Union[str, int]


class ActionType(str, Enum):
    """Action types understood by the stores."""

    EXPLORER_CREATE = 'EXPLORER_CREATE'
    EXPLORER_CREATE_BATCH = 'EXPLORER_CREATE_BATCH'
    EXPLORER_UPDATE = 'EXPLORER_UPDATE'
    EXPLORER_REMOVE = 'EXPLORER_REMOVE'
    EXPLORER_SET_ACTIVE = 'EXPLORER_SET_ACTIVE'
    EXPLORER_DESTROYING = 'EXPLORER_DESTROYING'
    EXPLORER_DESTROY_SUCCESS = 'EXPLORER_DESTROY_SUCCESS'
    EXPLORER_DESTROY_FAIL = 'EXPLORER_DESTROY_FAIL'
    NOTICE_CREATE = 'NOTICE_CREATE'
    NOTICE_CLEAR_ALL = 'NOTICE_CLEAR_ALL'
    APP_STATE_UPDATE = 'APP_STATE_UPDATE'


def _is_empty(value: Any) -> bool:
    return value is None or value == '' or value == [] or value == {}


@dataclass
class Query:
    """An analysis request against one event collection."""

    event_collection: Optional[str] = None
    """Name of the event collection to analyze (e.g., 'clicks')."""

    analysis_type: Optional[str] = None
    """Analysis to run (e.g., 'count', 'sum', 'extraction')."""

    target_property: Optional[str] = None
    """Property the analysis aggregates. Not used by count or extraction."""

    percentile: Optional[float] = None
    """Percentile to compute when analysis_type is 'percentile'."""

    group_by: Optional[str] = None
    interval: Optional[str] = None

    timeframe: Optional[dict] = None
    """Absolute timeframe as {'start': iso8601, 'end': iso8601}."""

    timezone: Optional[str] = None

    filters: list[dict] = field(default_factory=list)
    """Filters as {'property_name', 'operator', 'property_value'} dictionaries."""

    latest: Optional[Union[int, str]] = None
    """Limit an extraction to the most recent N events."""

    email: Optional[str] = None
    """Recipient address for an email extraction."""

    property_names: Optional[list[str]] = None

    def to_dict(self) -> dict:
        """Serialize every field, empty or not."""
        return asdict(self)

    def to_params(self) -> dict:
        """
        Get the request parameters for this query.

        Returns:
            Dictionary of the non-empty fields only.
        """
        return {key: value for key, value in self.to_dict().items() if not _is_empty(value)}

    def copy(self, **changes) -> 'Query':
        """Return a deep copy of the query with the given fields replaced."""
        data = copy.deepcopy(self.to_dict())
        data.update(changes)
        return Query.from_dict(data)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'Query':
        """
        Build a Query from a dictionary, ignoring unknown keys.

        Args:
            data: Query dictionary. None yields an empty query.

        Raises:
            TypeError: If data is not a dictionary.
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"Query must be a dictionary, got {type(data).__name__}")
        known = {f.name for f in fields(cls)}
        kwargs = {key: value for key, value in data.items() if key in known}
        if kwargs.get('filters') is None:
            kwargs.pop('filters', None)
        return cls(**kwargs)


@dataclass
class Visualization:
    """Chart configuration for an explorer."""

    chart_type: Optional[str] = None
    """Chart type (e.g., 'metric', 'table', 'line')."""

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'Visualization':
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise TypeError(f"Visualization must be a dictionary, got {type(data).__name__}")
        return cls(chart_type=data.get('chart_type'))


@dataclass
class Explorer:
    """
    A saved or in-progress analysis: its query, visualization and last result.

    The `loading` flag is the single-flight guard for execution. Runtime flags
    (`loading`, `saving`, `destroying`) and `result` are never persisted.
    """

    id: Optional[ExplorerId] = None
    name: str = ''
    query: Query = field(default_factory=Query)
    visualization: Visualization = field(default_factory=Visualization)
    result: Any = None
    loading: bool = False
    saving: bool = False
    destroying: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'Explorer':
        """
        Build an Explorer from a raw (e.g. persisted) record.

        Args:
            data: Record dictionary. Missing sections become empty defaults.

        Raises:
            TypeError: If the record or one of its sections is not a dictionary.
        """
        if not isinstance(data, dict):
            raise TypeError(f"Explorer record must be a dictionary, got {type(data).__name__}")
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            query=Query.from_dict(data.get('query')),
            visualization=Visualization.from_dict(data.get('visualization')),
            result=data.get('result'),
            loading=bool(data.get('loading', False)),
            saving=bool(data.get('saving', False)),
            destroying=bool(data.get('destroying', False)),
        )

    def to_dict(self) -> dict:
        return asdict(self)

    def apply_updates(self, updates: dict) -> None:
        """
        Apply a partial update in place.

        `query` and `visualization` accept either model instances or
        dictionaries; unknown keys are ignored.
        """
        for key, value in updates.items():
            if key == 'query' and isinstance(value, dict):
                value = Query.from_dict(value)
            elif key == 'visualization' and isinstance(value, dict):
                value = Visualization.from_dict(value)
            if hasattr(self, key):
                setattr(self, key, value)


@dataclass
class ValidationResult:
    """Outcome of running a validation rule set against a query."""

    is_valid: bool
    last_error: Optional[str] = None


@dataclass
class UpdateRecord:
    """
    A state update announced on the dispatch channel.

    This is the only vocabulary actions use to change state; stores apply
    the records they receive.
    """

    action_type: ActionType
    id: Optional[ExplorerId] = None
    updates: Optional[dict] = None
    attrs: Optional[dict] = None
    models: Optional[list[Explorer]] = None

    def to_dict(self) -> dict:
        """Serialize to the `{actionType, id, updates|attrs}` wire shape."""
        data = {'actionType': self.action_type.value}
        for key in ('id', 'updates', 'attrs'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        if self.models is not None:
            data['models'] = [model.to_dict() for model in self.models]
        return data


@dataclass
class Notice:
    """A transient user-facing message."""

    text: str
    type: str = 'info'
    """Notice type: 'error', 'info' or 'success'."""
