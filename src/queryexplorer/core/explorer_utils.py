"""
Helpers for shaping explorer queries.

Formatting of persisted queries, derivation of request parameters,
serialization for persistence and the bridge to an execution client.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from .models import Explorer, Query
from .validations import normalize_analysis_type


@dataclass
class QueryRequest:
    """A request handed to an execution client's run() method."""

    analysis_type: Optional[str]
    params: dict = field(default_factory=dict)


def _coerce_value(value):
    """Convert numeric and boolean strings coming from storage to native values."""
    if not isinstance(value, str):
        return value
    lowered = value.strip().lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return value


def format_filters(filters: Optional[list]) -> list[dict]:
    """
    Clean a list of filters.

    Filters without a property name or operator are dropped; property values
    are coerced to native types.

    Args:
        filters: Raw filter dictionaries.

    Returns:
        List of well-formed filter dictionaries.
    """
    formatted = []
    for raw in filters or []:
        if not isinstance(raw, dict):
            continue
        if not raw.get('property_name') or not raw.get('operator'):
            continue
        formatted.append({
            'property_name': raw['property_name'],
            'operator': raw['operator'],
            'property_value': _coerce_value(raw.get('property_value')),
        })
    return formatted


def format_query_params(explorer: Explorer) -> Explorer:
    """
    Normalize the query of a persisted explorer.

    Args:
        explorer: Explorer built from a persisted record.

    Returns:
        A new Explorer whose query has canonical analysis types, numeric
        `latest` and cleaned filters.
    """
    query = explorer.query
    latest = query.latest
    if isinstance(latest, str) and latest.strip().isdigit():
        latest = int(latest)
    elif latest == '':
        latest = None

    formatted_query = query.copy(
        analysis_type=normalize_analysis_type(query.analysis_type),
        latest=latest,
        filters=format_filters(query.filters),
    )
    formatted = Explorer.from_dict(explorer.to_dict())
    formatted.query = formatted_query
    return formatted


def query_params(query: Query) -> dict:
    """
    Derive request parameters from a query.

    Args:
        query: The query to run.

    Returns:
        Dictionary of non-empty query parameters.
    """
    params = query.to_params()
    if 'analysis_type' in params:
        params['analysis_type'] = normalize_analysis_type(params['analysis_type'])
    return params


def to_json(explorer: Explorer) -> dict:
    """
    Get the persistable attributes of an explorer.

    Runtime state (result and flags) is left out.
    """
    data = {
        'name': explorer.name,
        'query': explorer.query.to_params(),
        'visualization': {'chart_type': explorer.visualization.chart_type},
    }
    if explorer.id is not None:
        data['id'] = explorer.id
    return data


def run_query(client, query: Query, callback: Callable, params: Optional[dict] = None) -> None:
    """
    Run a query through an execution client.

    Args:
        client: Object exposing run(request, callback).
        query: The query to run.
        callback: Called as callback(error, response) by the client.
        params: Precomputed request parameters. Derived from `query` when None.
    """
    if params is None:
        params = query_params(query)
    request = QueryRequest(analysis_type=params.get('analysis_type'), params=params)
    client.run(request, callback)
