"""
Local analysis engine.

Evaluates query parameters (as produced by explorer_utils.query_params)
against a list of event dictionaries. Numeric aggregations use numpy.
"""

from typing import Any, Optional

import numpy as np

from .validations import normalize_analysis_type


TIMESTAMP_PROPERTY = 'timestamp'


def get_property(event: dict, property_name: str) -> Any:
    """
    Read a possibly nested property using dot notation.

    Args:
        event: Event dictionary.
        property_name: Property path (e.g., 'user.age').

    Returns:
        The value, or None if any part of the path is missing.
    """
    value: Any = event
    for part in property_name.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _to_number(value) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def evaluate_filter(event: dict, event_filter: dict) -> bool:
    """
    Check whether an event satisfies a single filter.

    Supported operators: eq, ne, gt, gte, lt, lte, contains, not_contains,
    exists, in. Comparisons are numeric when both sides are numbers and
    fall back to string comparison otherwise.
    """
    operator = event_filter.get('operator')
    expected = event_filter.get('property_value')
    actual = get_property(event, event_filter.get('property_name', ''))

    if operator == 'exists':
        return (actual is not None) == bool(expected)
    if actual is None:
        return operator == 'ne'

    if operator in ('eq', 'ne'):
        actual_num, expected_num = _to_number(actual), _to_number(expected)
        if actual_num is not None and expected_num is not None:
            equal = actual_num == expected_num
        else:
            equal = str(actual) == str(expected)
        return equal if operator == 'eq' else not equal
    if operator in ('gt', 'gte', 'lt', 'lte'):
        actual_num, expected_num = _to_number(actual), _to_number(expected)
        if actual_num is None or expected_num is None:
            return False
        if operator == 'gt':
            return actual_num > expected_num
        if operator == 'gte':
            return actual_num >= expected_num
        if operator == 'lt':
            return actual_num < expected_num
        return actual_num <= expected_num
    if operator == 'contains':
        return str(expected) in str(actual)
    if operator == 'not_contains':
        return str(expected) not in str(actual)
    if operator == 'in':
        return actual in (expected or [])
    raise ValueError(f"Unsupported filter operator: {operator}")


def _in_timeframe(event: dict, timeframe: dict) -> bool:
    # ISO 8601 timestamps in the same timezone compare lexicographically
    timestamp = get_property(event, TIMESTAMP_PROPERTY)
    if timestamp is None:
        return False
    start = timeframe.get('start')
    end = timeframe.get('end')
    if start and str(timestamp) < str(start):
        return False
    if end and str(timestamp) >= str(end):
        return False
    return True


def select_events(events: list[dict], params: dict) -> list[dict]:
    """
    Apply filters, timeframe and the `latest` limit.

    Returns:
        Matching events in chronological order.
    """
    selected = [
        event for event in events
        if all(evaluate_filter(event, f) for f in params.get('filters') or [])
    ]

    timeframe = params.get('timeframe')
    if isinstance(timeframe, dict):
        selected = [event for event in selected if _in_timeframe(event, timeframe)]

    selected.sort(key=lambda event: str(get_property(event, TIMESTAMP_PROPERTY) or ''))

    latest = params.get('latest')
    if latest not in (None, ''):
        selected = selected[-int(latest):]

    return selected


def _aggregate(analysis_type: str, events: list[dict], params: dict) -> Any:
    if analysis_type == 'count':
        return len(events)
    if analysis_type == 'extraction':
        property_names = params.get('property_names')
        if property_names:
            return [{name: get_property(event, name) for name in property_names} for event in events]
        return events

    target = params.get('target_property')
    if not target:
        raise ValueError(f"Analysis type '{analysis_type}' requires a target_property")

    values = [get_property(event, target) for event in events]
    values = [value for value in values if value is not None]

    if analysis_type == 'count_unique':
        return len({str(value) for value in values})
    if analysis_type == 'select_unique':
        unique = []
        for value in values:
            if value not in unique:
                unique.append(value)
        return unique

    numbers = np.array([n for n in (_to_number(v) for v in values) if n is not None], dtype=float)
    if numbers.size == 0:
        return 0 if analysis_type == 'sum' else None

    if analysis_type == 'sum':
        return float(np.sum(numbers))
    if analysis_type == 'minimum':
        return float(np.min(numbers))
    if analysis_type == 'maximum':
        return float(np.max(numbers))
    if analysis_type == 'average':
        return float(np.mean(numbers))
    if analysis_type == 'median':
        return float(np.median(numbers))
    if analysis_type == 'percentile':
        return float(np.percentile(numbers, float(params.get('percentile'))))
    raise ValueError(f"Unsupported analysis type: {analysis_type}")


def run_analysis(events: list[dict], params: dict) -> dict:
    """
    Run an analysis over events.

    Args:
        events: Events of one collection.
        params: Request parameters (analysis_type, filters, group_by, ...).

    Returns:
        Response dictionary with a 'result' key. Grouped analyses return a
        list of {<group_by>: value, 'result': ...} entries sorted by group.

    Raises:
        ValueError: If the analysis type or a filter operator is unsupported.
    """
    analysis_type = normalize_analysis_type(params.get('analysis_type'))
    selected = select_events(events, params)

    group_by = params.get('group_by')
    if not group_by or analysis_type == 'extraction':
        return {'result': _aggregate(analysis_type, selected, params)}

    groups: dict[str, list[dict]] = {}
    for event in selected:
        key = get_property(event, group_by)
        groups.setdefault(key, []).append(event)

    result = [
        {group_by: key, 'result': _aggregate(analysis_type, group_events, params)}
        for key, group_events in sorted(groups.items(), key=lambda item: str(item[0]))
    ]
    return {'result': result}
