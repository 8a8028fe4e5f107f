"""
Validation rules for explorer queries.

A rule set is an ordered list of ValidationRule objects. run_validations()
evaluates them in order and reports the first failing rule's message.
"""

import re
from dataclasses import dataclass
from typing import Callable

from .models import Query, ValidationResult


ANALYSIS_TYPES = (
    'count',
    'count_unique',
    'sum',
    'minimum',
    'maximum',
    'average',
    'median',
    'percentile',
    'select_unique',
    'extraction',
)

# Short names found in older saved explorers
ANALYSIS_TYPE_ALIASES = {
    'max': 'maximum',
    'min': 'minimum',
    'avg': 'average',
}

ANALYSIS_TYPES_WITHOUT_TARGET = ('count', 'extraction')

_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def normalize_analysis_type(analysis_type):
    """Map legacy analysis type aliases to their canonical name."""
    return ANALYSIS_TYPE_ALIASES.get(analysis_type, analysis_type)


@dataclass(frozen=True)
class ValidationRule:
    """
    A single named predicate over a query.

    Each rule must implement a check that returns True when the query
    satisfies it.
    """

    name: str
    """Identifier of the rule (e.g., 'event_collection')."""

    message: str
    """User-facing message reported when the rule fails."""

    check: Callable[[Query], bool]

    def evaluate(self, query: Query) -> bool:
        """
        Evaluate whether a query satisfies this rule.

        Args:
            query: The query to evaluate.

        Returns:
            True if the query passes, False otherwise.
        """
        return bool(self.check(query))


def _has_event_collection(query: Query) -> bool:
    return bool(query.event_collection)


def _has_known_analysis_type(query: Query) -> bool:
    return normalize_analysis_type(query.analysis_type) in ANALYSIS_TYPES


def _has_target_property(query: Query) -> bool:
    analysis_type = normalize_analysis_type(query.analysis_type)
    if analysis_type in ANALYSIS_TYPES_WITHOUT_TARGET:
        return True
    return bool(query.target_property)


def _has_percentile(query: Query) -> bool:
    if normalize_analysis_type(query.analysis_type) != 'percentile':
        return True
    try:
        return 0 <= float(query.percentile) <= 100
    except (TypeError, ValueError):
        return False


def _latest_is_positive_integer(query: Query) -> bool:
    if query.latest is None or query.latest == '':
        return True
    try:
        return int(query.latest) > 0
    except (TypeError, ValueError):
        return False


def _has_email(query: Query) -> bool:
    return bool(query.email)


def _email_is_well_formed(query: Query) -> bool:
    return bool(_EMAIL_PATTERN.match(str(query.email)))


EXPLORER_RULES: tuple[ValidationRule, ...] = (
    ValidationRule('event_collection', 'Choose an Event Collection.', _has_event_collection),
    ValidationRule('analysis_type', 'Choose an Analysis Type.', _has_known_analysis_type),
    ValidationRule('target_property', 'Choose a Target Property.', _has_target_property),
    ValidationRule('percentile', 'Choose a Percentile between 0 and 100.', _has_percentile),
    ValidationRule('latest', 'Latest must be a positive number.', _latest_is_positive_integer),
)
"""Baseline rules every query must satisfy."""

EMAIL_EXTRACTION_RULES: tuple[ValidationRule, ...] = (
    ValidationRule('email', 'An email address is required.', _has_email),
    ValidationRule('email_format', 'The email address is not valid.', _email_is_well_formed),
)
"""Rules layered on top of EXPLORER_RULES for email extractions."""


def run_validations(rules, query: Query) -> ValidationResult:
    """
    Run a rule set against a query.

    Args:
        rules: Ordered iterable of ValidationRule.
        query: The query to validate.

    Returns:
        ValidationResult carrying the first failing rule's message, if any.
    """
    for rule in rules:
        if not rule.evaluate(query):
            return ValidationResult(is_valid=False, last_error=rule.message)
    return ValidationResult(is_valid=True)
