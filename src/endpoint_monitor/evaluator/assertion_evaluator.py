"""
Assertion evaluation for probe responses.

This module decides whether a response is healthy for a given endpoint. It
checks the status code, the response time and every body-path assertion,
collecting all failures instead of stopping at the first one. It performs
no I/O and never raises for malformed bodies or bad paths; those simply
fail the affected assertions.
"""

import json
from typing import Any, List, Tuple

from endpoint_monitor.domain import AssertionOperator, Endpoint, PathAssertion, ProbeResponse


class _Absent:
    """Marker for a path that does not resolve, as opposed to a JSON null."""

    _instance = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

# Returned by _parse_body when the body is not valid JSON
_UNPARSEABLE = object()


def resolve_path(document: Any, path: str) -> Any:
    """
    Resolves a dot-separated path against a parsed JSON document.

    Each segment selects an object key, or a positional index when the
    current value is an array. Indices must be canonical non-negative
    integers ("0", "12"; not "01" or "-1").

    Args:
        document: The parsed JSON value to traverse.
        path: The dotted path, e.g. "data.items.0.status".

    Returns:
        Any: The resolved value (None for JSON null), or ABSENT when any
            segment cannot be resolved.
    """
    current = document
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return ABSENT
            current = current[segment]
        elif isinstance(current, list):
            if not (segment.isascii() and segment.isdigit()) or str(int(segment)) != segment:
                return ABSENT
            index = int(segment)
            if index >= len(current):
                return ABSENT
            current = current[index]
        else:
            return ABSENT
    return current


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strict_equals(actual: Any, expected: Any) -> bool:
    """Deep equality where booleans only equal booleans at every nesting level."""
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    if _is_number(actual) and _is_number(expected):
        return actual == expected
    if isinstance(actual, dict) and isinstance(expected, dict):
        return actual.keys() == expected.keys() and all(
            _strict_equals(actual[key], expected[key]) for key in actual
        )
    if isinstance(actual, list) and isinstance(expected, list):
        return len(actual) == len(expected) and all(
            _strict_equals(a, e) for a, e in zip(actual, expected)
        )
    return type(actual) is type(expected) and actual == expected


def _to_text(value: Any) -> str:
    """Renders a JSON value the way a JavaScript String() call would."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def _describe(value: Any) -> str:
    if value is ABSENT:
        return "absent"
    return json.dumps(value, default=str)


def check_assertion(document: Any, assertion: PathAssertion) -> bool:
    """
    Evaluates a single body-path assertion against a parsed document.

    An unresolvable path fails every operator, and unknown operators fail.

    Args:
        document: The parsed JSON body.
        assertion: The assertion to evaluate.

    Returns:
        bool: True if the assertion holds.
    """
    actual = resolve_path(document, assertion.path)
    if actual is ABSENT:
        return False

    operator = assertion.operator
    if operator == AssertionOperator.EQUALS:
        return _strict_equals(actual, assertion.value)
    if operator == AssertionOperator.NOT_EQUALS:
        return not _strict_equals(actual, assertion.value)
    if operator == AssertionOperator.CONTAINS:
        return _to_text(assertion.value) in _to_text(actual)
    if operator == AssertionOperator.EXISTS:
        return True
    return False


def _failure_reason(document: Any, assertion: PathAssertion) -> str:
    if document is _UNPARSEABLE:
        return f"Assertion failed: {assertion.path} (response body is not valid JSON)"

    if assertion.operator not in {op.value for op in AssertionOperator}:
        return f"Assertion failed: unknown operator '{assertion.operator}' for {assertion.path}"

    actual = resolve_path(document, assertion.path)
    if assertion.operator == AssertionOperator.EXISTS:
        return f"Assertion failed: {assertion.path} does not exist"
    return (
        f"Assertion failed: {assertion.path} {assertion.operator} "
        f"{_describe(assertion.value)} (actual: {_describe(actual)})"
    )


def _parse_body(body: str) -> Any:
    try:
        return json.loads(body)
    except (TypeError, ValueError):
        return _UNPARSEABLE


def evaluate(response: ProbeResponse, endpoint: Endpoint) -> Tuple[bool, List[str]]:
    """
    Validates a response against all of an endpoint's expectations.

    Args:
        response: Status code, latency and full body of the response.
        endpoint: The endpoint whose expectations apply.

    Returns:
        Tuple[bool, List[str]]: The overall health, and one human readable
            reason per failed expectation, in evaluation order.
    """
    reasons: List[str] = []

    if response.status_code not in endpoint.expected_status_codes:
        expected = " or ".join(str(code) for code in endpoint.expected_status_codes)
        reasons.append(f"Expected status {expected}, got {response.status_code}")

    threshold = endpoint.response_time_threshold_ms
    if threshold is not None and response.latency_ms > threshold:
        reasons.append(
            f"Response time {response.latency_ms}ms exceeded threshold {threshold}ms"
        )

    if endpoint.path_assertions:
        document = _parse_body(response.body)
        for assertion in endpoint.path_assertions:
            if document is _UNPARSEABLE or not check_assertion(document, assertion):
                reasons.append(_failure_reason(document, assertion))

    return not reasons, reasons
