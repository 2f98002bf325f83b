# topmark:header:start
#
#   project      : DiagWatch
#   file         : schema.py
#   file_relpath : src/diagwatch/problems/schema.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Boundary validation of raw diagnostic payloads.

Upstream sources hand over loosely-shaped diagnostic records (decoded JSON,
editor API objects converted to mappings). This module validates them once, at
the boundary, into either a [`RawDiagnostic`][diagwatch.problems.schema.RawDiagnostic]
with typed optional fields, or an explicit
[`Unparsable`][diagwatch.problems.schema.Unparsable] variant. The normalizer
only ever sees these two shapes.

Accepted raw shape (all keys optional):

```json
{
  "range": {"start": {"line": 0, "character": 0}, "end": {"line": 0, "character": 1}},
  "severity": 1,
  "message": "x",
  "source": "ts",
  "code": 2304,
  "relatedInformation": [
    {"location": {"uri": "file:///b.ts", "range": {...}}, "message": "see here"}
  ]
}
```

Notes:
    - Coordinates that are missing, negative or not integers become ``0``.
    - ``code`` may be a string, an integer, or a ``{"value": ...}`` wrapper.
    - ``severity`` may be the numeric code or a severity name (``"Warning"``).
    - ``relatedInformation`` keeps a three-way distinction: missing or not a
      list -> ``None``; ``[]`` -> ``()``; entries -> default-filled tuple.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeGuard, cast

from diagwatch.config.logging import get_logger
from diagwatch.constants import NO_RELATED_MESSAGE, UNKNOWN_URI
from diagwatch.problems.model import Position, Range, RelatedInformation, Severity

if TYPE_CHECKING:
    from diagwatch.config.logging import DiagwatchLogger

logger: DiagwatchLogger = get_logger(__name__)

RELATED_INFORMATION_KEYS: tuple[str, ...] = ("relatedInformation", "related_information")


@dataclass(frozen=True, slots=True)
class RawDiagnostic:
    """A validated raw diagnostic; every field is optional and already type-checked.

    Attributes:
        range (Range | None): Parsed range, or ``None`` when the payload had none.
        severity (int | None): Severity wire code, or ``None`` when absent/invalid.
        message (str | None): Non-empty message, or ``None``.
        source (str | None): Non-empty source, or ``None``.
        code (str | int | None): Unwrapped code, or ``None``.
        related_information (tuple[RelatedInformation, ...] | None): See module notes.
    """

    range: Range | None = None
    severity: int | None = None
    message: str | None = None
    source: str | None = None
    code: str | int | None = None
    related_information: tuple[RelatedInformation, ...] | None = None


@dataclass(frozen=True, slots=True)
class Unparsable:
    """A payload that could not be interpreted as a diagnostic at all.

    Attributes:
        reason (str): Short explanation for logs.
        payload (object): The offending payload, kept for diagnostics.
    """

    reason: str
    payload: object = None


def is_mapping(obj: object) -> TypeGuard[Mapping[str, Any]]:
    """Type guard for a mapping-like payload."""
    return isinstance(obj, Mapping)


def _non_negative_int(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def _non_empty_str(value: object) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def parse_position(obj: object) -> Position:
    """Parse a ``{line, character}`` mapping, defaulting bad coordinates to ``0``."""
    if not is_mapping(obj):
        return Position()
    return Position(
        line=_non_negative_int(obj.get("line")),
        character=_non_negative_int(obj.get("character")),
    )


def parse_range(obj: object) -> Range | None:
    """Parse a ``{start, end}`` mapping.

    Returns:
        Range | None: The parsed range, or ``None`` when ``obj`` is not a mapping.
    """
    if not is_mapping(obj):
        return None
    return Range(start=parse_position(obj.get("start")), end=parse_position(obj.get("end")))


def parse_code(value: object) -> str | int | None:
    """Unwrap a diagnostic code (plain value or ``{"value": ...}`` wrapper)."""
    if is_mapping(value):
        value = value.get("value")
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int)):
        return value
    return None


def parse_severity(value: object) -> int | None:
    """Return the severity wire code, accepting names as well as numbers."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        parsed: Severity | None = Severity.parse(value)
        return parsed.code if parsed is not None else None
    return None


def parse_related_entry(obj: object) -> RelatedInformation:
    """Parse one related-information entry, default-filling missing parts."""
    if not is_mapping(obj):
        return RelatedInformation()
    location: object = obj.get("location")
    uri: object = None
    rng: Range | None = None
    if is_mapping(location):
        uri = location.get("uri")
        rng = parse_range(location.get("range"))
    return RelatedInformation(
        uri=_non_empty_str(uri) or UNKNOWN_URI,
        range=rng or Range.zero(),
        message=_non_empty_str(obj.get("message")) or NO_RELATED_MESSAGE,
    )


def parse_related_information(value: object) -> tuple[RelatedInformation, ...] | None:
    """Parse the related-information field.

    Returns:
        tuple[RelatedInformation, ...] | None: ``None`` when missing, not a list,
            or unwalkable; ``()`` for an explicit empty list; entries otherwise.
    """
    if not isinstance(value, (list, tuple)):
        return None
    try:
        return tuple(parse_related_entry(entry) for entry in cast("list[object]", value))
    except (TypeError, ValueError, AttributeError) as exc:
        logger.debug("Dropping unparsable related information: %s", exc)
        return None


def parse_raw_diagnostic(obj: object) -> RawDiagnostic | Unparsable:
    """Validate a raw diagnostic payload.

    Args:
        obj (object): The payload as received from the upstream source.

    Returns:
        RawDiagnostic | Unparsable: A validated value, or `Unparsable` when
            ``obj`` is not a mapping.
    """
    if isinstance(obj, RawDiagnostic):
        return obj
    if not is_mapping(obj):
        return Unparsable(reason=f"expected a mapping, got {type(obj).__name__}", payload=obj)

    related_value: object = None
    for key in RELATED_INFORMATION_KEYS:
        if key in obj:
            related_value = obj[key]
            break

    return RawDiagnostic(
        range=parse_range(obj.get("range")),
        severity=parse_severity(obj.get("severity")),
        message=_non_empty_str(obj.get("message")),
        source=_non_empty_str(obj.get("source")),
        code=parse_code(obj.get("code")),
        related_information=parse_related_information(related_value),
    )
