# topmark:header:start
#
#   project      : DiagWatch
#   file         : model.py
#   file_relpath : src/diagwatch/problems/model.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Canonical problem data model.

A [`Problem`][diagwatch.problems.model.Problem] is the normalized, immutable
representation of one diagnostic finding for one file. Its JSON rendering
(`Problem.to_dict`) uses the camelCase keys of the export artifact.

Sections:
    * Severity: the four-value severity enum and its numeric code table.
    * Position / Range: zero-based coordinates.
    * RelatedInformation: secondary locations attached to a problem.
    * Problem: the canonical value stored in the cache.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, cast

from yachalk import chalk

from diagwatch.constants import (
    NO_RELATED_MESSAGE,
    UNKNOWN_MESSAGE,
    UNKNOWN_SOURCE,
    UNKNOWN_URI,
    UNKNOWN_WORKSPACE,
)
from diagwatch.core.enum_mixins import KeyedStrEnum

if TYPE_CHECKING:
    from collections.abc import Callable


class Severity(KeyedStrEnum):
    """Problem severity.

    The numeric codes 0..3 are the upstream wire encoding. Anything outside
    that table (negative, out of range, non-integer, missing) maps to
    `Severity.ERROR`.
    """

    ERROR = ("Error", "Error", ("err", "0"))
    WARNING = ("Warning", "Warning", ("warn", "1"))
    INFORMATION = ("Information", "Information", ("info", "2"))
    HINT = ("Hint", "Hint", ("3",))

    @classmethod
    def from_code(cls, code: object) -> Severity:
        """Map an upstream severity code to a `Severity`.

        Args:
            code (object): Raw severity code (expected ``0..3``).

        Returns:
            Severity: The mapped severity; `Severity.ERROR` for unknown codes.
        """
        # bool is an int subclass; it is not a severity code
        if isinstance(code, bool) or not isinstance(code, int):
            return cls.ERROR
        return _SEVERITY_BY_CODE.get(code, cls.ERROR)

    @property
    def code(self) -> int:
        """Return the numeric wire code (``0..3``)."""
        return _CODE_BY_SEVERITY[self]

    @property
    def color(self) -> Callable[[str], str]:
        """Return the `yachalk` color function used for human-readable output."""
        return cast(
            "Callable[[str], str]",
            {
                Severity.ERROR: chalk.red_bright,
                Severity.WARNING: chalk.yellow,
                Severity.INFORMATION: chalk.blue,
                Severity.HINT: chalk.gray,
            }[self],
        )


_SEVERITY_BY_CODE: Final[dict[int, Severity]] = {
    0: Severity.ERROR,
    1: Severity.WARNING,
    2: Severity.INFORMATION,
    3: Severity.HINT,
}
_CODE_BY_SEVERITY: Final[dict[Severity, int]] = {v: k for k, v in _SEVERITY_BY_CODE.items()}


@dataclass(frozen=True, slots=True)
class Position:
    """Zero-based line/character position."""

    line: int = 0
    character: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True, slots=True)
class Range:
    """Start/end positions of a problem within its file."""

    start: Position = Position()
    end: Position = Position()

    @classmethod
    def zero(cls) -> Range:
        """Return the ``{0,0}-{0,0}`` range used for missing coordinates."""
        return cls(Position(), Position())

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}


@dataclass(frozen=True, slots=True)
class RelatedInformation:
    """A secondary location related to a problem (e.g. "defined here")."""

    uri: str = UNKNOWN_URI
    range: Range = Range()
    message: str = NO_RELATED_MESSAGE

    def to_dict(self) -> dict[str, object]:
        return {
            "location": {"uri": self.uri, "range": self.range.to_dict()},
            "message": self.message,
        }


@dataclass(frozen=True, slots=True)
class Problem:
    """Canonical normalized representation of one diagnostic finding.

    Attributes:
        file_path (str): File identity the problem belongs to.
        workspace_folder (str): Name of the owning workspace folder, ``"unknown"`` if unresolved.
        range (Range): Zero-based location of the finding.
        severity (Severity): One of the four severities.
        message (str): Human-readable message; never empty.
        source (str): Originating tool (e.g. ``"ts"``, ``"eslint"``), ``"unknown"`` if absent.
        code (str | int | None): Optional tool-specific code.
        related_information (tuple[RelatedInformation, ...] | None): Optional related locations.
            ``None`` means absent; ``()`` means the upstream sent an explicit empty list.
    """

    file_path: str
    workspace_folder: str
    range: Range
    severity: Severity
    message: str
    source: str = UNKNOWN_SOURCE
    code: str | int | None = None
    related_information: tuple[RelatedInformation, ...] | None = None

    def to_dict(self) -> dict[str, object]:
        """Return the camelCase JSON mapping used by the export artifact."""
        out: dict[str, object] = {
            "filePath": self.file_path,
            "workspaceFolder": self.workspace_folder,
            "range": self.range.to_dict(),
            "severity": self.severity.value,
            "message": self.message,
            "source": self.source,
        }
        if self.code is not None:
            out["code"] = self.code
        if self.related_information is not None:
            out["relatedInformation"] = [r.to_dict() for r in self.related_information]
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Problem:
        """Rebuild a `Problem` from its `to_dict` rendering.

        Missing fields fall back to the same placeholders the normalizer uses.

        Args:
            data (Mapping[str, Any]): A mapping as produced by `Problem.to_dict`.

        Returns:
            Problem: The reconstructed problem.
        """
        severity_raw: Any = data.get("severity")
        severity: Severity = (
            Severity.parse(severity_raw) or Severity.ERROR
            if isinstance(severity_raw, str)
            else Severity.from_code(severity_raw)
        )
        related_raw: Any = data.get("relatedInformation")
        related: tuple[RelatedInformation, ...] | None = None
        if isinstance(related_raw, list):
            related = tuple(
                RelatedInformation(
                    uri=str(_get(_get(r, "location"), "uri", UNKNOWN_URI)),
                    range=_range_from(_get(_get(r, "location"), "range")),
                    message=str(_get(r, "message", NO_RELATED_MESSAGE)),
                )
                for r in cast("list[Any]", related_raw)
            )
        code: Any = data.get("code")
        return cls(
            file_path=str(data.get("filePath", "")),
            workspace_folder=str(data.get("workspaceFolder") or UNKNOWN_WORKSPACE),
            range=_range_from(data.get("range")),
            severity=severity,
            message=str(data.get("message") or UNKNOWN_MESSAGE),
            source=str(data.get("source") or UNKNOWN_SOURCE),
            code=code if isinstance(code, (str, int)) and not isinstance(code, bool) else None,
            related_information=related,
        )


def _get(obj: object, key: str, default: object = None) -> Any:
    if isinstance(obj, Mapping):
        return cast("Mapping[str, Any]", obj).get(key, default)
    return default


def _coord(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return 0


def _range_from(obj: object) -> Range:
    start: object = _get(obj, "start")
    end: object = _get(obj, "end")
    return Range(
        start=Position(_coord(_get(start, "line")), _coord(_get(start, "character"))),
        end=Position(_coord(_get(end, "line")), _coord(_get(end, "character"))),
    )
