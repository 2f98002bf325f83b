# topmark:header:start
#
#   project      : DiagWatch
#   file         : normalizer.py
#   file_relpath : src/diagwatch/problems/normalizer.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Problem normalizer: raw diagnostic + file identity -> `Problem`.

`ProblemNormalizer.normalize` never raises. Any payload that cannot be
validated, and any unexpected failure while building the value, yields a
degraded-but-valid `Problem` (severity `Error`, message
``"Conversion error occurred"``, zero range, unknown source and workspace).

Workspace-folder resolution is delegated to a caller-supplied resolver; any
exception it raises, or an empty answer, resolves to ``"unknown"``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diagwatch.config.logging import get_logger
from diagwatch.constants import (
    CONVERSION_ERROR_MESSAGE,
    UNKNOWN_MESSAGE,
    UNKNOWN_SOURCE,
    UNKNOWN_WORKSPACE,
)
from diagwatch.problems.model import Problem, Range, Severity
from diagwatch.problems.schema import RawDiagnostic, Unparsable, parse_raw_diagnostic

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from diagwatch.config.logging import DiagwatchLogger

logger: DiagwatchLogger = get_logger(__name__)


def degraded_problem(file_path: str) -> Problem:
    """Return the fallback `Problem` used when conversion fails.

    Args:
        file_path (str): File identity the failed diagnostic belonged to.

    Returns:
        Problem: A valid problem flagged as a conversion error.
    """
    return Problem(
        file_path=file_path,
        workspace_folder=UNKNOWN_WORKSPACE,
        range=Range.zero(),
        severity=Severity.ERROR,
        message=CONVERSION_ERROR_MESSAGE,
        source=UNKNOWN_SOURCE,
    )


class ProblemNormalizer:
    """Convert raw diagnostics into canonical problems.

    Args:
        resolve_workspace_folder (Callable[[str], str | None] | None): Returns the
            workspace folder name owning a file path. May raise; failures
            resolve to ``"unknown"``.
    """

    def __init__(
        self,
        resolve_workspace_folder: Callable[[str], str | None] | None = None,
    ) -> None:
        self._resolve: Callable[[str], str | None] | None = resolve_workspace_folder

    def workspace_folder_for(self, file_path: str) -> str:
        """Resolve the workspace folder name for ``file_path``, never raising."""
        if self._resolve is None:
            return UNKNOWN_WORKSPACE
        try:
            name: str | None = self._resolve(file_path)
        except Exception as exc:  # upstream adapters may fail arbitrarily
            logger.debug("Workspace folder lookup failed for %s: %s", file_path, exc)
            return UNKNOWN_WORKSPACE
        return name or UNKNOWN_WORKSPACE

    def normalize(self, raw: object, file_path: str) -> Problem:
        """Normalize one raw diagnostic for ``file_path``.

        Args:
            raw (object): A raw payload, or an already validated `RawDiagnostic`.
            file_path (str): File identity the diagnostic belongs to.

        Returns:
            Problem: The canonical problem (degraded on failure).
        """
        try:
            parsed: RawDiagnostic | Unparsable = parse_raw_diagnostic(raw)
            if isinstance(parsed, Unparsable):
                logger.debug("Unparsable diagnostic for %s: %s", file_path, parsed.reason)
                return degraded_problem(file_path)
            return Problem(
                file_path=file_path,
                workspace_folder=self.workspace_folder_for(file_path),
                range=parsed.range or Range.zero(),
                severity=Severity.from_code(parsed.severity),
                message=parsed.message or UNKNOWN_MESSAGE,
                source=parsed.source or UNKNOWN_SOURCE,
                code=parsed.code,
                related_information=parsed.related_information,
            )
        except Exception as exc:
            logger.warning("Error converting diagnostic for %s: %s", file_path, exc)
            return degraded_problem(file_path)

    def normalize_all(self, raws: Iterable[object], file_path: str) -> list[Problem]:
        """Normalize every raw diagnostic reported for ``file_path``, in order."""
        return [self.normalize(raw, file_path) for raw in raws]
