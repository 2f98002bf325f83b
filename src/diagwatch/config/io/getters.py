# topmark:header:start
#
#   project      : DiagWatch
#   file         : getters.py
#   file_relpath : src/diagwatch/config/io/getters.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Checked value getters for TOML config tables.

Each getter validates the expected shape and, on mismatch, records a
**warning** in a `DiagnosticLog` (and logs it) before returning ``None`` so the
caller keeps inheriting the lower-precedence value. Missing keys return ``None``
silently.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Final

from .guards import is_any_list

if TYPE_CHECKING:
    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.core.diagnostics import DiagnosticLog

    from .types import TomlTable


def _warn(
    diagnostics: DiagnosticLog,
    logger: DiagwatchLogger,
    message: str,
) -> None:
    logger.warning("%s", message)
    diagnostics.add_warning(message)


def get_string_value_or_none_checked(
    table: TomlTable,
    key: str,
    *,
    where: str,
    diagnostics: DiagnosticLog,
    logger: DiagwatchLogger,
) -> str | None:
    """Return an optional string value, warning when present but not `str`."""
    value: Any | None = table.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return value

    loc: Final[str] = f"{where}.{key}"
    _warn(diagnostics, logger, f"Expected string in {loc}, got {type(value).__name__}: {value!r}")
    return None


def get_bool_value_or_none_checked(
    table: TomlTable,
    key: str,
    *,
    where: str,
    diagnostics: DiagnosticLog,
    logger: DiagwatchLogger,
) -> bool | None:
    """Return an optional boolean value, warning when present but not `bool`."""
    value: Any | None = table.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        return value

    loc: Final[str] = f"{where}.{key}"
    _warn(diagnostics, logger, f"Expected bool in {loc}, got {type(value).__name__}: {value!r}")
    return None


def get_non_negative_int_or_none_checked(
    table: TomlTable,
    key: str,
    *,
    where: str,
    diagnostics: DiagnosticLog,
    logger: DiagwatchLogger,
    minimum: int = 0,
) -> int | None:
    """Return an optional integer ``>= minimum``, warning on any other value.

    Notes:
        - Missing key / None -> None
        - `bool` is rejected (since `bool` is a subclass of `int`).
    """
    value: Any | None = table.get(key)
    if value is None:
        return None

    loc: Final[str] = f"{where}.{key}"

    if isinstance(value, bool) or not isinstance(value, int):
        _warn(diagnostics, logger, f"Expected int in {loc}, got {type(value).__name__}: {value!r}")
        return None
    if value < minimum:
        _warn(diagnostics, logger, f"Expected int >= {minimum} in {loc}, got {value}")
        return None
    return value


def get_string_list_value_or_none_checked(
    table: TomlTable,
    key: str,
    *,
    where: str,
    diagnostics: DiagnosticLog,
    logger: DiagwatchLogger,
) -> list[str] | None:
    """Extract a list of strings, dropping non-string entries with a warning.

    Behavior:
        - Missing key -> None (inherit).
        - Not a list -> warning, None.
        - Non-string items are ignored, each with a warning.

    Returns:
        list[str] | None: The filtered list, or ``None`` when absent or malformed.
    """
    value: Any | None = table.get(key)
    if value is None:
        return None

    loc: Final[str] = f"{where}.{key}"

    if not is_any_list(value):
        _warn(diagnostics, logger, f"Expected list in {loc}, got {type(value).__name__}: {value!r}")
        return None

    out: list[str] = []
    for v in value:
        if isinstance(v, str):
            out.append(v)
        else:
            _warn(diagnostics, logger, f"Ignoring non-string entry in {loc}: {v!r}")
    return out
