# topmark:header:start
#
#   project      : DiagWatch
#   file         : keys.py
#   file_relpath : src/diagwatch/config/keys.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Canonical TOML section and key names for DiagWatch configuration.

These constants are the external configuration schema as it appears in
``diagwatch.toml`` and in ``[tool.diagwatch]`` inside ``pyproject.toml``.
Renaming or removing a key is a breaking change.
"""

from __future__ import annotations

from typing import Final


class Toml:
    """TOML section names and keys used by DiagWatch configuration.

    The ordering of constants mirrors `load_defaults_dict()` so that defaults,
    parsing and docs stay aligned.
    """

    # pyproject.toml nesting
    SECTION_TOOL: Final[str] = "tool"
    SECTION_DIAGWATCH: Final[str] = "diagwatch"

    # [engine]
    SECTION_ENGINE: Final[str] = "engine"

    KEY_DEBOUNCE_MS: Final[str] = "debounce_ms"
    KEY_MAX_PROBLEMS_PER_FILE: Final[str] = "max_problems_per_file"
    KEY_PERFORMANCE_LOGGING: Final[str] = "performance_logging"

    # [export]
    SECTION_EXPORT: Final[str] = "export"

    KEY_PATH: Final[str] = "path"
    KEY_INTERVAL_S: Final[str] = "interval_s"

    # [scan]
    SECTION_SCAN: Final[str] = "scan"

    KEY_PATTERNS: Final[str] = "patterns"
    KEY_EXCLUDE: Final[str] = "exclude"
    KEY_BATCH_SIZE: Final[str] = "batch_size"
    KEY_FILE_DELAY_MS: Final[str] = "file_delay_ms"
    KEY_BATCH_DELAY_MS: Final[str] = "batch_delay_ms"
    KEY_SETTLE_MS: Final[str] = "settle_ms"
    KEY_RELOAD_COMMAND: Final[str] = "reload_command"
