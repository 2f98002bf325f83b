# topmark:header:start
#
#   project      : DiagWatch
#   file         : constants.py
#   file_relpath : src/diagwatch/constants.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch Constants."""

from __future__ import annotations

from importlib.metadata import version as get_version
from typing import Final

DIAGWATCH_VERSION: str = get_version("diagwatch")

# Config file discovery
DEFAULT_TOML_CONFIG_NAME: Final[str] = "diagwatch.toml"
PYPROJECT_TOML_NAME: Final[str] = "pyproject.toml"

# Markers framing the TOML output of `diagwatch config`
TOML_BLOCK_START: Final[str] = "# === BEGIN[TOML] ==="
TOML_BLOCK_END: Final[str] = "# === END[TOML] ==="

# Placeholders used when a raw diagnostic omits a field
UNKNOWN_MESSAGE: Final[str] = "Unknown error"
UNKNOWN_SOURCE: Final[str] = "unknown"
UNKNOWN_WORKSPACE: Final[str] = "unknown"
UNKNOWN_URI: Final[str] = "unknown"
NO_RELATED_MESSAGE: Final[str] = "No message"
CONVERSION_ERROR_MESSAGE: Final[str] = "Conversion error occurred"

# Engine defaults
DEFAULT_DEBOUNCE_MS: Final[int] = 300
DEFAULT_MAX_PROBLEMS_PER_FILE: Final[int] = 1000

# Export defaults
DEFAULT_EXPORT_INTERVAL_S: Final[int] = 30

# Workspace analysis defaults
DEFAULT_SCAN_PATTERNS: Final[tuple[str, ...]] = (
    "**/*.ts",
    "**/*.tsx",
    "**/*.js",
    "**/*.jsx",
    "**/*.py",
)
DEFAULT_SCAN_EXCLUDE: Final[tuple[str, ...]] = (
    "**/node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/out/**",
    "**/.git/**",
    "**/__pycache__/**",
    "**/.venv/**",
)
DEFAULT_SCAN_BATCH_SIZE: Final[int] = 5
DEFAULT_SCAN_FILE_DELAY_MS: Final[int] = 10
DEFAULT_SCAN_BATCH_DELAY_MS: Final[int] = 200
DEFAULT_SETTLE_MS: Final[int] = 1000
DEFAULT_RELOAD_COMMAND: Final[str] = "typescript.reloadProjects"

# Performance thresholds (milliseconds) per measured operation
PERFORMANCE_THRESHOLDS_MS: Final[dict[str, float]] = {
    "diagnostic-processing": 500.0,
    "workspace-analysis": 60_000.0,
    "export": 100.0,
}
PERFORMANCE_MAX_HISTORY: Final[int] = 100
