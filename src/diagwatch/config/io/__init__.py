# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/config/io/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""TOML I/O helpers for DiagWatch configuration.

Pure helpers for reading, validating, and writing TOML used by the
configuration layer. DiagWatch uses `tomlkit` for parsing and rendering.

Typical flow:
    1. Load runtime defaults (``load_defaults_dict``).
    2. Load project TOML files (``load_toml_dict``).
    3. Read values with checked getters that record warnings in a `DiagnosticLog`.
    4. Render back to TOML when needed (``to_toml``).
"""

from __future__ import annotations

from .getters import (
    get_bool_value_or_none_checked,
    get_non_negative_int_or_none_checked,
    get_string_list_value_or_none_checked,
    get_string_value_or_none_checked,
)
from .guards import get_table_value, is_any_list, is_toml_table
from .loaders import load_defaults_dict, load_toml_dict, to_toml
from .types import TomlTable

__all__ = [
    "TomlTable",
    "get_bool_value_or_none_checked",
    "get_non_negative_int_or_none_checked",
    "get_string_list_value_or_none_checked",
    "get_string_value_or_none_checked",
    "get_table_value",
    "is_any_list",
    "is_toml_table",
    "load_defaults_dict",
    "load_toml_dict",
    "to_toml",
]
