# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/config/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Configuration handling for DiagWatch.

Exposes the immutable runtime [`Config`][diagwatch.config.model.Config] and its
mutable builder [`MutableConfig`][diagwatch.config.model.MutableConfig]. TOML
sources (``diagwatch.toml`` or ``[tool.diagwatch]`` in ``pyproject.toml``) are
read with ``tomlkit`` by [`diagwatch.config.io`][diagwatch.config.io].
"""

from __future__ import annotations

from diagwatch.config.model import Config, MutableConfig

__all__ = [
    "Config",
    "MutableConfig",
]
