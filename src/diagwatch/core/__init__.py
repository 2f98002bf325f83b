# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/core/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Core, UI-agnostic building blocks shared across DiagWatch.

Includes the internal diagnostic log used for config and analysis reporting,
small Enum helpers, CLI exit codes and machine-output (JSON) helpers.
"""
