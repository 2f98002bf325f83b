# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/core/machine/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Machine-readable (JSON) output helpers.

- [`diagwatch.core.machine.schemas`][diagwatch.core.machine.schemas]: canonical
  keys and payload normalization.
- [`diagwatch.core.machine.serializers`][diagwatch.core.machine.serializers]:
  pure JSON serialization of shaped payloads.
"""
