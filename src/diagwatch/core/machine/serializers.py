# topmark:header:start
#
#   project      : DiagWatch
#   file         : serializers.py
#   file_relpath : src/diagwatch/core/machine/serializers.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Pure JSON serialization utilities for machine output.

This module converts *already-shaped* payloads into strings. It is console-free,
Click-free and side-effect-free.

Conventions:
- `json.dumps()` does not append a trailing newline.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from diagwatch.core.machine.schemas import MachineKey, build_meta_payload, normalize_payload

if TYPE_CHECKING:
    from diagwatch.core.machine.schemas import MetaPayload


def serialize_json_object(obj: object) -> str:
    """Serialize an object to pretty-printed JSON (no trailing newline).

    Args:
        obj: The object to serialize.

    Returns:
        A pretty-printed JSON string (no trailing newline).
    """
    normalized: object = normalize_payload(obj)
    return json.dumps(normalized, indent=2)


def serialize_json_envelope(meta: MetaPayload | None = None, **payloads: object) -> str:
    """Serialize a JSON envelope with `meta` plus named payloads.

    Args:
        meta: Metadata payload (tool/version/platform). Built on demand when omitted.
        **payloads: Named payload objects. Each value may be a dict-like object or
            an object exposing `to_dict()`.

    Returns:
        Pretty-printed JSON string (no trailing newline).
    """
    envelope: dict[str, object] = {MachineKey.META: dict(meta or build_meta_payload())}
    for name, payload in payloads.items():
        envelope[name] = normalize_payload(payload)
    return serialize_json_object(envelope)
