# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/engine/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Diagnostic aggregation engine.

Live updates flow one way:

    upstream source -> DebounceGate -> ChangeProcessor -> ProblemNormalizer
        -> ProblemCache -> EventRegistry -> (export, subscribers)

The `WorkspaceAnalyzer` is a secondary producer that merges into the same cache
and finishes with a refresh event.
[`DiagnosticsWatcher`][diagwatch.engine.watcher.DiagnosticsWatcher] wires the
pieces together and owns their lifecycle.
"""
