# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch package.

DiagWatch aggregates editor-reported diagnostics per file, keeps a consistent
in-memory snapshot across a workspace, and republishes it to in-process
consumers and to a crash-safe JSON export.

The composition root is [`DiagnosticsWatcher`][diagwatch.engine.watcher.DiagnosticsWatcher];
it owns the cache, the debounce gate, the event registry and the workspace
analyzer for one upstream diagnostic source.
"""

from __future__ import annotations

from diagwatch.config.model import Config, MutableConfig
from diagwatch.engine.events import ChangeEvent, EventRegistry, ProcessingErrorEvent, RefreshEvent
from diagwatch.engine.watcher import DiagnosticsWatcher
from diagwatch.problems.model import Position, Problem, Range, RelatedInformation, Severity
from diagwatch.query.api import GroupBy, ProblemFilter, WorkspaceSummary

__all__ = [
    "ChangeEvent",
    "Config",
    "DiagnosticsWatcher",
    "EventRegistry",
    "GroupBy",
    "MutableConfig",
    "Position",
    "Problem",
    "ProblemFilter",
    "ProcessingErrorEvent",
    "Range",
    "RefreshEvent",
    "RelatedInformation",
    "Severity",
    "WorkspaceSummary",
]
