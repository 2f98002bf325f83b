# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/query/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Read-only queries and aggregations over the problem cache."""

from __future__ import annotations

from diagwatch.query.api import GroupBy, ProblemFilter, ProblemQuery, WorkspaceSummary

__all__ = [
    "GroupBy",
    "ProblemFilter",
    "ProblemQuery",
    "WorkspaceSummary",
]
