# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/problems/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Problem model, boundary validation, normalization and deduplication.

Raw diagnostics enter through
[`parse_raw_diagnostic`][diagwatch.problems.schema.parse_raw_diagnostic],
are turned into canonical [`Problem`][diagwatch.problems.model.Problem] values by the
[`ProblemNormalizer`][diagwatch.problems.normalizer.ProblemNormalizer], and merged by
[`merge_problems`][diagwatch.problems.dedup.merge_problems] during workspace analysis.
"""
