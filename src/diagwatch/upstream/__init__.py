# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/upstream/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Upstream diagnostic sources.

[`DiagnosticSource`][diagwatch.upstream.protocols.DiagnosticSource] is the
interface the engine consumes;
[`StaticDiagnosticSource`][diagwatch.upstream.static.StaticDiagnosticSource] is an
in-memory implementation backed by a problems document.
"""
