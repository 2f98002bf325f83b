# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/cli/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Click-based command line interface for DiagWatch.

Subcommands live in [`diagwatch.cli.commands`][diagwatch.cli.commands]; the
group and shared state are set up in [`diagwatch.cli.main`][diagwatch.cli.main].
"""
