# topmark:header:start
#
#   project      : DiagWatch
#   file         : __main__.py
#   file_relpath : src/diagwatch/__main__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Module entry point for running DiagWatch via ``python -m diagwatch``.

Delegates to [`diagwatch.cli.main.cli`][diagwatch.cli.main.cli], the same entry
point used by the ``diagwatch`` console script.

Examples:
    Export a problems document::

        python -m diagwatch export problems.json --output .diagwatch/problems.json
"""

from __future__ import annotations

from diagwatch.cli.main import cli

if __name__ == "__main__":
    # We call the Click group directly
    cli()
