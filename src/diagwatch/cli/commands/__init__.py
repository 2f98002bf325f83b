# topmark:header:start
#
#   project      : DiagWatch
#   file         : __init__.py
#   file_relpath : src/diagwatch/cli/commands/__init__.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch CLI subcommands."""
