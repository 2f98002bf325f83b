# topmark:header:start
#
#   project      : DiagWatch
#   file         : errors.py
#   file_relpath : src/diagwatch/cli/errors.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Exceptions for the DiagWatch CLI.

Usage:
    Raise these exceptions in CLI commands to signal errors with standardized
    messages and exit codes.

Styling:
    Exceptions prefer the project console if available (see `show()`); if no console
    is present in the Click context, they fall back to Click's default styling.
"""

from __future__ import annotations

from typing import IO, Any

import click

from diagwatch.core.exit_codes import ExitCode


class DiagwatchError(click.ClickException):
    """Base class for all DiagWatch CLI errors."""

    exit_code = ExitCode.FAILURE

    def format_message(self) -> str:  # pragma: no cover - trivial
        """Return the plain error message text (colorized in `show()`)."""
        return str(getattr(self, "message", ""))

    def show(self, file: IO[Any] | None = None) -> None:  # pragma: no cover - Click prints errors
        """Display the error using the project console if available.

        Falls back to Click's default error display when no console is present.
        """
        ctx = click.get_current_context(silent=True)
        if ctx is not None and isinstance(getattr(ctx, "obj", None), dict):
            console = ctx.obj.get("console")
            if console is not None:
                console.error(console.styled(self.format_message(), fg="bright_red"))
                return
        super().show(file)


class DiagwatchUsageError(DiagwatchError):
    """Error for command-line invocation errors (invalid flags/args)."""

    exit_code = ExitCode.USAGE_ERROR


class DiagwatchInputError(DiagwatchError):
    """Error for malformed problems documents."""

    exit_code = ExitCode.INPUT_ERROR


class DiagwatchFileNotFoundError(DiagwatchError):
    """Error when an input path does not exist."""

    exit_code = ExitCode.FILE_NOT_FOUND


class DiagwatchIOError(DiagwatchError):
    """Error for I/O failures reading input or writing the export."""

    exit_code = ExitCode.IO_ERROR


class DiagwatchConfigError(DiagwatchError):
    """Error for configuration errors (unreadable or malformed config)."""

    exit_code = ExitCode.CONFIG_ERROR
