# topmark:header:start
#
#   project      : DiagWatch
#   file         : main.py
#   file_relpath : src/diagwatch/cli/main.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch command line entry point.

Key ideas:
- Group-level options are initialized once, placed into ``ctx.obj``.
- Subcommands fetch the console and verbosity from ``ctx.obj``.
- Internal logging is configured from ``DIAGWATCH_LOG_LEVEL``; program output
  goes through the console.
"""

from __future__ import annotations

import click

from diagwatch.cli.commands.config import config_command
from diagwatch.cli.commands.export import export_command
from diagwatch.cli.commands.problems import problems_command
from diagwatch.cli.commands.summary import summary_command
from diagwatch.cli.commands.version import version_command
from diagwatch.cli.console import ClickConsole
from diagwatch.cli.options import (
    ColorMode,
    common_color_options,
    common_verbose_options,
    resolve_color_mode,
    resolve_verbosity,
)
from diagwatch.config.logging import get_logger, resolve_env_log_level, setup_logging

logger = get_logger(__name__)


def init_common_state(
    ctx: click.Context,
    *,
    verbose: int,
    quiet: int,
    color_mode: ColorMode | None,
    no_color: bool,
) -> None:
    """Initialize shared state (verbosity, logging and color) on the Click context.

    Args:
        ctx (click.Context): Current Click context; will have ``obj`` and ``color`` set.
        verbose (int): Count of ``-v`` flags.
        quiet (int): Count of ``-q`` flags.
        color_mode (ColorMode | None): Explicit color mode from ``--color`` (or ``None``).
        no_color (bool): Whether ``--no-color`` was passed; forces color off.
    """
    ctx.obj = ctx.obj or {}

    ctx.obj["verbosity_level"] = resolve_verbosity(verbose, quiet)

    level_env: int | None = resolve_env_log_level()
    ctx.obj["log_level"] = level_env
    setup_logging(level=level_env)

    effective_color_mode: ColorMode = (
        ColorMode.NEVER if no_color else ColorMode(color_mode or ColorMode.AUTO)
    )
    enable_color: bool = resolve_color_mode(cli_mode=effective_color_mode, output_format=None)
    ctx.obj["color_enabled"] = enable_color
    ctx.color = enable_color

    ctx.obj["console"] = ClickConsole(enable_color=enable_color)


@click.group(
    cls=click.Group,
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    help="DiagWatch: aggregate, deduplicate and export editor diagnostics.",
)
@common_verbose_options
@common_color_options
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    quiet: int,
    color_mode: ColorMode | None,
    no_color: bool,
) -> None:
    """Entry point for the DiagWatch CLI."""
    init_common_state(
        ctx,
        verbose=verbose,
        quiet=quiet,
        color_mode=color_mode,
        no_color=no_color,
    )
    console: ClickConsole = ctx.obj["console"]

    if ctx.invoked_subcommand is None:
        console.print("Hint: use 'diagwatch export INPUT --output PATH' to write an export.")
        console.print()
        console.print(ctx.get_help())


cli.add_command(version_command)

cli.add_command(export_command)

cli.add_command(summary_command)

cli.add_command(problems_command)

cli.add_command(config_command)

if __name__ == "__main__":
    cli()
