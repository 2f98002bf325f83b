# topmark:header:start
#
#   project      : DiagWatch
#   file         : version.py
#   file_relpath : src/diagwatch/cli/commands/version.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch `version` command.

Prints the current DiagWatch version as installed in the active Python environment.
"""

from __future__ import annotations

import click

from diagwatch.cli.cli_types import EnumChoiceParam, OutputFormat
from diagwatch.cli.cmd_common import get_console, is_verbose
from diagwatch.constants import DIAGWATCH_VERSION
from diagwatch.core.machine.schemas import MachineKey
from diagwatch.core.machine.serializers import serialize_json_envelope


@click.command(
    name="version",
    help="Show the current version of DiagWatch.",
)
@click.option(
    "--format",
    "output_format",
    type=EnumChoiceParam(OutputFormat),
    default=None,
    help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
)
@click.pass_context
def version_command(ctx: click.Context, output_format: OutputFormat | None = None) -> None:
    """Show the current version of DiagWatch.

    Args:
        ctx (click.Context): Click context carrying the console.
        output_format (OutputFormat | None): Optional output format (text or JSON).
    """
    console = get_console(ctx)
    fmt: OutputFormat = output_format or OutputFormat.TEXT

    if fmt is OutputFormat.JSON:
        console.print(serialize_json_envelope(**{MachineKey.VERSION: DIAGWATCH_VERSION}))
    elif is_verbose(ctx):
        console.print(console.styled("DiagWatch version:\n", bold=True, underline=True))
        console.print(f"    {console.styled(DIAGWATCH_VERSION, bold=True)}")
    else:
        console.print(console.styled(DIAGWATCH_VERSION, bold=True))
