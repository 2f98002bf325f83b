# topmark:header:start
#
#   project      : DiagWatch
#   file         : config.py
#   file_relpath : src/diagwatch/cli/commands/config.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch `config` command.

Emits the effective configuration (defaults, project files, ``--config``
files) as TOML. In text mode the document is wrapped between
`TOML_BLOCK_START` and `TOML_BLOCK_END` so tests and tooling can extract it;
``--format json`` prints a JSON envelope with the same tables plus the merged
sources and loader warnings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from diagwatch.cli.cli_types import EnumChoiceParam, OutputFormat
from diagwatch.cli.cmd_common import build_config, get_console, is_quiet
from diagwatch.cli.options import common_config_options
from diagwatch.config.io import to_toml
from diagwatch.constants import TOML_BLOCK_END, TOML_BLOCK_START
from diagwatch.core.machine.schemas import MachineKey
from diagwatch.core.machine.serializers import serialize_json_envelope

if TYPE_CHECKING:
    from diagwatch.config.model import Config


@click.command(
    name="config",
    help="Show the effective DiagWatch configuration as TOML.",
    epilog=(
        "Layers, lowest precedence first: built-in defaults, pyproject.toml "
        "[tool.diagwatch], diagwatch.toml, then each --config file in order."
    ),
)
@click.option(
    "--format",
    "output_format",
    type=EnumChoiceParam(OutputFormat),
    default=None,
    help=f"Output format ({', '.join(v.value for v in OutputFormat)}).",
)
@common_config_options
@click.pass_context
def config_command(
    ctx: click.Context,
    *,
    output_format: OutputFormat | None,
    config_paths: tuple[str, ...],
    no_config: bool,
    root: str | None,
) -> None:
    """Print the merged configuration."""
    console = get_console(ctx)
    fmt: OutputFormat = output_format or OutputFormat.TEXT
    config: Config = build_config(
        config_paths=config_paths,
        no_config=no_config,
        root=root,
        console=None if fmt is OutputFormat.JSON else console,
    )

    if fmt is OutputFormat.JSON:
        console.print(
            serialize_json_envelope(
                **{
                    MachineKey.CONFIG: config.to_toml_dict(),
                    MachineKey.CONFIG_FILES: [str(p) for p in config.config_files],
                    MachineKey.DIAGNOSTICS: [d.to_dict() for d in config.diagnostics],
                    MachineKey.DIAGNOSTIC_COUNTS: config.diagnostics.to_dict(),
                }
            )
        )
        return

    if not is_quiet(ctx):
        for path in config.config_files:
            console.print(console.styled(f"# source: {path}", dim=True))
    console.print(TOML_BLOCK_START)
    console.print(to_toml(config.to_toml_dict()).rstrip("\n"))
    console.print(TOML_BLOCK_END)
