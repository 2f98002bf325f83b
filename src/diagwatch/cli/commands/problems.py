# topmark:header:start
#
#   project      : DiagWatch
#   file         : problems.py
#   file_relpath : src/diagwatch/cli/commands/problems.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch `problems` command.

Prints the problems of a problems document matching the given filters as a
JSON envelope (``meta``, ``count``, ``problems``).
"""

from __future__ import annotations

import click

from diagwatch.cli.cli_types import EnumChoiceParam
from diagwatch.cli.cmd_common import build_config, get_console, load_source, populate_watcher
from diagwatch.cli.errors import DiagwatchUsageError
from diagwatch.cli.options import common_config_options
from diagwatch.core.machine.schemas import MachineKey
from diagwatch.core.machine.serializers import serialize_json_envelope
from diagwatch.problems.model import Problem, Severity
from diagwatch.query.api import ProblemFilter


@click.command(
    name="problems",
    help="List the problems of a problems document, optionally filtered.",
)
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False))
@click.option(
    "--severity",
    type=EnumChoiceParam(Severity),
    default=None,
    help=f"Only this severity ({', '.join(s.value for s in Severity)}).",
)
@click.option("--workspace", "workspace_folder", default=None, help="Only this workspace folder.")
@click.option("--file", "file_path", default=None, help="Only this file path.")
@click.option("--source", default=None, help="Only problems reported by this tool.")
@click.option("--limit", type=int, default=None, help="Maximum number of problems.")
@click.option("--offset", type=int, default=0, show_default=True, help="Skip this many first.")
@common_config_options
@click.pass_context
def problems_command(
    ctx: click.Context,
    *,
    input_path: str,
    severity: Severity | None,
    workspace_folder: str | None,
    file_path: str | None,
    source: str | None,
    limit: int | None,
    offset: int,
    config_paths: tuple[str, ...],
    no_config: bool,
    root: str | None,
) -> None:
    """Print the problems of INPUT matching every given filter."""
    if (limit is not None and limit < 0) or offset < 0:
        raise DiagwatchUsageError("--limit and --offset must be non-negative")

    console = get_console(ctx)
    config = build_config(
        config_paths=config_paths, no_config=no_config, root=root, console=console
    )
    watcher, _ = populate_watcher(load_source(input_path, root=root), config, analyze=False)
    problem_filter = ProblemFilter(
        severity=severity,
        workspace_folder=workspace_folder,
        file_path=file_path,
        source=source,
        limit=limit,
        offset=offset,
    )
    try:
        selected: list[Problem] = watcher.filtered_problems(problem_filter)
    finally:
        watcher.dispose()

    console.print(
        serialize_json_envelope(
            **{MachineKey.COUNT: len(selected), MachineKey.PROBLEMS: selected}
        )
    )
