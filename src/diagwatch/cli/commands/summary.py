# topmark:header:start
#
#   project      : DiagWatch
#   file         : summary.py
#   file_relpath : src/diagwatch/cli/commands/summary.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch `summary` command.

Prints aggregate counts for a problems document, either the full summary or
one dimension (``--group-by severity|workspaceFolder|source``).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from diagwatch.cli.cli_types import EnumChoiceParam, OutputFormat
from diagwatch.cli.cmd_common import (
    build_config,
    get_console,
    is_color_enabled,
    load_source,
    populate_watcher,
)
from diagwatch.cli.options import common_config_options
from diagwatch.core.machine.schemas import MachineKey
from diagwatch.core.machine.serializers import serialize_json_envelope
from diagwatch.problems.model import Severity
from diagwatch.query.api import GroupBy, WorkspaceSummary

if TYPE_CHECKING:
    from diagwatch.cli.console import ConsoleLike


def _print_counts(
    console: ConsoleLike, title: str, counts: dict[str, int], *, color_severities: bool = False
) -> None:
    console.print(console.styled(title, bold=True))
    if not counts:
        console.print("  (none)")
        return
    width: int = max(len(k) for k in counts)
    for key, value in counts.items():
        label: str = key.ljust(width)
        severity: Severity | None = Severity.parse(key) if color_severities else None
        if severity is not None:
            label = severity.color(label)
        console.print(f"  {label}  {value}")


@click.command(
    name="summary",
    help="Summarize the problems of a problems document.",
)
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False))
@click.option(
    "--group-by",
    "group_by",
    type=EnumChoiceParam(GroupBy),
    default=None,
    help=f"Only show one dimension ({', '.join(g.value for g in GroupBy)}).",
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
def summary_command(
    ctx: click.Context,
    *,
    input_path: str,
    group_by: GroupBy | None,
    output_format: OutputFormat | None,
    config_paths: tuple[str, ...],
    no_config: bool,
    root: str | None,
) -> None:
    """Print the workspace summary of INPUT."""
    console = get_console(ctx)
    colorize: bool = is_color_enabled(ctx)
    config = build_config(
        config_paths=config_paths, no_config=no_config, root=root, console=console
    )
    watcher, _ = populate_watcher(load_source(input_path, root=root), config, analyze=False)
    try:
        result: dict[str, int] | WorkspaceSummary = watcher.workspace_summary(group_by)
    finally:
        watcher.dispose()

    if (output_format or OutputFormat.TEXT) is OutputFormat.JSON:
        console.print(serialize_json_envelope(**{MachineKey.SUMMARY: result}))
        return

    if isinstance(result, WorkspaceSummary):
        console.print(
            f"{result.total_problems} problem(s) in {result.file_count} file(s), "
            f"{len(result.workspace_folders)} workspace folder(s)"
        )
        _print_counts(console, "By severity:", result.by_severity, color_severities=colorize)
        _print_counts(console, "By workspace folder:", result.by_workspace)
        _print_counts(console, "By source:", result.by_source)
        return

    assert group_by is not None
    _print_counts(
        console,
        f"By {group_by.label.lower()}:",
        result,
        color_severities=colorize and group_by is GroupBy.SEVERITY,
    )
