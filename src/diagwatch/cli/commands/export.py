# topmark:header:start
#
#   project      : DiagWatch
#   file         : export.py
#   file_relpath : src/diagwatch/cli/commands/export.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""DiagWatch `export` command.

Loads a problems document, runs the workspace analysis over it and writes the
export artifact atomically.

Exit codes:
    * 0: export written;
    * 65: malformed problems document;
    * 66: input or config file not found;
    * 74: export could not be written;
    * 78: invalid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from diagwatch.cli.cmd_common import (
    build_config,
    get_console,
    is_color_enabled,
    is_quiet,
    is_verbose,
    load_source,
    populate_watcher,
)
from diagwatch.cli.errors import DiagwatchIOError
from diagwatch.cli.options import common_config_options

if TYPE_CHECKING:
    from diagwatch.core.diagnostics import DiagnosticStats


@click.command(
    name="export",
    help="Aggregate a problems document and write the JSON export artifact.",
)
@click.argument("input_path", metavar="INPUT", type=click.Path(dir_okay=False))
@click.option(
    "--output",
    "-o",
    "output",
    required=True,
    metavar="PATH",
    type=click.Path(dir_okay=False),
    help="Destination of the export artifact.",
)
@click.option(
    "--analyze/--no-analyze",
    default=True,
    help="Run the full workspace analysis (scan + settle) before exporting.",
)
@common_config_options
@click.pass_context
def export_command(
    ctx: click.Context,
    *,
    input_path: str,
    output: str,
    analyze: bool,
    config_paths: tuple[str, ...],
    no_config: bool,
    root: str | None,
) -> None:
    """Write the export artifact for INPUT to ``--output``."""
    console = get_console(ctx)
    config = build_config(
        config_paths=config_paths, no_config=no_config, root=root, console=console
    )
    source = load_source(input_path, root=root)
    watcher, report = populate_watcher(source, config, analyze=analyze)

    target = Path(output)
    try:
        written: bool = watcher.export_problems(target)
    except OSError as exc:
        raise DiagwatchIOError(f"Cannot write export to {target}: {exc}") from exc
    finally:
        count: int = len(watcher.all_problems())
        watcher.dispose()

    if not written:
        console.warn(f"Export to {target} was superseded by a concurrent writer.")
        return
    if is_verbose(ctx):
        colorize: bool = is_color_enabled(ctx)
        for phase in report.phases:
            stats: DiagnosticStats = phase.log.stats()
            console.print(
                f"  {phase.name}: {phase.status.value}"
                f" ({stats.n_warning} warning(s), {stats.n_error} error(s))"
            )
            for d in phase.log:
                line: str = f"    {d.level.value}: {d.message}"
                console.print(d.level.color(line) if colorize else line)
    if not is_quiet(ctx):
        console.print(f"Exported {count} problem(s) to {console.styled(str(target), bold=True)}")
