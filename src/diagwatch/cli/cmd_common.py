# topmark:header:start
#
#   project      : DiagWatch
#   file         : cmd_common.py
#   file_relpath : src/diagwatch/cli/cmd_common.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Helpers shared by the DiagWatch subcommands.

Each document-driven command follows the same flow:

1. build the effective `Config` (defaults, project files, ``--config`` files);
2. load the problems document into a `StaticDiagnosticSource`;
3. run a `DiagnosticsWatcher` analysis to populate the cache;
4. query or export.

Errors are translated into the CLI exception hierarchy so that Click exits
with the matching `ExitCode`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import click

from diagwatch.cli.errors import (
    DiagwatchConfigError,
    DiagwatchFileNotFoundError,
    DiagwatchInputError,
    DiagwatchIOError,
)
from diagwatch.config.logging import get_logger
from diagwatch.config.model import MutableConfig
from diagwatch.core.diagnostics import DiagnosticLevel
from diagwatch.engine.analyzer import LoadExistingPhase, RefreshPhase
from diagwatch.engine.watcher import DiagnosticsWatcher
from diagwatch.upstream.static import InputDocumentError, StaticDiagnosticSource, load_document

if TYPE_CHECKING:
    from collections.abc import Iterable

    from diagwatch.cli.console import ConsoleLike
    from diagwatch.config.logging import DiagwatchLogger
    from diagwatch.config.model import Config
    from diagwatch.engine.analyzer import AnalysisReport, BasePhase

logger: DiagwatchLogger = get_logger(__name__)


def get_console(ctx: click.Context) -> ConsoleLike:
    """Return the console stored on the Click context by the group."""
    ctx.ensure_object(dict)
    return ctx.obj["console"]


def get_effective_verbosity(ctx: click.Context) -> int:
    """Return the program-output level (a `logging` level; WARNING when unset)."""
    ctx.ensure_object(dict)
    return int(ctx.obj.get("verbosity_level", logging.WARNING))


def is_color_enabled(ctx: click.Context) -> bool:
    """True when the group resolved color output on."""
    ctx.ensure_object(dict)
    return bool(ctx.obj.get("color_enabled", False))


def is_verbose(ctx: click.Context) -> bool:
    """True when at least one ``-v`` was given."""
    return get_effective_verbosity(ctx) <= logging.INFO


def is_quiet(ctx: click.Context) -> bool:
    """True when ``-q`` was given."""
    return get_effective_verbosity(ctx) >= logging.ERROR


def build_config(
    *,
    config_paths: Iterable[str],
    no_config: bool,
    root: str | None,
    console: ConsoleLike | None = None,
) -> Config:
    """Resolve the effective configuration for a command.

    Args:
        config_paths (Iterable[str]): Explicit config files, merged last.
        no_config (bool): Skip project config discovery.
        root (str | None): Discovery anchor (CWD when ``None``).
        console (ConsoleLike | None): Receives configuration warnings.

    Returns:
        Config: The frozen configuration.

    Raises:
        DiagwatchFileNotFoundError: When an explicit config file does not exist.
        DiagwatchConfigError: When a config file cannot be read or parsed.
    """
    extra: list[Path] = [Path(p) for p in config_paths]
    for path in extra:
        if not path.is_file():
            raise DiagwatchFileNotFoundError(f"Config file not found: {path}")

    draft: MutableConfig = MutableConfig.load_merged(
        root=Path(root) if root else None,
        extra_config_files=extra,
        no_config=no_config,
    )
    config: Config = draft.freeze()

    errors: list[str] = [d.message for d in config.diagnostics if d.level is DiagnosticLevel.ERROR]
    if errors:
        raise DiagwatchConfigError("; ".join(errors))
    if console is not None:
        for d in config.diagnostics:
            if d.level is DiagnosticLevel.WARNING:
                console.warn(f"config: {d.message}")
    return config


def load_source(input_path: str, *, root: str | None = None) -> StaticDiagnosticSource:
    """Load a problems document into a `StaticDiagnosticSource`.

    Raises:
        DiagwatchFileNotFoundError: When ``input_path`` does not exist.
        DiagwatchIOError: When it cannot be read.
        DiagwatchInputError: When it is not a valid problems document.
    """
    path = Path(input_path)
    try:
        document: object = load_document(path)
    except FileNotFoundError as exc:
        raise DiagwatchFileNotFoundError(f"Input not found: {path}") from exc
    except InputDocumentError as exc:
        raise DiagwatchInputError(str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise DiagwatchInputError(f"{path}: not UTF-8 text") from exc
    except OSError as exc:
        raise DiagwatchIOError(f"Cannot read {path}: {exc}") from exc

    try:
        return StaticDiagnosticSource.from_document(document, root=Path(root) if root else None)
    except InputDocumentError as exc:
        raise DiagwatchInputError(f"{path}: {exc}") from exc


def populate_watcher(
    source: StaticDiagnosticSource,
    config: Config,
    *,
    analyze: bool,
) -> tuple[DiagnosticsWatcher, AnalysisReport]:
    """Create a watcher over ``source`` and fill its cache.

    Automatic export is disabled; commands export explicitly.

    Args:
        source (StaticDiagnosticSource): The loaded document.
        config (Config): Effective configuration.
        analyze (bool): Run the full workspace analysis (scan and settle
            included) instead of only loading the known diagnostics.

    Returns:
        tuple[DiagnosticsWatcher, AnalysisReport]: The watcher and the analysis report.
    """
    phases: list[BasePhase] | None = None if analyze else [LoadExistingPhase(), RefreshPhase()]
    watcher = DiagnosticsWatcher(source, replace(config, export_path=None), phases=phases)
    report: AnalysisReport = asyncio.run(watcher.analyze_workspace())
    for phase in report.phases:
        for d in phase.log:
            if d.level is not DiagnosticLevel.INFO:
                logger.info("%s: %s", phase.name, d.message)
    return watcher, report
