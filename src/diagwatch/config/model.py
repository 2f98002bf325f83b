# topmark:header:start
#
#   project      : DiagWatch
#   file         : model.py
#   file_relpath : src/diagwatch/config/model.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Configuration model and merge policy.

This module defines:
    - `Config`: an immutable runtime snapshot consumed by the engine.
    - `MutableConfig`: a mutable builder used while merging layers; it can be
      frozen into `Config` and thawed back for edits.

Layering (lowest to highest precedence):
    1. Built-in defaults (`load_defaults_dict`)
    2. Project file discovered in the anchor directory
       (``pyproject.toml`` ``[tool.diagwatch]``, then ``diagwatch.toml``)
    3. Explicit config files (``--config``), in the given order

Fields on `MutableConfig` are tri-state: ``None`` means "inherit from the lower
layer". Invalid TOML values are recorded as warnings in `MutableConfig.diagnostics`
and ignored, so a typo never prevents the engine from starting.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from diagwatch.config.io import (
    get_bool_value_or_none_checked,
    get_non_negative_int_or_none_checked,
    get_string_list_value_or_none_checked,
    get_string_value_or_none_checked,
    get_table_value,
    load_defaults_dict,
    load_toml_dict,
)
from diagwatch.config.keys import Toml
from diagwatch.config.logging import get_logger
from diagwatch.constants import (
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_EXPORT_INTERVAL_S,
    DEFAULT_MAX_PROBLEMS_PER_FILE,
    DEFAULT_RELOAD_COMMAND,
    DEFAULT_SCAN_BATCH_DELAY_MS,
    DEFAULT_SCAN_BATCH_SIZE,
    DEFAULT_SCAN_EXCLUDE,
    DEFAULT_SCAN_FILE_DELAY_MS,
    DEFAULT_SCAN_PATTERNS,
    DEFAULT_SETTLE_MS,
    DEFAULT_TOML_CONFIG_NAME,
    PYPROJECT_TOML_NAME,
)
from diagwatch.core.diagnostics import DiagnosticLog, FrozenDiagnosticLog

if TYPE_CHECKING:
    from collections.abc import Iterable

    from diagwatch.config.io import TomlTable
    from diagwatch.config.logging import DiagwatchLogger

logger: DiagwatchLogger = get_logger(__name__)

_T = TypeVar("_T")


# ------------------ Immutable runtime config ------------------


@dataclass(frozen=True, slots=True)
class Config:
    """Immutable runtime configuration for DiagWatch.

    Produced by `MutableConfig.freeze`. Use `Config.thaw` to obtain a builder
    for edits.

    Attributes:
        debounce_ms (int): Quiet window of the debounce gate.
        max_problems_per_file (int): Cap on problems kept per file (0 disables the cap).
        performance_logging (bool): Warn when a measured operation exceeds its threshold.
        export_path (Path | None): Destination of the automatic JSON export; ``None`` disables it.
        export_interval_s (int): Interval of the periodic export (0 disables it).
        scan_patterns (tuple[str, ...]): Glob patterns enumerated by the background scan.
        scan_exclude (tuple[str, ...]): Glob patterns excluded from the background scan.
        batch_size (int): Files opened per background-scan batch.
        file_delay_ms (int): Pause after opening each file.
        batch_delay_ms (int): Pause between batches.
        settle_ms (int): Pause before the refresh phase.
        reload_command (str): Named command asking language services to recompute
            (empty disables the phase's work).
        config_files (tuple[Path, ...]): Config sources that were merged.
        diagnostics (FrozenDiagnosticLog): Warnings collected while loading.
    """

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    max_problems_per_file: int = DEFAULT_MAX_PROBLEMS_PER_FILE
    performance_logging: bool = True
    export_path: Path | None = None
    export_interval_s: int = DEFAULT_EXPORT_INTERVAL_S
    scan_patterns: tuple[str, ...] = DEFAULT_SCAN_PATTERNS
    scan_exclude: tuple[str, ...] = DEFAULT_SCAN_EXCLUDE
    batch_size: int = DEFAULT_SCAN_BATCH_SIZE
    file_delay_ms: int = DEFAULT_SCAN_FILE_DELAY_MS
    batch_delay_ms: int = DEFAULT_SCAN_BATCH_DELAY_MS
    settle_ms: int = DEFAULT_SETTLE_MS
    reload_command: str = DEFAULT_RELOAD_COMMAND
    config_files: tuple[Path, ...] = ()
    diagnostics: FrozenDiagnosticLog = field(default_factory=FrozenDiagnosticLog)

    @property
    def debounce_s(self) -> float:
        """Debounce window in seconds."""
        return self.debounce_ms / 1000.0

    def thaw(self) -> MutableConfig:
        """Return a mutable copy of this frozen config.

        Returns:
            MutableConfig: A mutable builder initialized from this snapshot.
        """
        return MutableConfig(
            debounce_ms=self.debounce_ms,
            max_problems_per_file=self.max_problems_per_file,
            performance_logging=self.performance_logging,
            export_path=str(self.export_path) if self.export_path is not None else "",
            export_interval_s=self.export_interval_s,
            scan_patterns=list(self.scan_patterns),
            scan_exclude=list(self.scan_exclude),
            batch_size=self.batch_size,
            file_delay_ms=self.file_delay_ms,
            batch_delay_ms=self.batch_delay_ms,
            settle_ms=self.settle_ms,
            reload_command=self.reload_command,
            config_files=list(self.config_files),
            diagnostics=DiagnosticLog.from_iterable(self.diagnostics),
        )

    def to_toml_dict(self) -> TomlTable:
        """Return this config in the TOML layout understood by `MutableConfig.from_toml_dict`."""
        return {
            Toml.SECTION_ENGINE: {
                Toml.KEY_DEBOUNCE_MS: self.debounce_ms,
                Toml.KEY_MAX_PROBLEMS_PER_FILE: self.max_problems_per_file,
                Toml.KEY_PERFORMANCE_LOGGING: self.performance_logging,
            },
            Toml.SECTION_EXPORT: {
                Toml.KEY_PATH: str(self.export_path) if self.export_path is not None else "",
                Toml.KEY_INTERVAL_S: self.export_interval_s,
            },
            Toml.SECTION_SCAN: {
                Toml.KEY_PATTERNS: list(self.scan_patterns),
                Toml.KEY_EXCLUDE: list(self.scan_exclude),
                Toml.KEY_BATCH_SIZE: self.batch_size,
                Toml.KEY_FILE_DELAY_MS: self.file_delay_ms,
                Toml.KEY_BATCH_DELAY_MS: self.batch_delay_ms,
                Toml.KEY_SETTLE_MS: self.settle_ms,
                Toml.KEY_RELOAD_COMMAND: self.reload_command,
            },
        }


# ------------------ Mutable builder ------------------


@dataclass
class MutableConfig:
    """Mutable configuration builder.

    Every value field is ``None`` when unset so `merge_with` can tell an
    explicit value from an inherited one. `freeze` resolves remaining ``None``
    values to the built-in defaults.
    """

    debounce_ms: int | None = None
    max_problems_per_file: int | None = None
    performance_logging: bool | None = None
    export_path: str | None = None
    export_interval_s: int | None = None
    scan_patterns: list[str] | None = None
    scan_exclude: list[str] | None = None
    batch_size: int | None = None
    file_delay_ms: int | None = None
    batch_delay_ms: int | None = None
    settle_ms: int | None = None
    reload_command: str | None = None
    config_files: list[Path] = field(default_factory=lambda: [])
    diagnostics: DiagnosticLog = field(default_factory=DiagnosticLog)

    # ------------------------------- Freezing -------------------------------

    def freeze(self) -> Config:
        """Freeze this builder into an immutable `Config`.

        Unset fields resolve to the built-in defaults. An empty export path
        disables the automatic export.
        """
        export_path: Path | None = Path(self.export_path) if self.export_path else None
        return Config(
            debounce_ms=_pick(self.debounce_ms, DEFAULT_DEBOUNCE_MS),
            max_problems_per_file=_pick(self.max_problems_per_file, DEFAULT_MAX_PROBLEMS_PER_FILE),
            performance_logging=_pick(self.performance_logging, True),
            export_path=export_path,
            export_interval_s=_pick(self.export_interval_s, DEFAULT_EXPORT_INTERVAL_S),
            scan_patterns=tuple(_pick(self.scan_patterns, list(DEFAULT_SCAN_PATTERNS))),
            scan_exclude=tuple(_pick(self.scan_exclude, list(DEFAULT_SCAN_EXCLUDE))),
            batch_size=_pick(self.batch_size, DEFAULT_SCAN_BATCH_SIZE),
            file_delay_ms=_pick(self.file_delay_ms, DEFAULT_SCAN_FILE_DELAY_MS),
            batch_delay_ms=_pick(self.batch_delay_ms, DEFAULT_SCAN_BATCH_DELAY_MS),
            settle_ms=_pick(self.settle_ms, DEFAULT_SETTLE_MS),
            reload_command=_pick(self.reload_command, DEFAULT_RELOAD_COMMAND),
            config_files=tuple(self.config_files),
            diagnostics=self.diagnostics.freeze(),
        )

    # ------------------------------- Loading -------------------------------

    @classmethod
    def from_defaults(cls) -> MutableConfig:
        """Return a builder populated with the built-in runtime defaults."""
        return cls.from_toml_dict(load_defaults_dict())

    @classmethod
    def from_toml_dict(
        cls,
        data: TomlTable,
        config_file: Path | None = None,
    ) -> MutableConfig:
        """Create a draft config from a parsed TOML dict.

        Args:
            data (TomlTable): The parsed ``[engine]``/``[export]``/``[scan]`` tables.
            config_file (Path | None): Source file, used for diagnostics and to
                resolve a relative ``export.path``.

        Returns:
            MutableConfig: The resulting draft.
        """
        draft = cls()
        diags: DiagnosticLog = draft.diagnostics

        engine_tbl: TomlTable = get_table_value(data, Toml.SECTION_ENGINE)
        export_tbl: TomlTable = get_table_value(data, Toml.SECTION_EXPORT)
        scan_tbl: TomlTable = get_table_value(data, Toml.SECTION_SCAN)
        logger.trace("TOML [engine]: %s", engine_tbl)
        logger.trace("TOML [export]: %s", export_tbl)
        logger.trace("TOML [scan]: %s", scan_tbl)

        where_engine = f"[{Toml.SECTION_ENGINE}]"
        where_export = f"[{Toml.SECTION_EXPORT}]"
        where_scan = f"[{Toml.SECTION_SCAN}]"

        draft.debounce_ms = get_non_negative_int_or_none_checked(
            engine_tbl, Toml.KEY_DEBOUNCE_MS, where=where_engine, diagnostics=diags, logger=logger
        )
        draft.max_problems_per_file = get_non_negative_int_or_none_checked(
            engine_tbl,
            Toml.KEY_MAX_PROBLEMS_PER_FILE,
            where=where_engine,
            diagnostics=diags,
            logger=logger,
        )
        draft.performance_logging = get_bool_value_or_none_checked(
            engine_tbl,
            Toml.KEY_PERFORMANCE_LOGGING,
            where=where_engine,
            diagnostics=diags,
            logger=logger,
        )

        export_path: str | None = get_string_value_or_none_checked(
            export_tbl, Toml.KEY_PATH, where=where_export, diagnostics=diags, logger=logger
        )
        if export_path and config_file is not None and not Path(export_path).is_absolute():
            # Relative export paths are anchored at the declaring config file
            export_path = str(config_file.parent / export_path)
        draft.export_path = export_path
        draft.export_interval_s = get_non_negative_int_or_none_checked(
            export_tbl, Toml.KEY_INTERVAL_S, where=where_export, diagnostics=diags, logger=logger
        )

        draft.scan_patterns = get_string_list_value_or_none_checked(
            scan_tbl, Toml.KEY_PATTERNS, where=where_scan, diagnostics=diags, logger=logger
        )
        draft.scan_exclude = get_string_list_value_or_none_checked(
            scan_tbl, Toml.KEY_EXCLUDE, where=where_scan, diagnostics=diags, logger=logger
        )
        draft.batch_size = get_non_negative_int_or_none_checked(
            scan_tbl,
            Toml.KEY_BATCH_SIZE,
            where=where_scan,
            diagnostics=diags,
            logger=logger,
            minimum=1,
        )
        draft.file_delay_ms = get_non_negative_int_or_none_checked(
            scan_tbl, Toml.KEY_FILE_DELAY_MS, where=where_scan, diagnostics=diags, logger=logger
        )
        draft.batch_delay_ms = get_non_negative_int_or_none_checked(
            scan_tbl, Toml.KEY_BATCH_DELAY_MS, where=where_scan, diagnostics=diags, logger=logger
        )
        draft.settle_ms = get_non_negative_int_or_none_checked(
            scan_tbl, Toml.KEY_SETTLE_MS, where=where_scan, diagnostics=diags, logger=logger
        )
        draft.reload_command = get_string_value_or_none_checked(
            scan_tbl, Toml.KEY_RELOAD_COMMAND, where=where_scan, diagnostics=diags, logger=logger
        )

        if config_file is not None:
            draft.config_files = [config_file]
        return draft

    @classmethod
    def from_toml_file(cls, path: Path) -> MutableConfig | None:
        """Load configuration from a single TOML file.

        Supports both ``diagwatch.toml`` and ``pyproject.toml`` (``[tool.diagwatch]``).

        Args:
            path (Path): Path to the TOML file.

        Returns:
            MutableConfig | None: The draft; ``None`` when a readable
                ``pyproject.toml`` has no ``[tool.diagwatch]`` section. A file that
                cannot be read or parsed yields an empty draft carrying an error
                diagnostic.
        """
        logger.debug("Creating MutableConfig from TOML config: %s", path)

        load_log = DiagnosticLog()
        toml_data: TomlTable = load_toml_dict(path, diagnostics=load_log)
        if load_log.has_error():
            draft = cls(config_files=[path])
            draft.diagnostics.extend(load_log)
            return draft

        if path.name == PYPROJECT_TOML_NAME:
            tool_section: TomlTable = get_table_value(
                get_table_value(toml_data, Toml.SECTION_TOOL), Toml.SECTION_DIAGWATCH
            )
            if not tool_section:
                logger.debug("[tool.diagwatch] section missing in %s", path)
                return None
            toml_data = tool_section

        return cls.from_toml_dict(toml_data, config_file=path)

    @classmethod
    def discover_project_config_files(cls, anchor: Path) -> list[Path]:
        """Return project config files in ``anchor`` in merge order.

        ``pyproject.toml`` comes first and ``diagwatch.toml`` second so that the
        dedicated tool file wins on a same-directory conflict.
        """
        found: list[Path] = []
        for name in (PYPROJECT_TOML_NAME, DEFAULT_TOML_CONFIG_NAME):
            candidate: Path = anchor / name
            if candidate.is_file():
                found.append(candidate)
        return found

    @classmethod
    def load_merged(
        cls,
        *,
        root: Path | None = None,
        extra_config_files: Iterable[Path] | None = None,
        no_config: bool = False,
    ) -> MutableConfig:
        """Discover and merge configuration layers into a draft.

        Args:
            root (Path | None): Directory searched for project config files (CWD if ``None``).
            extra_config_files (Iterable[Path] | None): Explicit files merged last, in order.
            no_config (bool): Skip project discovery.

        Returns:
            MutableConfig: A draft ready to be frozen or further edited.
        """
        draft: MutableConfig = cls.from_defaults()

        anchor: Path = root if root is not None else Path.cwd()
        if anchor.is_file():
            anchor = anchor.parent

        if not no_config:
            for cfg_path in cls.discover_project_config_files(anchor):
                mc: MutableConfig | None = cls.from_toml_file(cfg_path)
                if mc is not None:
                    draft = draft.merge_with(mc)

        for extra in extra_config_files or ():
            mc = cls.from_toml_file(Path(extra))
            if mc is not None:
                draft = draft.merge_with(mc)

        return draft

    # ------------------------------- Merging -------------------------------

    def merge_with(self, other: MutableConfig) -> MutableConfig:
        """Return a new draft where values set in ``other`` override this draft.

        Args:
            other (MutableConfig): The higher-precedence layer.

        Returns:
            MutableConfig: The merged draft. Config files and diagnostics are concatenated.
        """
        diagnostics = DiagnosticLog.from_iterable(self.diagnostics)
        diagnostics.extend(other.diagnostics)
        return MutableConfig(
            debounce_ms=_pick_opt(other.debounce_ms, self.debounce_ms),
            max_problems_per_file=_pick_opt(
                other.max_problems_per_file, self.max_problems_per_file
            ),
            performance_logging=_pick_opt(other.performance_logging, self.performance_logging),
            export_path=_pick_opt(other.export_path, self.export_path),
            export_interval_s=_pick_opt(other.export_interval_s, self.export_interval_s),
            scan_patterns=_pick_opt(other.scan_patterns, self.scan_patterns),
            scan_exclude=_pick_opt(other.scan_exclude, self.scan_exclude),
            batch_size=_pick_opt(other.batch_size, self.batch_size),
            file_delay_ms=_pick_opt(other.file_delay_ms, self.file_delay_ms),
            batch_delay_ms=_pick_opt(other.batch_delay_ms, self.batch_delay_ms),
            settle_ms=_pick_opt(other.settle_ms, self.settle_ms),
            reload_command=_pick_opt(other.reload_command, self.reload_command),
            config_files=[*self.config_files, *other.config_files],
            diagnostics=diagnostics,
        )


def _pick(value: _T | None, default: _T) -> _T:
    return default if value is None else value


def _pick_opt(preferred: _T | None, fallback: _T | None) -> _T | None:
    return fallback if preferred is None else preferred
