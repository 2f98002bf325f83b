# topmark:header:start
#
#   project      : DiagWatch
#   file         : static.py
#   file_relpath : src/diagwatch/upstream/static.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""In-memory `DiagnosticSource` backed by a problems document.

Used by the CLI (export/summary of a captured diagnostics document) and by
tests. Accepted document shapes (JSON):

```json
{
  "workspaceFolders": [{"name": "app", "path": "/ws/app"}],
  "diagnostics": {"/ws/app/a.ts": [{"message": "...", "range": {...}}]}
}
```

or a bare ``{file_path: [raw diagnostic, ...]}`` mapping.

File enumeration for the background scan walks ``root`` (when given) and
matches POSIX-style relative paths with **pathspec** gitwildmatch patterns.
Without a root, the files named in the document are the candidate set.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, cast

from pathspec import PathSpec
from pathspec.patterns.gitwildmatch import GitWildMatchPattern

from diagwatch.config.logging import get_logger
from diagwatch.upstream.protocols import WorkspaceFolder

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Mapping, Sequence

    from diagwatch.config.logging import DiagwatchLogger

logger: DiagwatchLogger = get_logger(__name__)

KEY_WORKSPACE_FOLDERS = "workspaceFolders"
KEY_DIAGNOSTICS = "diagnostics"


class InputDocumentError(ValueError):
    """A problems document is malformed."""


def _rel_for_match(path: Path, base: Path) -> str:
    """Return a POSIX-style relative path (or absolute as fallback) for PathSpec matching."""
    try:
        rel: Path = path.resolve().relative_to(base.resolve())
        return rel.as_posix()
    except ValueError:
        return path.as_posix()


class StaticDiagnosticSource:
    """`DiagnosticSource` serving fixed diagnostics from memory.

    Args:
        diagnostics (Mapping[str, Sequence[object]] | None): Raw diagnostics per file path.
        workspace_folders (Sequence[WorkspaceFolder]): Workspace folders of the session.
        root (Path | None): Directory enumerated by ``find_files``.
        failing_commands (Collection[str]): Commands that raise when executed.

    Attributes:
        opened (list[str]): Files passed to ``open_document``, in call order.
        executed (list[str]): Commands passed to ``execute_command``, in call order.
    """

    def __init__(
        self,
        diagnostics: Mapping[str, Sequence[object]] | None = None,
        workspace_folders: Sequence[WorkspaceFolder] = (),
        *,
        root: Path | None = None,
        failing_commands: Collection[str] = (),
    ) -> None:
        self._diagnostics: dict[str, list[object]] = {
            path: list(raws) for path, raws in (diagnostics or {}).items()
        }
        self._folders: tuple[WorkspaceFolder, ...] = tuple(workspace_folders)
        self._root: Path | None = root
        self._failing_commands: frozenset[str] = frozenset(failing_commands)
        self._listeners: list[Callable[[Sequence[str]], None]] = []
        self.opened: list[str] = []
        self.executed: list[str] = []

    # ---- construction helpers ----

    @classmethod
    def from_document(
        cls, document: object, *, root: Path | None = None
    ) -> StaticDiagnosticSource:
        """Build a source from a parsed problems document.

        Args:
            document (object): Parsed JSON (either accepted shape).
            root (Path | None): Directory enumerated by ``find_files``.

        Returns:
            StaticDiagnosticSource: The populated source.

        Raises:
            InputDocumentError: When the document shape is not recognized.
        """
        if not isinstance(document, dict):
            raise InputDocumentError("Problems document must be a JSON object")
        doc: dict[str, Any] = cast("dict[str, Any]", document)

        folders: list[WorkspaceFolder] = []
        if KEY_DIAGNOSTICS in doc or KEY_WORKSPACE_FOLDERS in doc:
            folders = _parse_folders(doc.get(KEY_WORKSPACE_FOLDERS, []))
            raw_diags: object = doc.get(KEY_DIAGNOSTICS, {})
        else:
            raw_diags = doc

        if not isinstance(raw_diags, dict):
            raise InputDocumentError(f"'{KEY_DIAGNOSTICS}' must be an object")
        diagnostics: dict[str, list[object]] = {}
        for path, raws in cast("dict[str, Any]", raw_diags).items():
            if not isinstance(raws, list):
                raise InputDocumentError(f"Diagnostics for {path!r} must be a list")
            diagnostics[str(path)] = list(cast("list[object]", raws))

        logger.debug(
            "Loaded problems document: %d file(s), %d workspace folder(s)",
            len(diagnostics),
            len(folders),
        )
        return cls(diagnostics, folders, root=root)

    # ---- DiagnosticSource ----

    def subscribe(self, listener: Callable[[Sequence[str]], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def get_diagnostics(self, file_path: str) -> Sequence[object]:
        return list(self._diagnostics.get(file_path, ()))

    def get_all_diagnostics(self) -> Sequence[tuple[str, Sequence[object]]]:
        return [(path, list(raws)) for path, raws in self._diagnostics.items()]

    def workspace_folder(self, file_path: str) -> str | None:
        """Return the folder whose path is the longest prefix of ``file_path``."""
        target: Path = Path(file_path)
        best: WorkspaceFolder | None = None
        for folder in self._folders:
            base: Path = Path(folder.path)
            if target == base or base in target.parents:
                if best is None or len(base.parts) > len(Path(best.path).parts):
                    best = folder
        return best.name if best is not None else None

    def workspace_folders(self) -> Sequence[WorkspaceFolder]:
        return self._folders

    async def find_files(self, include: str, exclude: Sequence[str]) -> Sequence[str]:
        include_spec: PathSpec = PathSpec.from_lines(GitWildMatchPattern, [include])
        exclude_spec: PathSpec = PathSpec.from_lines(GitWildMatchPattern, list(exclude))

        if self._root is None:
            return [
                path
                for path in self._diagnostics
                if include_spec.match_file(Path(path).as_posix())
                and not exclude_spec.match_file(Path(path).as_posix())
            ]

        matches: list[str] = []
        for candidate in sorted(self._root.rglob("*")):
            if not candidate.is_file():
                continue
            rel: str = _rel_for_match(candidate, self._root)
            if include_spec.match_file(rel) and not exclude_spec.match_file(rel):
                matches.append(str(candidate))
        logger.trace("find_files(%s): %d match(es)", include, len(matches))
        return matches

    async def open_document(self, file_path: str) -> None:
        self.opened.append(file_path)

    async def execute_command(self, command: str) -> object:
        self.executed.append(command)
        if command in self._failing_commands:
            raise RuntimeError(f"command '{command}' not found")
        return None

    # ---- mutation ----

    def update(self, file_path: str, diagnostics: Sequence[object]) -> None:
        """Replace the diagnostics of one file and notify subscribers.

        An empty sequence removes the file.
        """
        if diagnostics:
            self._diagnostics[file_path] = list(diagnostics)
        else:
            self._diagnostics.pop(file_path, None)
        self.notify([file_path])

    def notify(self, file_paths: Sequence[str]) -> None:
        """Deliver a change batch to every subscriber."""
        for listener in list(self._listeners):
            try:
                listener(list(file_paths))
            except Exception as exc:
                logger.error("Change listener failed: %s", exc)

    @property
    def listener_count(self) -> int:
        """Number of active subscribers."""
        return len(self._listeners)


def _parse_folders(value: object) -> list[WorkspaceFolder]:
    if not isinstance(value, list):
        raise InputDocumentError(f"'{KEY_WORKSPACE_FOLDERS}' must be a list")
    folders: list[WorkspaceFolder] = []
    for entry in cast("list[Any]", value):
        if not isinstance(entry, dict):
            raise InputDocumentError("Workspace folder entries must be objects")
        item: dict[str, Any] = cast("dict[str, Any]", entry)
        path: object = item.get("path")
        if not isinstance(path, str) or not path:
            raise InputDocumentError("Workspace folder entries need a 'path'")
        name: object = item.get("name")
        display: str = name if isinstance(name, str) and name else Path(path).name
        folders.append(WorkspaceFolder(name=display, path=path))
    return folders


def load_document(path: Path) -> object:
    """Read and parse a problems document.

    Raises:
        OSError: When the file cannot be read (``FileNotFoundError`` included).
        InputDocumentError: When the file is not valid JSON.
    """
    text: str = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InputDocumentError(f"{path}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
