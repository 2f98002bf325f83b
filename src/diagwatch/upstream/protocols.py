# topmark:header:start
#
#   project      : DiagWatch
#   file         : protocols.py
#   file_relpath : src/diagwatch/upstream/protocols.py
#   license      : MIT
#   copyright    : (c) 2025 Olivier Biot
#
# topmark:header:end

"""Interface of the upstream diagnostic source.

The engine treats every call on a `DiagnosticSource` as possibly raising and
guards each one. Implementations only translate; they hold no business logic.

Operations:
    * ``subscribe``: register for change notifications (batches of file paths);
      returns an unsubscribe handle.
    * ``get_diagnostics`` / ``get_all_diagnostics``: raw diagnostics for one file
      or for every file the source already knows about (no forced computation).
    * ``workspace_folder`` / ``workspace_folders``: folder resolution and metadata.
    * ``find_files``: enumerate files by glob, with exclusion globs.
    * ``open_document``: open a file without UI focus so tooling analyzes it.
    * ``execute_command``: best-effort named command (may be unsupported).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


@dataclass(frozen=True, slots=True)
class WorkspaceFolder:
    """A named root directory grouping files for aggregation.

    Attributes:
        name (str): Display name used as the ``workspaceFolder`` of problems.
        path (str): Root directory of the folder.
    """

    name: str
    path: str

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "path": self.path}


class DiagnosticSource(Protocol):
    """Upstream collaborator supplying raw diagnostics."""

    def subscribe(self, listener: Callable[[Sequence[str]], None]) -> Callable[[], None]:
        """Register ``listener`` for batches of changed file paths."""
        ...

    def get_diagnostics(self, file_path: str) -> Sequence[object]:
        """Return the raw diagnostics currently reported for ``file_path``."""
        ...

    def get_all_diagnostics(self) -> Sequence[tuple[str, Sequence[object]]]:
        """Return ``(file_path, raw diagnostics)`` for every known file."""
        ...

    def workspace_folder(self, file_path: str) -> str | None:
        """Return the name of the workspace folder owning ``file_path``."""
        ...

    def workspace_folders(self) -> Sequence[WorkspaceFolder]:
        """Return the workspace folders of the session."""
        ...

    async def find_files(self, include: str, exclude: Sequence[str]) -> Sequence[str]:
        """Return files matching ``include`` and none of ``exclude``."""
        ...

    async def open_document(self, file_path: str) -> None:
        """Open ``file_path`` invisibly so language tooling computes its diagnostics."""
        ...

    async def execute_command(self, command: str) -> object:
        """Execute a named command; may raise when unsupported."""
        ...
