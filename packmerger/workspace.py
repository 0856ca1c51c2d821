from __future__ import annotations

import shutil
import tempfile
import threading
from concurrent.futures import Executor, Future, wait
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Set

from .errors import CleanupError, DiskSpaceError
from .file_utils import ensure_directory, remove_tree, tree_size
from .logging_utils import log_debug, log_warn
from .models import Pack

DEFAULT_SAFETY_MARGIN = 2.0
WORKSPACE_PREFIX = "merge_"


def usable_space(path: Path) -> int:
    return shutil.disk_usage(path).free


@dataclass(frozen=True, slots=True)
class Workspace:
    root: Path

    @property
    def output_dir(self) -> Path:
        return self.root / "merged"

    def extract_dir(self, pack: Pack) -> Path:
        # Priority prefix keeps packs with the same file name apart.
        return self.root / "extract" / f"{pack.priority:03d}_{pack.path.stem}"


class WorkspaceManager:
    """Owns the scratch directories of in-flight merges.

    Every allocated workspace stays in a registry until it has been deleted, so
    ``shutdown`` can sweep whatever a crashed or interrupted merge left behind.
    """

    def __init__(
        self,
        root: Path,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        executor: Executor | None = None,
    ) -> None:
        self.root = root
        self.safety_margin = safety_margin
        self._executor = executor
        self._lock = threading.Lock()
        self._active: Set[Path] = set()
        self._pending: List[Future] = []

    @property
    def active(self) -> Set[Path]:
        with self._lock:
            return set(self._active)

    def required_space(self, packs: Sequence[Pack]) -> int:
        return int(sum(tree_size(pack.path) for pack in packs) * self.safety_margin)

    def preflight(self, packs: Sequence[Pack]) -> None:
        ensure_directory(self.root)
        required = self.required_space(packs)
        available = usable_space(self.root)
        if available < required:
            raise DiskSpaceError(required=required, available=available)

    def allocate(self, packs: Sequence[Pack]) -> Workspace:
        self.preflight(packs)
        workspace = Workspace(Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.root)))
        with self._lock:
            self._active.add(workspace.root)
        log_debug(f"Allocated workspace {workspace.root}")
        return workspace

    def release(self, workspace: Workspace, background: bool = False) -> None:
        if background and self._executor is not None:
            try:
                future = self._executor.submit(self._delete, workspace.root)
            except RuntimeError:
                # Pool already shut down.
                self._delete(workspace.root)
                return
            with self._lock:
                self._pending = [item for item in self._pending if not item.done()]
                self._pending.append(future)
            return
        self._delete(workspace.root)

    def wait_for_cleanup(self) -> None:
        with self._lock:
            pending = list(self._pending)
            self._pending.clear()
        wait(pending)

    def shutdown(self) -> None:
        self.wait_for_cleanup()
        for root in sorted(self.active):
            self._delete(root)

    def _delete(self, root: Path) -> None:
        try:
            remove_tree(root)
        except OSError as exc:
            error = CleanupError(f"Failed to clean up workspace {root}: {exc}")
            log_warn(str(error))
            return
        with self._lock:
            self._active.discard(root)
        log_debug(f"Removed workspace {root}")


__all__ = ["Workspace", "WorkspaceManager", "usable_space", "DEFAULT_SAFETY_MARGIN"]
