from __future__ import annotations

import atexit
import os
import threading
from concurrent.futures import FIRST_EXCEPTION, Executor, ThreadPoolExecutor, wait
from pathlib import Path
from typing import List, Sequence

from .directory_merger import DirectoryMerger
from .errors import AlreadyInProgress, ExtractionError, InputValidationError, MergeError, MergeIOError
from .extractor import ArchiveExtractor
from .load_config import MergerConfig
from .logging_utils import log_debug, log_error, log_info, log_ok
from .metadata import MetadataRewriter
from .models import ARCHIVE_SUFFIX, ExtractedTree, MergeResult, MergeState, Pack, ProgressEvent, ProgressSink
from .packer import ArchivePacker
from .workspace import Workspace, WorkspaceManager

MIN_PACKS = 2


def log_progress(event: ProgressEvent) -> None:
    if event.stage == "pack_progress":
        log_debug(event.message, indent=2)
    else:
        log_info(event.message, indent=2)


def normalize_output_name(output_name: str) -> str:
    name = (output_name or "").strip()
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        raise InputValidationError(f"Invalid output name: {output_name!r}")
    if not name.lower().endswith(ARCHIVE_SUFFIX):
        name += ARCHIVE_SUFFIX
    return name


class MergeCoordinator:
    """Runs one merge at a time: validate, extract, fold, rewrite, pack, clean up.

    The extraction pool is shared across merges. Pass ``executor`` to share a
    pool owned elsewhere; otherwise the coordinator creates one sized from the
    config and shuts it down in :meth:`shutdown`.
    """

    # One merge at a time across every coordinator in the process.
    _active_lock = threading.Lock()
    _active: "MergeCoordinator | None" = None

    def __init__(
        self,
        config: MergerConfig,
        executor: Executor | None = None,
        progress: ProgressSink | None = None,
    ) -> None:
        self.config = config
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.worker_count, thread_name_prefix="packmerger"
        )
        self._progress = progress or log_progress
        self._state = MergeState.IDLE
        self._state_lock = threading.Lock()
        self._closed = False

        self.workspaces = WorkspaceManager(config.workspace_root, config.safety_margin, self._executor)
        self.extractor = ArchiveExtractor(self._progress)
        self.merger = DirectoryMerger(self._progress)
        self.rewriter = MetadataRewriter(config.pack_formats)
        self.packer = ArchivePacker(config.compression_level, self._progress)
        atexit.register(self.shutdown)

    @property
    def state(self) -> MergeState:
        with self._state_lock:
            return self._state

    def _claim(self) -> None:
        with MergeCoordinator._active_lock:
            if self._closed:
                raise MergeError("Merge coordinator has been shut down.")
            if MergeCoordinator._active is not None:
                raise AlreadyInProgress()
            MergeCoordinator._active = self
            with self._state_lock:
                self._state = MergeState.VALIDATING

    def _release(self) -> None:
        with MergeCoordinator._active_lock:
            if MergeCoordinator._active is self:
                MergeCoordinator._active = None

    def _set_state(self, state: MergeState) -> None:
        with self._state_lock:
            self._state = state
        log_debug(f"Merge state -> {state.value}")

    def merge_packs(self, input_packs: Sequence[Path | str], output_name: str) -> MergeResult:
        """Merge ``input_packs`` (lowest priority first) into ``output_name``.

        Returns the result on success; raises a :class:`MergeError` subclass
        otherwise. Only one merge runs at a time.
        """

        self._claim()
        workspace: Workspace | None = None
        succeeded = False
        try:
            packs, destination = self._validate(input_packs, output_name)
            log_info(f"Merging {len(packs)} resource packs into {destination.name}...")
            workspace = self.workspaces.allocate(packs)

            self._set_state(MergeState.EXTRACTING)
            trees = self._extract_all(packs, workspace)

            self._set_state(MergeState.MERGING)
            records = self.merger.fold(trees, workspace.output_dir)

            self._set_state(MergeState.REWRITING_METADATA)
            try:
                manifest = self.rewriter.rewrite(workspace.output_dir, self.config.target_version)
            except (OSError, ValueError, RecursionError) as exc:
                raise MergeIOError(f"Failed to rewrite pack manifest: {exc}") from exc

            self._set_state(MergeState.PACKING)
            self.packer.pack(workspace.output_dir, destination)
            succeeded = True
        except Exception as exc:
            log_error(f"Merge failed: {exc}")
            raise
        finally:
            try:
                self._set_state(MergeState.CLEANING_UP)
                if workspace is not None:
                    self.workspaces.release(workspace, background=self.config.background_cleanup)
                self._set_state(MergeState.DONE if succeeded else MergeState.FAILED)
            finally:
                self._release()

        log_ok(f"Resource packs merged successfully into {destination}")
        return MergeResult(output_archive=destination, packs=packs, records=records, manifest=manifest)

    def _validate(self, input_packs: Sequence[Path | str], output_name: str) -> tuple[List[Pack], Path]:
        if len(input_packs) < MIN_PACKS:
            raise InputValidationError(f"At least {MIN_PACKS} resource packs are required to merge.")
        name = normalize_output_name(output_name)

        packs: List[Pack] = []
        seen: set[Path] = set()
        for priority, raw in enumerate(input_packs):
            path = Path(raw).expanduser()
            if not path.exists():
                raise InputValidationError(f"Resource pack not found: {path}")
            if not os.access(path, os.R_OK):
                raise InputValidationError(f"Resource pack is not readable: {path}")
            resolved = path.resolve()
            if resolved in seen:
                raise InputValidationError(f"Resource pack listed more than once: {path}")
            seen.add(resolved)
            packs.append(Pack(name=path.name, path=path, priority=priority))
        return packs, self.config.output_dir / name

    def _extract_all(self, packs: Sequence[Pack], workspace: Workspace) -> List[ExtractedTree]:
        futures = [
            self._executor.submit(self.extractor.extract, pack, workspace.extract_dir(pack)) for pack in packs
        ]
        wait(futures, return_when=FIRST_EXCEPTION)

        for pack, future in zip(packs, futures):
            if not future.done() or future.cancelled():
                continue
            error = future.exception()
            if error is None:
                continue
            for pending in futures:
                pending.cancel()
            # Running extractions still write into the workspace; let them finish first.
            wait(futures)
            if isinstance(error, ExtractionError):
                raise error
            raise ExtractionError(pack.name, str(error)) from error

        trees = [future.result() for future in futures]
        return sorted(trees, key=lambda tree: tree.pack.priority)

    def shutdown(self) -> None:
        if self._closed:
            return
        self._closed = True
        atexit.unregister(self.shutdown)
        self.workspaces.shutdown()
        if self._owns_executor:
            self._executor.shutdown(wait=True)


__all__ = ["MergeCoordinator", "normalize_output_name", "log_progress"]
