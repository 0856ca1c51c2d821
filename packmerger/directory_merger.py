from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

from .errors import JsonParseError, MergeIOError
from .file_utils import ensure_directory, is_fatal_io_error, place_file, remove_tree, write_text_atomic
from .json_merge import merge_json
from .json_value import dump_json, load_json_file
from .logging_utils import log_debug, log_warn
from .models import ContentClass, ExtractedTree, FoldRecord, MergeNode, ProgressEvent, ProgressSink, Resolution


class DirectoryMerger:
    """Fold extracted pack trees into one output tree, lowest priority first."""

    def __init__(self, progress: ProgressSink | None = None) -> None:
        self._progress = progress

    def fold(self, trees: Sequence[ExtractedTree], output_dir: Path) -> List[FoldRecord]:
        ensure_directory(output_dir)
        records: Dict[str, FoldRecord] = {}
        total = len(trees)
        for index, tree in enumerate(trees, start=1):
            if self._progress is not None:
                self._progress(
                    ProgressEvent(
                        stage="fold_progress",
                        message=f"Merging {tree.pack.name} ({index}/{total})",
                        pack=tree.pack.name,
                        current=index,
                        total=total,
                    )
                )
            self._fold_tree(tree, output_dir, records)
            if tree.owned:
                self._discard(tree)
        return [records[path] for path in sorted(records)]

    def _fold_tree(self, tree: ExtractedTree, output_dir: Path, records: Dict[str, FoldRecord]) -> None:
        for node in tree.iter_nodes():
            record = records.get(node.path)
            if record is None:
                record = records[node.path] = FoldRecord(path=node.path, content_class=node.content_class)
            try:
                record.resolution = self._fold_node(tree, node, output_dir)
            except OSError as exc:
                if is_fatal_io_error(exc):
                    raise MergeIOError(f"Aborting merge while writing {node.path}: {exc}") from exc
                log_warn(f"Failed to merge file {node.path} from {tree.pack.name}: {exc}")
                record.resolution = Resolution.FAILED
                record.note = str(exc)
                continue
            record.contributors.append(tree.pack.name)

    def _fold_node(self, tree: ExtractedTree, node: MergeNode, output_dir: Path) -> Resolution:
        source = tree.root / node.path
        target = output_dir / node.path
        content_class = node.content_class
        if not target.exists():
            place_file(source, target, move=tree.owned)
            return Resolution.COPIED
        if content_class is ContentClass.OPAQUE:
            place_file(source, target, move=tree.owned)
            return Resolution.OVERRIDDEN

        try:
            existing = load_json_file(target)
            incoming = load_json_file(source)
        except JsonParseError as exc:
            log_warn(f"{exc}; keeping a raw copy from {tree.pack.name}")
            place_file(source, target, move=tree.owned)
            return Resolution.FALLBACK_COPY

        try:
            merged = merge_json(existing, incoming, content_class)
            write_text_atomic(target, dump_json(merged))
        except (ValueError, RecursionError) as exc:
            # Lone surrogates cannot be encoded; deeply nested trees overflow the stack.
            log_warn(f"Cannot merge {node.path} from {tree.pack.name} ({exc}); keeping a raw copy")
            place_file(source, target, move=tree.owned)
            return Resolution.FALLBACK_COPY
        log_debug(f"Merged {node.path} ({content_class.value}) from {tree.pack.name}", indent=2)
        return Resolution.MERGED

    def _discard(self, tree: ExtractedTree) -> None:
        try:
            remove_tree(tree.root)
        except OSError as exc:
            log_warn(f"Could not remove extracted tree {tree.root}: {exc}")


__all__ = ["DirectoryMerger"]
