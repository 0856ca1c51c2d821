from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List

MANIFEST_NAME = "pack.mcmeta"
ARCHIVE_SUFFIX = ".zip"


class ContentClass(str, Enum):
    MODEL = "model"
    LANGUAGE = "language"
    GENERIC_JSON = "generic_json"
    OPAQUE = "opaque"


class Resolution(str, Enum):
    COPIED = "copied"
    OVERRIDDEN = "overridden"
    MERGED = "merged"
    FALLBACK_COPY = "fallback_copy"
    FAILED = "failed"


class MergeState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    EXTRACTING = "extracting"
    MERGING = "merging"
    REWRITING_METADATA = "rewriting_metadata"
    PACKING = "packing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self not in (MergeState.IDLE, MergeState.DONE, MergeState.FAILED)


def classify_path(relative_path: str) -> ContentClass:
    """Derive the content class of a path relative to a pack root."""

    path = relative_path.replace("\\", "/").lower()
    if not path.endswith(".json"):
        return ContentClass.OPAQUE
    if "models" in path or "blockstates" in path or path.endswith(".model.json"):
        return ContentClass.MODEL
    if "lang" in path:
        return ContentClass.LANGUAGE
    return ContentClass.GENERIC_JSON


@dataclass(frozen=True, slots=True)
class Pack:
    name: str
    path: Path
    priority: int


@dataclass(frozen=True, slots=True)
class MergeNode:
    path: str

    @property
    def content_class(self) -> ContentClass:
        return classify_path(self.path)


@dataclass(frozen=True, slots=True)
class ExtractedTree:
    pack: Pack
    root: Path
    owned: bool = True

    def iter_nodes(self) -> List[MergeNode]:
        nodes = [
            MergeNode(path.relative_to(self.root).as_posix())
            for path in self.root.rglob("*")
            if path.is_file()
        ]
        return sorted(nodes, key=lambda node: node.path)


@dataclass(slots=True)
class PackManifest:
    pack_format: int
    description: str


@dataclass(slots=True)
class FoldRecord:
    path: str
    content_class: ContentClass
    contributors: List[str] = field(default_factory=list)
    resolution: Resolution = Resolution.COPIED
    note: str = ""

    @property
    def winner(self) -> str:
        return self.contributors[-1] if self.contributors else ""

    @property
    def is_conflict(self) -> bool:
        return len(self.contributors) > 1


@dataclass(slots=True)
class MergeResult:
    output_archive: Path
    packs: List[Pack]
    records: List[FoldRecord] = field(default_factory=list)
    manifest: PackManifest | None = None

    def records_by_pack(self) -> Dict[str, List[FoldRecord]]:
        grouping: Dict[str, List[FoldRecord]] = {}
        for record in self.records:
            for contributor in record.contributors:
                grouping.setdefault(contributor, []).append(record)
        return grouping


@dataclass(frozen=True, slots=True)
class ProgressEvent:
    stage: str
    message: str
    pack: str | None = None
    current: int = 0
    total: int = 0


ProgressSink = Callable[[ProgressEvent], None]
