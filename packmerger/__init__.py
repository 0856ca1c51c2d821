"""Core package for the resource pack merger."""

from .coordinator import MergeCoordinator, normalize_output_name
from .directory_merger import DirectoryMerger
from .errors import (
    AlreadyInProgress,
    CleanupError,
    DiskSpaceError,
    ExtractionError,
    InputValidationError,
    JsonParseError,
    MergeError,
    MergeIOError,
    PackagingError,
)
from .extractor import ArchiveExtractor
from .json_merge import merge_json
from .load_config import MergerConfig, load_merge_order, load_program_config
from .metadata import MetadataRewriter, resolve_pack_format
from .models import ContentClass, FoldRecord, MergeResult, MergeState, Pack, PackManifest, classify_path
from .packer import ArchivePacker
from .registry import discover_packs, resolve_packs
from .report import export_report, print_merge_details
from .workspace import Workspace, WorkspaceManager

__all__ = [
    "AlreadyInProgress",
    "ArchiveExtractor",
    "ArchivePacker",
    "CleanupError",
    "ContentClass",
    "DirectoryMerger",
    "DiskSpaceError",
    "ExtractionError",
    "FoldRecord",
    "InputValidationError",
    "JsonParseError",
    "MergeCoordinator",
    "MergeError",
    "MergeIOError",
    "MergeResult",
    "MergeState",
    "MergerConfig",
    "MetadataRewriter",
    "Pack",
    "PackManifest",
    "PackagingError",
    "Workspace",
    "WorkspaceManager",
    "classify_path",
    "discover_packs",
    "export_report",
    "load_merge_order",
    "load_program_config",
    "merge_json",
    "normalize_output_name",
    "print_merge_details",
    "resolve_pack_format",
    "resolve_packs",
]
