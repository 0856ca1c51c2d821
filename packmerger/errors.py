"""Error taxonomy for merge operations.

Every error a caller can observe derives from :class:`MergeError` and carries a
short ``kind`` string so a command layer can relay the classification without
inspecting the exception type.
"""

from __future__ import annotations

from pathlib import Path


class MergeError(Exception):
    kind = "merge_error"


class InputValidationError(MergeError):
    kind = "input_validation"


class AlreadyInProgress(MergeError):
    kind = "already_in_progress"

    def __init__(self, message: str = "Another merge is already in progress.") -> None:
        super().__init__(message)


class DiskSpaceError(MergeError):
    kind = "disk_space"

    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            f"Insufficient disk space. Required: {required // 1024 // 1024}MB, "
            f"Available: {available // 1024 // 1024}MB"
        )


class ExtractionError(MergeError):
    kind = "extraction"

    def __init__(self, pack_name: str, reason: str) -> None:
        self.pack_name = pack_name
        super().__init__(f"Failed to extract pack '{pack_name}': {reason}")


class JsonParseError(MergeError):
    """Raised for malformed JSON; always recovered by the directory merger."""

    kind = "json_parse"

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Invalid JSON in {path}: {reason}")


class MergeIOError(MergeError):
    kind = "merge_io"


class PackagingError(MergeError):
    kind = "packaging"


class CleanupError(MergeError):
    """Only ever logged; never raised out of the engine."""

    kind = "cleanup"


__all__ = [
    "MergeError",
    "InputValidationError",
    "AlreadyInProgress",
    "DiskSpaceError",
    "ExtractionError",
    "JsonParseError",
    "MergeIOError",
    "PackagingError",
    "CleanupError",
]
