from __future__ import annotations

import os
import tempfile
import zipfile
from pathlib import Path
from typing import List

from .errors import PackagingError
from .file_utils import ensure_directory, replace_file
from .logging_utils import log_debug
from .models import ProgressEvent, ProgressSink

DEFAULT_COMPRESSION_LEVEL = 6


def collect_entries(tree: Path) -> List[str]:
    """Every file under ``tree`` as a sorted POSIX path."""

    return sorted(path.relative_to(tree).as_posix() for path in tree.rglob("*") if path.is_file())


class ArchivePacker:
    def __init__(
        self,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        progress: ProgressSink | None = None,
    ) -> None:
        if not 0 <= compression_level <= 9:
            raise ValueError(f"Compression level must be between 0 and 9, got {compression_level}")
        self.compression_level = compression_level
        self._progress = progress

    def pack(self, tree: Path, destination: Path) -> Path:
        """Zip ``tree`` into ``destination``.

        The archive is written next to the destination under a temporary name
        and renamed into place, so ``destination`` only ever holds a complete
        archive.
        """

        try:
            ensure_directory(destination.parent)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent
            )
            os.close(fd)
        except OSError as exc:
            raise PackagingError(f"Cannot write to {destination.parent}: {exc}") from exc

        temp_path = Path(temp_name)
        try:
            entries = collect_entries(tree)
            total = len(entries)
            with zipfile.ZipFile(
                temp_path,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
                strict_timestamps=False,
            ) as archive:
                for index, entry in enumerate(entries, start=1):
                    archive.write(tree / entry, arcname=entry)
                    if self._progress is not None and (index == total or index % 100 == 0):
                        self._progress(
                            ProgressEvent(
                                stage="pack_progress",
                                message=f"Packed {index}/{total} files",
                                current=index,
                                total=total,
                            )
                        )
            replace_file(temp_path, destination)
        except (OSError, zipfile.BadZipFile, ValueError) as exc:
            temp_path.unlink(missing_ok=True)
            raise PackagingError(f"Failed to write archive {destination.name}: {exc}") from exc
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        log_debug(f"Wrote {total} entries to {destination}")
        return destination


__all__ = ["ArchivePacker", "collect_entries", "DEFAULT_COMPRESSION_LEVEL"]
