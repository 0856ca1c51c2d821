from __future__ import annotations

import shutil
import zipfile
import zlib
from pathlib import Path, PurePosixPath

from .errors import ExtractionError
from .file_utils import ensure_directory
from .logging_utils import log_debug
from .models import ExtractedTree, Pack, ProgressEvent, ProgressSink

BUFFER_SIZE = 32768


def _safe_member_path(name: str) -> PurePosixPath | None:
    normalized = name.replace("\\", "/")
    relative = PurePosixPath(normalized)
    if not relative.parts or relative.is_absolute() or ".." in relative.parts:
        return None
    # Drive letters ("C:/...") from archives built on Windows.
    if ":" in relative.parts[0]:
        return None
    return relative


class ArchiveExtractor:
    def __init__(self, progress: ProgressSink | None = None) -> None:
        self._progress = progress

    def _emit(self, stage: str, message: str, pack: Pack) -> None:
        if self._progress is not None:
            self._progress(ProgressEvent(stage=stage, message=message, pack=pack.name))

    def extract(self, pack: Pack, dest_dir: Path) -> ExtractedTree:
        """Unpack ``pack`` into ``dest_dir``. Directory packs are used as-is."""

        if pack.path.is_dir():
            log_debug(f"Pack '{pack.name}' is a directory; using it in place.")
            return ExtractedTree(pack=pack, root=pack.path, owned=False)

        self._emit("extract_started", f"Extracting {pack.name}", pack)
        ensure_directory(dest_dir)
        try:
            with zipfile.ZipFile(pack.path) as archive:
                count = 0
                for info in archive.infolist():
                    if info.is_dir():
                        continue
                    relative = _safe_member_path(info.filename)
                    if relative is None:
                        raise ExtractionError(pack.name, f"unsafe entry path {info.filename!r}")
                    target = dest_dir.joinpath(*relative.parts)
                    ensure_directory(target.parent)
                    with archive.open(info) as reader, target.open("wb") as writer:
                        shutil.copyfileobj(reader, writer, BUFFER_SIZE)
                    count += 1
        except ExtractionError:
            raise
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError, OSError) as exc:
            raise ExtractionError(pack.name, str(exc)) from exc

        self._emit("extract_finished", f"Extracted {count} files from {pack.name}", pack)
        return ExtractedTree(pack=pack, root=dest_dir, owned=True)


__all__ = ["ArchiveExtractor", "BUFFER_SIZE"]
