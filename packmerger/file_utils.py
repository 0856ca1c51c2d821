from __future__ import annotations

import errno
import os
import shutil
import tempfile
from pathlib import Path

# Failures that mean the disk itself is unusable rather than one bad file.
FATAL_ERRNOS = frozenset({errno.ENOSPC, errno.EDQUOT, errno.EROFS})


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def is_fatal_io_error(exc: OSError) -> bool:
    return exc.errno in FATAL_ERRNOS


def tree_size(path: Path) -> int:
    if path.is_file():
        return path.stat().st_size
    return sum(item.stat().st_size for item in path.rglob("*") if item.is_file())


def place_file(source: Path, destination: Path, move: bool = False) -> None:
    """Put ``source`` at ``destination``, replacing anything already there."""

    ensure_directory(destination.parent)
    if move:
        os.replace(source, destination)
    else:
        shutil.copyfile(source, destination)


def write_text_atomic(path: Path, text: str) -> None:
    ensure_directory(path.parent)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise


def replace_file(source: Path, destination: Path) -> None:
    """Rename ``source`` over ``destination``; copy and delete across filesystems."""

    try:
        os.replace(source, destination)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        staging = destination.with_name(f".{destination.name}.partial")
        try:
            shutil.copyfile(source, staging)
            os.replace(staging, destination)
        except BaseException:
            staging.unlink(missing_ok=True)
            raise
        source.unlink()


def remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
