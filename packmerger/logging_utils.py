from __future__ import annotations

import threading

LEVEL_DEFAULT = "info"

_print_lock = threading.Lock()
_verbose = False


def _normalize_level(level: str | None) -> str:
    if not level:
        return LEVEL_DEFAULT
    return level.strip().lower() or LEVEL_DEFAULT


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = bool(enabled)


def log(message: str, level: str = LEVEL_DEFAULT, indent: int = 0) -> None:
    normalized = _normalize_level(level)
    if normalized == "debug" and not _verbose:
        return
    prefix = " " * max(indent, 0)
    # Extraction workers log concurrently; keep lines whole.
    with _print_lock:
        print(f"{prefix}[{normalized}] {message}", flush=True)


def log_debug(message: str, indent: int = 0) -> None:
    log(message, "debug", indent)


def log_info(message: str, indent: int = 0) -> None:
    log(message, "info", indent)


def log_warn(message: str, indent: int = 0) -> None:
    log(message, "warn", indent)


def log_error(message: str, indent: int = 0) -> None:
    log(message, "error", indent)


def log_merge(message: str, indent: int = 0) -> None:
    log(message, "merge", indent)


def log_ok(message: str, indent: int = 0) -> None:
    log(message, "ok", indent)
