from __future__ import annotations

from pathlib import Path
from typing import Any, List, Sequence

from openpyxl import Workbook

from .logging_utils import log_merge, log_ok
from .models import FoldRecord, MergeResult, Resolution


def print_merge_details(records: Sequence[FoldRecord]) -> None:
    conflicts = [record for record in records if record.is_conflict or record.resolution is Resolution.FAILED]
    if not conflicts:
        log_ok("No conflicting files between packs.")
        return
    log_merge("Conflicting files:")
    for record in conflicts:
        sources = " -> ".join(record.contributors) or "-"
        suffix = f" ({record.note})" if record.note else ""
        log_merge(f"{record.path} [{record.content_class.value}] {record.resolution.value}: {sources}{suffix}", indent=2)


def _build_file_rows(records: Sequence[FoldRecord]) -> List[List[str]]:
    rows: List[List[str]] = []
    for record in records:
        rows.append(
            [
                record.path,
                record.content_class.value,
                record.resolution.value,
                record.winner,
                ", ".join(record.contributors),
                record.note,
            ]
        )
    return rows


def _build_pack_rows(result: MergeResult) -> List[List[Any]]:
    by_pack = result.records_by_pack()
    rows: List[List[Any]] = []
    for pack in result.packs:
        records = by_pack.get(pack.name, [])
        won = sum(1 for record in records if record.winner == pack.name)
        shared = sum(1 for record in records if record.is_conflict)
        merged = sum(
            1 for record in records if record.is_conflict and record.resolution is Resolution.MERGED
        )
        rows.append(
            [
                pack.priority,  # priority
                pack.name,  # pack name
                len(records),  # total files
                shared,  # conflicting files
                merged,  # merged files
                won,  # files won
                len(records) - won,  # files overridden
            ]
        )
    return sorted(rows, key=lambda r: r[0])


def export_report(output_path: Path, result: MergeResult) -> None:
    """Write an Excel report describing how every file of the merge was resolved."""

    output_path.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()

    files_sheet = workbook.active
    if not files_sheet:
        files_sheet = workbook.create_sheet("files")
    else:
        files_sheet.title = "files"
    files_sheet.append(["path", "content class", "resolution", "winner", "contributors", "note"])
    for row in _build_file_rows(result.records):
        files_sheet.append(row)

    pack_sheet = workbook.create_sheet("packs")
    pack_sheet.append(
        [
            "priority",
            "pack name",
            "total files",
            "conflicting files",
            "merged files",
            "files won",
            "files overridden",
        ]
    )
    for row in _build_pack_rows(result):
        pack_sheet.append(row)

    if result.manifest is not None:
        summary_sheet = workbook.create_sheet("summary")
        summary_sheet.append(["output archive", str(result.output_archive)])
        summary_sheet.append(["pack format", result.manifest.pack_format])
        summary_sheet.append(["description", result.manifest.description])

    workbook.save(output_path)
    workbook.close()


__all__ = ["print_merge_details", "export_report"]
