from __future__ import annotations

import argparse
from pathlib import Path

from packmerger import (
    MergeCoordinator,
    MergeError,
    discover_packs,
    export_report,
    load_merge_order,
    load_program_config,
    normalize_output_name,
    print_merge_details,
    resolve_packs,
)
from packmerger.logging_utils import log_error, log_info, log_warn, set_verbose


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Merge resource packs into a single archive. "
            "Packs are given lowest priority first; later packs win conflicts."
        )
    )
    parser.add_argument(
        "packs",
        nargs="*",
        help="Pack names (from the packs directory) or paths, lowest priority first.",
    )
    parser.add_argument(
        "--output",
        "-o",
        default=None,
        help="Name of the merged archive (.zip is appended when missing).",
    )
    parser.add_argument(
        "--merge-order",
        type=Path,
        default=None,
        help="TOML file listing 'packs' and optionally 'output' instead of passing them here.",
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        default=Path("config.toml"),
        help="Path to the program configuration TOML file.",
    )
    parser.add_argument(
        "--target-version",
        default=None,
        help="Game version the merged pack targets (overrides the config file).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=False,
        help="Overwrite the output archive if it already exists.",
    )
    parser.add_argument(
        "--verbose-merge",
        action="store_true",
        default=False,
        help="Print how each conflicting file was resolved.",
    )
    parser.add_argument(
        "--export-path",
        type=Path,
        default=Path(""),
        help="Path to save the merge report Excel file.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Print debug output.",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    set_verbose(args.debug)

    config = load_program_config(args.config_path.expanduser())
    if args.target_version:
        config.target_version = args.target_version

    pack_ids = list(args.packs)
    output_name = args.output
    if args.merge_order is not None:
        try:
            order_packs, order_output = load_merge_order(args.merge_order.expanduser())
        except ValueError as exc:
            raise SystemExit(str(exc))
        pack_ids = pack_ids or order_packs
        output_name = output_name or order_output
    if not output_name:
        raise SystemExit("An output name is required (--output or 'output' in the merge order file).")

    registry = discover_packs(config.packs_dir)
    log_info(f"Found {len(set(registry.values()))} resource packs in {config.packs_dir}")

    try:
        pack_paths = resolve_packs(pack_ids, registry)
        output_file = config.output_dir / normalize_output_name(output_name)
    except MergeError as exc:
        raise SystemExit(f"[{exc.kind}] {exc}")

    if output_file.exists() and not args.force:
        raise SystemExit(f"Output pack {output_file.name} already exists. Use --force to overwrite it.")

    coordinator = MergeCoordinator(config)
    try:
        result = coordinator.merge_packs(pack_paths, output_file.name)
    except MergeError as exc:
        log_error(f"Merge failed [{exc.kind}]: {exc}")
        raise SystemExit(1)
    finally:
        coordinator.shutdown()

    if args.verbose_merge:
        print_merge_details(result.records)

    export_path = args.export_path
    if not export_path == Path(""):
        if export_path.suffix.lower() != ".xlsx":
            export_path = export_path / "merge_report.xlsx"
        export_report(output_path=export_path, result=result)
        log_info(f"Report saved to {export_path}")

    registry = discover_packs(config.packs_dir)
    if result.output_archive.name in registry:
        log_info(f"Registered merged pack {result.output_archive.name}")
    else:
        log_warn(f"Merged pack {result.output_archive} is outside the packs directory and was not registered.")


if __name__ == "__main__":
    main()
