#!/usr/bin/env python3
"""
Command-line front end for video dataset capture.

Subcommands:
    capture   Sample videos into new datasets (tracked with --rect)
    export    Bundle registered datasets into one zip archive
    relabel   Set the label of every annotation in registered datasets
    list      Show registered datasets
    validate  Check registered datasets before training
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from colorama import Fore, Style, init as colorama_init
from tabulate import tabulate

from . import __version__
from .annotation.dataset_validator import validate_dataset_directory
from .capture.capture_service import FrameCapturePipeline, TemplateSelection
from .capture.coordinate import Rect
from .common.config_utils import PipelineConfig, load_pipeline_config
from .common.constants import COLLISION_POLICIES, TRACKER_FACTORIES, VIDEO_EXTENSIONS
from .common.exceptions import VideoDatasetError
from .common.image_utils import list_asset_files
from .common.logger import add_file_handler, get_logger, remove_handler, set_log_level
from .export.bulk_relabeler import BulkRelabeler
from .export.dataset_exporter import DatasetExporter
from .services.dataset_registry import DatasetRegistry

colorama_init()

logger = get_logger(__name__)


def _print_skipped(skipped, limit: int = 20) -> None:
    for error in skipped[:limit]:
        print(f"  {error.format()}")
    if len(skipped) > limit:
        print(f"  ... and {len(skipped) - limit} more")


def _load_config(args: argparse.Namespace) -> PipelineConfig:
    config = load_pipeline_config(args.config) if args.config else PipelineConfig()
    if args.registry:
        config = replace(config, registry_file=Path(args.registry))
    return config


# =============================================================================
# Subcommands
# =============================================================================


def cmd_capture(args: argparse.Namespace, config: PipelineConfig, registry: DatasetRegistry) -> int:
    overrides = {}
    if args.output_dir:
        overrides["output_dir"] = Path(args.output_dir)
    if args.tracker:
        overrides["tracker_type"] = args.tracker
    if args.label is not None:
        overrides["default_label"] = args.label
    if args.workers:
        overrides["sampler_workers"] = args.workers
    if args.parallel_videos:
        overrides["max_parallel_videos"] = args.parallel_videos
    if args.legacy_unflipped:
        overrides["legacy_unflipped_output"] = True
    if args.no_progress:
        overrides["show_progress"] = False
    capture_config = replace(config.capture, **overrides)

    videos = []
    for video in args.videos:
        if Path(video).suffix.lower() in VIDEO_EXTENSIONS:
            videos.append(video)
        else:
            print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {video}: not a supported video file")
    if not videos:
        return 1

    selection = None
    if args.rect:
        selection = TemplateSelection(
            display_rect=Rect(*args.rect),
            display_size=tuple(args.display_size) if args.display_size else None,
        )

    pipeline = FrameCapturePipeline(capture_config)
    report = pipeline.capture_videos(videos, selection=selection, registry=registry)
    print(report.summary())

    for result in report.results:
        if result.skipped:
            print(f"{result.dataset_name}: {len(result.skipped)} skipped")
            _print_skipped(result.skipped)

    return 1 if not report.succeeded else 0


def cmd_export(args: argparse.Namespace, config: PipelineConfig, registry: DatasetRegistry) -> int:
    overrides = {}
    if args.collision_policy:
        overrides["collision_policy"] = args.collision_policy
    if args.no_progress:
        overrides["show_progress"] = False
    export_config = replace(config.export, **overrides)

    exporter = DatasetExporter(export_config)
    result = exporter.export_selected(registry, args.names, args.output)

    print(
        tabulate(
            [
                ["Archive", str(result.archive_path)],
                ["Datasets", len(result.datasets)],
                ["Manifest entries", result.manifest_entries],
                ["Files", result.asset_count],
                ["Collisions", len(result.collisions)],
                ["Skipped", len(result.skipped)],
            ],
            tablefmt="simple",
        )
    )
    _print_skipped(result.skipped)

    if not result.datasets:
        print(f"{Fore.RED}No registered dataset matched the selection{Style.RESET_ALL}")
        return 1
    print(f"{Fore.GREEN}Export complete{Style.RESET_ALL}")
    return 0


def cmd_relabel(args: argparse.Namespace, config: PipelineConfig, registry: DatasetRegistry) -> int:
    relabeler = BulkRelabeler(show_progress=not args.no_progress)
    result = relabeler.relabel_selected(registry, args.names, args.label)

    table_data = [[d.directory.name, d.updated, len(d.skipped)] for d in result.datasets]
    if table_data:
        print(tabulate(table_data, headers=["Dataset", "Updated", "Skipped"], tablefmt="simple"))
    _print_skipped(result.skipped)

    if not result.datasets:
        print(f"{Fore.RED}No registered dataset matched the selection{Style.RESET_ALL}")
        return 1
    print(f"Relabeled {result.updated} frame(s) as '{result.label}'")
    return 0


def cmd_list(args: argparse.Namespace, config: PipelineConfig, registry: DatasetRegistry) -> int:
    if not len(registry):
        print("No datasets registered")
        return 0

    table_data = []
    for name, directory in registry.items():
        exists = directory.is_dir()
        table_data.append(
            [
                name,
                len(list_asset_files(directory)) if exists else "-",
                str(directory) if exists else f"{Fore.RED}{directory} (missing){Style.RESET_ALL}",
            ]
        )
    print(tabulate(table_data, headers=["Dataset", "Files", "Directory"], tablefmt="simple"))
    return 0


def cmd_validate(args: argparse.Namespace, config: PipelineConfig, registry: DatasetRegistry) -> int:
    names = args.names or registry.names()
    selection = registry.resolve(names)
    failures = len(selection.missing)

    for name in selection.missing:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} {name}: not registered")

    for name, directory in selection.found:
        result = validate_dataset_directory(directory)
        status = f"{Fore.GREEN}OK{Style.RESET_ALL}" if result.is_valid else f"{Fore.RED}INVALID{Style.RESET_ALL}"
        print(f"{name}: {status}")
        if result.errors or result.warnings:
            print(result.format_all())
        if not result.is_valid:
            failures += 1

    return 1 if names and failures == len(names) else 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="video-dataset",
        description="Turn videos into labeled image datasets for detector training",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Capture without tracking (centred default box on every frame)
  video-dataset capture clips/cup.mp4 clips/bottle.mp4

  # Track an object drawn on a 640x360 preview
  video-dataset capture clips/cup.mp4 --rect 200 120 80 90 --display-size 640 360

  # Label, check and export
  video-dataset relabel cup.mp4 --label cup
  video-dataset validate cup.mp4
  video-dataset export cup.mp4 bottle.mp4 --output exports/
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", "-c", help="Path to YAML pipeline configuration")
    parser.add_argument("--registry", "-r", help="Path to the dataset registry JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write log records to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    capture = subparsers.add_parser("capture", help="Capture videos into datasets")
    capture.add_argument("videos", nargs="+", help="Video files to capture")
    capture.add_argument(
        "--rect",
        type=float,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        help="Template rectangle to track (top-left origin)",
    )
    capture.add_argument(
        "--display-size",
        type=float,
        nargs=2,
        metavar=("W", "H"),
        help="Size of the preview --rect was drawn on (default: native frame size)",
    )
    capture.add_argument("--output-dir", "-o", help="Parent directory for new datasets")
    capture.add_argument("--tracker", choices=sorted(TRACKER_FACTORIES), help="Tracker type")
    capture.add_argument("--label", help="Label written into every annotation")
    capture.add_argument("--workers", type=int, help="Frame extraction threads (untracked)")
    capture.add_argument("--parallel-videos", type=int, help="Videos captured concurrently")
    capture.add_argument(
        "--legacy-unflipped",
        action="store_true",
        help="Store tracked boxes without flipping the vertical axis back",
    )
    capture.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    capture.set_defaults(func=cmd_capture)

    export = subparsers.add_parser("export", help="Export datasets into one zip archive")
    export.add_argument("names", nargs="+", help="Registered dataset names, in export order")
    export.add_argument("--output", "-o", required=True, help="Archive path or directory")
    export.add_argument(
        "--collision-policy",
        choices=COLLISION_POLICIES,
        help="How same-named files from different datasets are stored",
    )
    export.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    export.set_defaults(func=cmd_export)

    relabel = subparsers.add_parser("relabel", help="Set the label of every annotation")
    relabel.add_argument("names", nargs="+", help="Registered dataset names")
    relabel.add_argument("--label", "-l", required=True, help="New label")
    relabel.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    relabel.set_defaults(func=cmd_relabel)

    list_parser = subparsers.add_parser("list", help="List registered datasets")
    list_parser.set_defaults(func=cmd_list)

    validate = subparsers.add_parser("validate", help="Validate datasets before training")
    validate.add_argument("names", nargs="*", help="Dataset names (default: all registered)")
    validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface for video dataset capture."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "display_size", None) and not args.rect:
        parser.error("--display-size requires --rect")

    if args.verbose:
        set_log_level(logging.DEBUG)

    file_handler = add_file_handler(Path(args.log_file)) if args.log_file else None
    try:
        config = _load_config(args)
        registry = DatasetRegistry(config.registry_file)
        return args.func(args, config, registry)
    except (VideoDatasetError, FileNotFoundError) as e:
        logger.error(str(e))
        print(f"{Fore.RED}Error: {e}{Style.RESET_ALL}")
        return 1
    finally:
        if file_handler is not None:
            remove_handler(file_handler)


if __name__ == "__main__":
    sys.exit(main())
