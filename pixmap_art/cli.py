"""Command-line interface wiring for pixmap-art."""
from __future__ import annotations

import argparse
import json
import logging
import uuid
from concurrent.futures import ProcessPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml

from .io_utils import CodecError
from .pipeline import (
    Operation,
    _process_image_worker,
    _wrap_with_progress,
    collect_images,
    ensure_output_path,
    parse_operations,
)
from .recipes import RECIPES, resolve_recipe

LOGGER = logging.getLogger("pixmap_art")


def _load_config_data(path: Path) -> Mapping[str, Any]:
    """Load configuration from a JSON or YAML file.

    Args:
        path: Path to configuration file (.json, .yaml, or .yml).

    Returns:
        Dictionary mapping configuration keys to values.

    Raises:
        FileNotFoundError: If the configuration file doesn't exist.
        ValueError: If the file content is not a valid mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    suffix = path.suffix.lower()
    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(path.read_text())
        else:
            data = json.loads(path.read_text())
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ValueError(f"Unable to parse configuration file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain a mapping of option names to values")
    return data


def _normalise_config_keys(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Convert configuration keys to CLI-compatible underscore format."""

    normalised: dict[str, Any] = {}
    for key, value in raw.items():
        if not isinstance(key, str):
            raise ValueError("Configuration keys must be strings")
        normalised[key.replace("-", "_")] = value
    return normalised


def _build_parser_aliases(parser: argparse.ArgumentParser) -> tuple[dict[str, argparse.Action], dict[str, str]]:
    """Map destinations and option spellings to parser actions."""

    dest_to_action: dict[str, argparse.Action] = {}
    alias_to_dest: dict[str, str] = {}
    for action in parser._actions:
        if action.dest in {argparse.SUPPRESS, "help", "config"}:
            continue
        dest_to_action[action.dest] = action
        alias_to_dest[action.dest.replace("-", "_")] = action.dest
        for option_string in action.option_strings:
            alias = option_string.lstrip("-").replace("-", "_")
            alias_to_dest[alias] = action.dest
    return dest_to_action, alias_to_dest


def _coerce_bool(value: Any, *, source: Path, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    raise ValueError(f"Invalid boolean for '{key}' in {source}: expected true/false value, got {value!r}")


def _coerce_config_value(action: argparse.Action, value: Any, *, source: Path, key: str) -> Any:
    """Convert configuration values so they match argparse expectations."""

    if value is None:
        return None

    if isinstance(action, argparse._StoreTrueAction):  # pylint: disable=protected-access
        return _coerce_bool(value, source=source, key=key)

    if isinstance(action, argparse._AppendAction):  # pylint: disable=protected-access
        items = value if isinstance(value, list) else [value]
        return [str(item) for item in items]

    if action.type is not None:
        try:
            converted = action.type(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid value for '{key}' in {source}: {exc}") from exc
    else:
        converted = value

    if action.choices is not None and converted not in action.choices:
        raise ValueError(
            f"Invalid value for '{key}' in {source}: {converted!r} (choose from {sorted(action.choices)})"
        )
    return converted


def default_output_path(input_path: Path) -> Path:
    """Return the default output location for a given input file or folder."""

    if input_path.suffix:
        return input_path.with_name(f"{input_path.stem}_art{input_path.suffix}")
    if input_path.name:
        return input_path.parent / f"{input_path.name}_art"
    return input_path / "pixmap_art_output"


def _build_parser() -> argparse.ArgumentParser:
    recipe_help = "; ".join(RECIPES[name].describe() for name in sorted(RECIPES))
    parser = argparse.ArgumentParser(
        description="Apply pixmap effects to an image or a folder of images.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Optional configuration file (JSON, or YAML for .yaml/.yml)",
    )
    parser.add_argument("input", type=Path, help="Image file or folder of images to process")
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=None,
        help="Destination file or folder. Defaults to '<input>_art' next to the input.",
    )
    parser.add_argument(
        "--recipe",
        default=None,
        choices=sorted(RECIPES.keys()),
        help=f"Named chain of operations applied first. {recipe_help}",
    )
    parser.add_argument(
        "--op",
        dest="operations",
        action="append",
        default=None,
        metavar="NAME[:ARGS]",
        help="Operation to apply after the recipe, e.g. 'glow:200' or 'resize:64,48'. Repeatable.",
    )
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Process folders recursively and mirror the directory tree in the output",
    )
    parser.add_argument(
        "--suffix",
        default="_art",
        help="Filename suffix appended before the extension when processing a folder",
    )
    parser.add_argument("--overwrite", action="store_true", help="Allow overwriting existing output files")
    parser.add_argument("--flip-on-load", action="store_true", help="Reverse row order when decoding")
    parser.add_argument("--flip-on-save", action="store_true", help="Reverse row order when encoding")
    parser.add_argument("--dry-run", action="store_true", help="Preview the work without writing any files")
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable progress reporting (useful for minimal or non-interactive environments)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker processes for parallel image processing",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = _build_parser()
    argv_list = list(argv) if argv is not None else None

    config_probe, _ = parser.parse_known_args(argv_list)
    if config_probe.config is not None:
        try:
            raw_config = _load_config_data(config_probe.config)
            normalised_config = _normalise_config_keys(raw_config)
            dest_to_action, alias_to_dest = _build_parser_aliases(parser)

            converted_defaults: dict[str, Any] = {}
            for key, value in normalised_config.items():
                dest = alias_to_dest.get(key)
                if dest is None:
                    raise ValueError(f"Unknown configuration option '{key}' in {config_probe.config}")
                action = dest_to_action[dest]
                converted_defaults[dest] = _coerce_config_value(
                    action, value, source=config_probe.config, key=key
                )

            parser.set_defaults(**converted_defaults)
        except (OSError, ValueError) as exc:
            parser.error(str(exc))

    args = parser.parse_args(argv_list)
    if args.workers < 1:
        parser.error("--workers must be a positive integer")
    if args.recipe is None and not args.operations:
        parser.error("choose a --recipe and/or at least one --op")
    try:
        args.pipeline = build_operations(args)
    except (KeyError, ValueError) as exc:
        parser.error(str(exc))
    if args.output is None:
        args.output = default_output_path(args.input)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")
    return args


def build_operations(args: argparse.Namespace) -> Tuple[Operation, ...]:
    """Recipe operations followed by explicit ``--op`` operations."""

    texts: List[str] = []
    if getattr(args, "recipe", None):
        texts.extend(resolve_recipe(args.recipe).operations)
    texts.extend(getattr(args, "operations", None) or [])
    operations = parse_operations(texts)
    LOGGER.debug("Using operations: %s", ", ".join(str(op) for op in operations))
    return operations


def _ensure_non_overlapping(input_root: Path, output_root: Path) -> None:
    def _contains(parent: Path, child: Path) -> bool:
        try:
            child.relative_to(parent)
        except ValueError:
            return False
        return True

    if input_root == output_root:
        raise SystemExit("Output folder must be different from the input folder to avoid self-overwrites.")
    if _contains(input_root, output_root):
        raise SystemExit(
            "Output folder cannot be located inside the input folder; choose a sibling or separate directory."
        )
    if _contains(output_root, input_root):
        raise SystemExit(
            "Input folder cannot be located inside the output folder; choose non-overlapping directories."
        )


def _plan(args: argparse.Namespace, input_root: Path, output_root: Path) -> List[Tuple[Path, Path]]:
    """Pair each source image with its destination, skipping existing outputs."""

    if input_root.is_file():
        sources = [input_root]
    else:
        _ensure_non_overlapping(input_root, output_root)
        sources = list(collect_images(input_root, args.recursive))

    jobs: List[Tuple[Path, Path]] = []
    for source in sources:
        if input_root.is_file():
            destination = output_root
            if output_root.is_dir():
                destination = output_root / f"{input_root.stem}{args.suffix}{input_root.suffix}"
        else:
            destination = ensure_output_path(
                input_root,
                output_root,
                source,
                args.suffix,
                args.recursive,
                create=not args.dry_run,
            )
        if destination.exists() and not args.overwrite and not args.dry_run:
            LOGGER.warning("Skipping %s (exists, use --overwrite to replace)", destination)
            continue
        if args.dry_run:
            LOGGER.info("Dry run: would process %s -> %s", source, destination)
        jobs.append((source, destination))
    return jobs


def run_pipeline(args: argparse.Namespace) -> int:
    """Run the processor with parsed arguments; return the number of files written."""

    run_id = uuid.uuid4().hex
    operations: Sequence[Operation] = getattr(args, "pipeline", None) or build_operations(args)
    input_root = args.input.resolve()
    output_root = args.output.resolve()

    if not input_root.exists():
        raise FileNotFoundError(f"Input not found: {input_root}")

    LOGGER.info("Starting run %s for %s with %s operation(s)", run_id, input_root, len(operations))
    jobs = _plan(args, input_root, output_root)
    if not jobs:
        LOGGER.warning("No images to process in %s (run %s)", input_root, run_id)
        return 0

    LOGGER.info("Found %s image(s) to process", len(jobs))
    processed = 0
    worker_options = {
        "flip_on_load": args.flip_on_load,
        "flip_on_save": args.flip_on_save,
        "dry_run": args.dry_run,
    }
    show_progress = not args.no_progress

    if args.workers <= 1:
        for source, destination in _wrap_with_progress(
            jobs, total=len(jobs), description="Processing images", enabled=show_progress
        ):
            if _process_image_worker(source, destination, operations, **worker_options):
                processed += 1
    else:
        progress_iterator = iter(
            _wrap_with_progress(
                range(len(jobs)), total=len(jobs), description="Processing images", enabled=show_progress
            )
        )

        def advance_progress() -> None:
            try:
                next(progress_iterator)
            except StopIteration:
                pass

        with ProcessPoolExecutor(max_workers=args.workers) as executor:
            futures = [
                executor.submit(_process_image_worker, source, destination, operations, **worker_options)
                for source, destination in jobs
            ]
            for future in as_completed(futures):
                try:
                    wrote_output = future.result()
                finally:
                    advance_progress()
                if wrote_output:
                    processed += 1

    LOGGER.info("Finished run %s; wrote %s image(s)", run_id, processed)
    return processed


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    try:
        run_pipeline(args)
    except (CodecError, ValueError, IndexError) as exc:
        LOGGER.error("%s", exc)
        return 1
    return 0


__all__ = [
    "build_operations",
    "default_output_path",
    "main",
    "parse_args",
    "run_pipeline",
]
