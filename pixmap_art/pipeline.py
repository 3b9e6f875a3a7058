"""Operation parsing and per-image processing shared by the CLI and integrations."""
from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, Optional, Sequence, Tuple

from tqdm import tqdm

from . import algebra, convolution, geometry
from .buffer import PixelBuffer
from .io_utils import decode, encode, is_supported_image

LOGGER = logging.getLogger("pixmap_art")
WORKER_LOGGER = LOGGER.getChild("worker")


def _load_operand(path: Path) -> PixelBuffer:
    LOGGER.debug("Loading operand image %s", path)
    return decode(path)


def _binary(func: Callable[[PixelBuffer, PixelBuffer], PixelBuffer]) -> Callable[..., PixelBuffer]:
    def apply(buffer: PixelBuffer, other: Path) -> PixelBuffer:
        return func(buffer, _load_operand(other))

    return apply


def _alpha_blend(buffer: PixelBuffer, other: Path, alpha: float) -> PixelBuffer:
    return algebra.alpha_blend(buffer, _load_operand(other), alpha)


def _paste(buffer: PixelBuffer, other: Path, x: int, y: int) -> PixelBuffer:
    result = buffer.copy()
    result.replace(_load_operand(other), x, y)
    return result


def _fill(buffer: PixelBuffer, r: int, g: int, b: int) -> PixelBuffer:
    result = buffer.copy()
    result.fill((r, g, b))
    return result


@dataclasses.dataclass(frozen=True)
class OperationSpec:
    """Registry entry describing how to parse and run one operation.

    Attributes:
        name: Operation name as written on the command line.
        func: Callable receiving the buffer followed by the parsed arguments.
        parameters: Converters for each argument, in order.
        required: How many leading parameters must be supplied.
        usage: Human readable argument summary.
    """

    name: str
    func: Callable[..., PixelBuffer]
    parameters: Tuple[Callable[[str], Any], ...] = ()
    required: Optional[int] = None
    usage: str = ""

    @property
    def minimum(self) -> int:
        return len(self.parameters) if self.required is None else self.required

    def signature(self) -> str:
        return f"{self.name}:{self.usage}" if self.usage else self.name


def _spec(
    name: str,
    func: Callable[..., PixelBuffer],
    *parameters: Callable[[str], Any],
    required: Optional[int] = None,
    usage: str = "",
) -> OperationSpec:
    return OperationSpec(name=name, func=func, parameters=parameters, required=required, usage=usage)


OPERATIONS: Dict[str, OperationSpec] = {
    spec.name: spec
    for spec in (
        # Geometry
        _spec("resize", geometry.resize, int, int, usage="WIDTH,HEIGHT"),
        _spec("flip-horizontal", geometry.flip_horizontal),
        _spec("flip-vertical", geometry.flip_vertical),
        _spec("rotate90", geometry.rotate90),
        _spec("subimage", geometry.subimage, int, int, int, int, usage="X,Y,WIDTH,HEIGHT"),
        _spec("paste", _paste, Path, int, int, usage="IMAGE,X,Y"),
        _spec("fill", _fill, int, int, int, usage="R,G,B"),
        # Pixel algebra
        _spec("add", _binary(algebra.add), Path, usage="IMAGE"),
        _spec("subtract", _binary(algebra.subtract), Path, usage="IMAGE"),
        _spec("multiply", _binary(algebra.multiply), Path, usage="IMAGE"),
        _spec("difference", _binary(algebra.difference), Path, usage="IMAGE"),
        _spec("lightest", _binary(algebra.lightest), Path, usage="IMAGE"),
        _spec("darkest", _binary(algebra.darkest), Path, usage="IMAGE"),
        _spec("alpha-blend", _alpha_blend, Path, float, usage="IMAGE,ALPHA"),
        _spec("invert", algebra.invert),
        _spec("grayscale", algebra.grayscale),
        _spec("gamma", algebra.gamma_correct, float, usage="GAMMA"),
        _spec("swirl", algebra.swirl),
        _spec("extract-channel", algebra.extract_channel, int, usage="CHANNEL"),
        _spec("color-jitter", algebra.color_jitter, int, int, required=1, usage="SIZE[,SEED]"),
        # Convolution
        _spec("blur", convolution.blur),
        _spec("sobel-edge", convolution.sobel_edge),
        _spec("extract-white", convolution.extract_white, int, usage="THRESHOLD"),
        _spec("glow", convolution.glow, int, usage="THRESHOLD"),
        _spec("mosaic", convolution.mosaic),
        _spec("bitmap", convolution.bitmap, int, usage="SIZE"),
    )
}


@dataclasses.dataclass(frozen=True)
class Operation:
    """A parsed operation ready to apply to a buffer."""

    name: str
    args: Tuple[Any, ...] = ()

    def __call__(self, buffer: PixelBuffer) -> PixelBuffer:
        return OPERATIONS[self.name].func(buffer, *self.args)

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}:{','.join(str(arg) for arg in self.args)}"


def parse_operation(text: str) -> Operation:
    """Parse ``name[:arg,arg...]`` into an :class:`Operation`.

    Raises:
        ValueError: For unknown names, a wrong number of arguments or
            arguments that do not convert.
    """
    name, _, raw_args = text.strip().partition(":")
    name = name.strip().lower().replace("_", "-")
    spec = OPERATIONS.get(name)
    if spec is None:
        raise ValueError(f"Unknown operation '{name}'. Choose from: {', '.join(sorted(OPERATIONS))}")

    values = [value.strip() for value in raw_args.split(",")] if raw_args.strip() else []
    if not spec.minimum <= len(values) <= len(spec.parameters):
        raise ValueError(
            f"Operation '{name}' takes {spec.signature()} but got {len(values)} argument(s)"
        )
    args = []
    for converter, value in zip(spec.parameters, values):
        try:
            args.append(converter(value))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid argument {value!r} for operation '{name}': {exc}") from exc
    return Operation(name=name, args=tuple(args))


def parse_operations(texts: Iterable[str]) -> Tuple[Operation, ...]:
    return tuple(parse_operation(text) for text in texts)


def apply_operations(buffer: PixelBuffer, operations: Sequence[Operation]) -> PixelBuffer:
    """Apply ``operations`` left to right and return the final buffer."""

    result = buffer
    for operation in operations:
        LOGGER.debug("Applying %s to %sx%s buffer", operation, result.width, result.height)
        result = operation(result)
    if result is buffer:
        result = buffer.copy()
    return result


def _tqdm_progress(
    iterable: Iterable[object], *, total: Optional[int], description: Optional[str]
) -> Iterable[object]:
    return tqdm(iterable, total=total, desc=description, unit="image")


_PROGRESS_WRAPPER = _tqdm_progress


def _wrap_with_progress(
    iterable: Iterable[Any],
    *,
    total: Optional[int],
    description: str,
    enabled: bool,
) -> Iterable[Any]:
    """Return an iterable wrapped with a progress helper when enabled."""

    if not enabled:
        return iterable
    return _PROGRESS_WRAPPER(iterable, total=total, description=description)


def collect_images(folder: Path, recursive: bool) -> Iterator[Path]:
    candidates = folder.rglob("*") if recursive else folder.glob("*")
    for path in sorted(candidates):
        if path.is_file() and is_supported_image(path):
            yield path


def ensure_output_path(
    input_root: Path,
    output_root: Path,
    source: Path,
    suffix: str,
    recursive: bool,
    *,
    create: bool = True,
) -> Path:
    relative = source.relative_to(input_root) if recursive else Path(source.name)
    destination = output_root / relative
    if create:
        destination.parent.mkdir(parents=True, exist_ok=True)
    new_name = destination.stem + suffix + destination.suffix
    return destination.with_name(new_name)


def _process_image_worker(
    source: Path,
    destination: Path,
    operations: Sequence[Operation],
    *,
    flip_on_load: bool = False,
    flip_on_save: bool = False,
    dry_run: bool = False,
) -> bool:
    """Decode, transform and encode one image.

    Returns ``True`` when an output file was written. Kept at module level so
    it can be submitted to :class:`concurrent.futures.ProcessPoolExecutor`.
    """

    WORKER_LOGGER.info("Processing %s -> %s", source, destination)
    if destination.exists() and not dry_run and not destination.is_file():
        raise ValueError(f"Destination path exists but is not a file: {destination}")

    buffer = decode(source, flip=flip_on_load)
    result = apply_operations(buffer, operations)
    if dry_run:
        WORKER_LOGGER.info("Dry run enabled, skipping save for %s", destination)
        return False
    encode(destination, result, flip=flip_on_save)
    return True


def process_single_image(
    source: Path,
    destination: Path,
    operations: Sequence[Operation],
    *,
    flip_on_load: bool = False,
    flip_on_save: bool = False,
    dry_run: bool = False,
) -> bool:
    """Public wrapper around :func:`_process_image_worker`."""

    return _process_image_worker(
        source,
        destination,
        operations,
        flip_on_load=flip_on_load,
        flip_on_save=flip_on_save,
        dry_run=dry_run,
    )


__all__ = [
    "OPERATIONS",
    "Operation",
    "OperationSpec",
    "apply_operations",
    "collect_images",
    "ensure_output_path",
    "parse_operation",
    "parse_operations",
    "process_single_image",
]
