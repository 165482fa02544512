"""babyvision CLI batch renderer.

Runs still images through the infant vision pipeline, one output per age stage.
"""

import os
import sys

os.environ.setdefault("NUMBA_THREADING_LAYER", "workqueue")

import argparse
import json
import logging
import time
from typing import Dict, List, Optional

import cv2
import numpy as np
from PIL import Image

from babyvision.application.engine import VisionEngine
from babyvision.domain.buffer import PixelBuffer
from babyvision.domain.errors import ConfigurationError, UnknownAgeError
from babyvision.domain.interfaces import ColorModel, PipelineContext
from babyvision.domain.presets import AGE_PRESETS, AgePreset, describe_preset, get_preset
from babyvision.features.spatial.models import KernelMode, SpatialConfig
from babyvision.kernel.image.validation import validate_hfov
from babyvision.kernel.system.config import APP_CONFIG
from babyvision.kernel.system.logging import get_logger, setup_logging

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff", ".webp")

FORMAT_MAP = {
    "png": ("PNG", "png"),
    "jpeg": ("JPEG", "jpg"),
}

COLOR_MODEL_CHOICES = tuple(m.value for m in ColorModel)
KERNEL_CHOICES = tuple(m.value for m in KernelMode)
FORMAT_CHOICES = tuple(FORMAT_MAP.keys())


def _hfov_arg(value: str) -> float:
    try:
        return validate_hfov(value)
    except ConfigurationError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="babyvision",
        description="babyvision -- render images as seen at 1-3 months of age",
        epilog="Example: babyvision --all-ages --output ./out photo.jpg",
    )

    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="FILE_OR_DIR",
        help="Input images or directories containing images",
    )

    parser.add_argument(
        "--age",
        type=int,
        default=1,
        metavar="INT",
        help="Age stage in months (default: 1)",
    )

    parser.add_argument(
        "--all-ages",
        action="store_true",
        default=False,
        help="Render every known age stage",
    )

    parser.add_argument(
        "--output",
        default=APP_CONFIG.default_export_dir,
        metavar="DIR",
        help=f"Output directory (default: {APP_CONFIG.default_export_dir})",
    )

    parser.add_argument(
        "--format",
        choices=FORMAT_CHOICES,
        default="png",
        dest="output_format",
        help="Output file format (default: png)",
    )

    parser.add_argument(
        "--hfov",
        type=_hfov_arg,
        default=None,
        metavar="DEG",
        help=f"Assumed horizontal field of view of the source camera (default: {APP_CONFIG.default_hfov_deg:g})",
    )

    parser.add_argument(
        "--color-model",
        choices=COLOR_MODEL_CHOICES,
        default=ColorModel.INFANT.value,
        help="Color remapping formulation (default: infant)",
    )

    parser.add_argument(
        "--kernel",
        choices=KERNEL_CHOICES,
        default=KernelMode.GAUSSIAN.value,
        help="Spatial filter kernel (default: gaussian)",
    )

    parser.add_argument(
        "--no-vignette",
        action="store_true",
        default=False,
        help="Disable peripheral field suppression",
    )

    parser.add_argument(
        "--mirror",
        action="store_true",
        default=False,
        help="Mirror frames horizontally before processing",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="INT",
        help="Seed for photoreceptor noise (default: random)",
    )

    parser.add_argument(
        "--max-size",
        type=int,
        default=None,
        metavar="PX",
        help="Downscale inputs so the long edge is at most PX pixels",
    )

    parser.add_argument(
        "--preset-file",
        default=None,
        metavar="JSON_FILE",
        help=f"JSON object mapping extra age stages to preset fields. Bare names are also looked up in {APP_CONFIG.presets_dir}",
    )

    parser.add_argument(
        "--list-ages",
        action="store_true",
        default=False,
        help="Describe the available age stages and exit",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log per-stage timings",
    )

    return parser


def resolve_preset_path(preset_file: str) -> str:
    """
    The path as given, or the same name under the user presets directory.
    """
    path = os.path.abspath(preset_file)
    if os.path.isfile(path):
        return path
    fallback = os.path.join(APP_CONFIG.presets_dir, preset_file)
    if not os.path.isabs(preset_file) and os.path.isfile(fallback):
        return fallback
    raise FileNotFoundError(f"Preset file not found: {path}")


def load_presets(preset_file: Optional[str]) -> Dict[int, AgePreset]:
    """
    Built-in presets, extended or overridden by a JSON file of
    {"<age>": {<flat preset fields>}}. Overrides start from the built-in
    values for that age when one exists.
    """
    presets = dict(AGE_PRESETS)
    if not preset_file:
        return presets

    path = resolve_preset_path(preset_file)
    with open(path, "r") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Preset file must hold a JSON object, got {type(data).__name__}")

    for key, fields in data.items():
        if not isinstance(fields, dict):
            raise ValueError(f"Preset for age {key!r} must be a JSON object")
        age = int(key)
        base = presets[age].to_dict() if age in presets else {}
        base.update(fields)
        presets[age] = AgePreset.from_dict(base)
    return presets


def list_ages(presets: Dict[int, AgePreset]) -> int:
    for age in sorted(presets):
        print(f"[{age}] {describe_preset(presets[age])}")
    return 0


def discover_files(inputs: List[str]) -> List[str]:
    """Resolves input paths to a sorted list of supported image files."""
    files = []
    for input_path in inputs:
        path = os.path.abspath(input_path)
        if os.path.isfile(path):
            if os.path.splitext(path)[1].lower() in SUPPORTED_EXTENSIONS:
                files.append(path)
            else:
                print(f"Warning: Skipping unsupported file: {path}", file=sys.stderr)
        elif os.path.isdir(path):
            for root, _dirs, filenames in os.walk(path):
                for fname in sorted(filenames):
                    if os.path.splitext(fname)[1].lower() in SUPPORTED_EXTENSIONS:
                        files.append(os.path.join(root, fname))
        else:
            print(f"Warning: Path not found: {path}", file=sys.stderr)
    return files


def load_frame(path: str, max_size: Optional[int] = None) -> PixelBuffer:
    with Image.open(path) as img:
        rgba = np.array(img.convert("RGBA"))

    if max_size and max(rgba.shape[:2]) > max_size:
        h, w = rgba.shape[:2]
        scale = max_size / float(max(h, w))
        new_size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
        rgba = cv2.resize(rgba, new_size, interpolation=cv2.INTER_AREA)

    return PixelBuffer.from_array(np.ascontiguousarray(rgba))


def save_frame(buffer: PixelBuffer, path: str, pil_format: str) -> None:
    img = Image.fromarray(buffer.data)
    if pil_format == "JPEG":
        img = img.convert("RGB")
        img.save(path, format=pil_format, quality=95)
    else:
        img.save(path, format=pil_format)


def build_context(args: argparse.Namespace, presets: Dict[int, AgePreset], age: int) -> PipelineContext:
    return PipelineContext(
        age=age,
        mirror=args.mirror,
        peripheral_vignette=not args.no_vignette,
        hfov_deg=args.hfov if args.hfov is not None else APP_CONFIG.default_hfov_deg,
        color_model=ColorModel(args.color_model),
        presets=presets,
        rng=np.random.default_rng(args.seed),
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point. Returns 0 on success, 1 on failure."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        presets = load_presets(args.preset_file)
    except (json.JSONDecodeError, FileNotFoundError, ValueError, TypeError) as e:
        print(f"Error loading presets: {e}", file=sys.stderr)
        return 1

    if args.list_ages:
        return list_ages(presets)

    ages = sorted(presets) if args.all_ages else [args.age]
    try:
        for age in ages:
            get_preset(age, presets)
    except UnknownAgeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    files = discover_files(args.inputs)
    if not files:
        print("Error: No supported image files found.", file=sys.stderr)
        return 1

    spatial_config = SpatialConfig(kernel_mode=KernelMode(args.kernel))
    try:
        engines = {
            age: VisionEngine(build_context(args, presets, age), spatial_config) for age in ages
        }
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    pil_format, ext = FORMAT_MAP[args.output_format]
    output_dir = os.path.abspath(args.output)
    os.makedirs(output_dir, exist_ok=True)

    total = len(files)
    failed = 0
    print(f"Processing {total} file(s) x {len(ages)} age(s) -> {output_dir}", file=sys.stderr)
    t_start = time.monotonic()

    for i, file_path in enumerate(files, 1):
        name = os.path.splitext(os.path.basename(file_path))[0]
        print(f"  [{i}/{total}] {name} ...", file=sys.stderr, end="", flush=True)
        t_file = time.monotonic()

        try:
            frame = load_frame(file_path, args.max_size)
            for age, engine in engines.items():
                result = engine.tick(frame)
                save_frame(result, os.path.join(output_dir, f"{name}_age{age}.{ext}"), pil_format)
        except (OSError, ValueError) as e:
            print(f" FAILED ({e})", file=sys.stderr)
            logger.debug(f"Failed to process {file_path}", exc_info=True)
            failed += 1
            continue

        print(f" OK ({time.monotonic() - t_file:.1f}s)", file=sys.stderr)

    for engine in engines.values():
        engine.stop()

    elapsed = time.monotonic() - t_start
    print(f"Done: {total - failed}/{total} succeeded in {elapsed:.1f}s", file=sys.stderr)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
