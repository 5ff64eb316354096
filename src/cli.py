"""
Command-line front end for size-targeted compression.

usage:
    image-size-compressor photo.png -t 300 [-o out.jpg] [-f webp] [--max-width 1920]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from src.api.config import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_QUALITY,
    DEFAULT_MIN_QUALITY,
    FORMAT_EXTENSIONS,
    settings,
)
from src.core.compressor import compress_to_target
from src.core.errors import CompressionError
from src.core.options import CompressionOptions
from src.utils.metrics import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="image-size-compressor",
        description="Compress an image to approximately a target file size.",
    )
    parser.add_argument("input", help="Path to the source image")
    parser.add_argument(
        "-t",
        "--target-kb",
        type=float,
        required=True,
        help="Target size in kilobytes",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file (default: same name with the format's extension)",
    )
    parser.add_argument(
        "-f",
        "--format",
        default=settings.default_format,
        help="Output format or MIME type (default: %(default)s)",
    )
    parser.add_argument("--max-width", type=int, help="Maximum output width in pixels")
    parser.add_argument("--max-height", type=int, help="Maximum output height in pixels")
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=DEFAULT_MAX_ITERATIONS,
        help="Quality search iterations (default: %(default)s)",
    )
    parser.add_argument(
        "--min-quality",
        type=float,
        default=DEFAULT_MIN_QUALITY,
        help="Lowest quality to try, 0-1 (default: %(default)s)",
    )
    parser.add_argument(
        "--max-quality",
        type=float,
        default=DEFAULT_MAX_QUALITY,
        help="Highest quality to try, 0-1 (default: %(default)s)",
    )
    parser.add_argument(
        "--no-scale-down",
        action="store_true",
        help="Never reduce resolution, even if the target cannot be met",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(log_level="DEBUG" if args.verbose else "WARNING", log_format="text")

    input_path = Path(args.input)
    if not input_path.is_file():
        print(f"Error: input file does not exist: {input_path}", file=sys.stderr)
        return 1

    try:
        options = CompressionOptions(
            target_size_bytes=int(round(args.target_kb * 1024)),
            format=args.format,
            max_width=args.max_width,
            max_height=args.max_height,
            max_iterations=args.max_iterations,
            min_quality=args.min_quality,
            max_quality=args.max_quality,
            allow_scale_down=not args.no_scale_down,
            tolerance_bytes=settings.default_tolerance_bytes,
            scale_step=settings.scale_step,
            scale_floor=settings.scale_floor,
        )
        result = asyncio.run(compress_to_target(input_path.read_bytes(), options))
    except CompressionError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    extension = FORMAT_EXTENSIONS.get(result.format, f".{result.format}")
    output_path = Path(args.output) if args.output else input_path.with_suffix(extension)
    if output_path.resolve() == input_path.resolve():
        output_path = input_path.with_name(f"{input_path.stem}.compressed{extension}")
    output_path.write_bytes(result.data)
    logger.info(f"Wrote {result.size_bytes} bytes to {output_path}")

    print(
        f"{'Done' if result.target_met else 'Target not met'}: "
        f"{result.size_bytes / 1024:.1f}KB, {result.width}x{result.height}, "
        f"quality={result.quality:.3f} -> {output_path}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
