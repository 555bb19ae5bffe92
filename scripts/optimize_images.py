"""
Script: Optimize Images

Converts local JPG/PNG/GIF/BMP/TIFF/HEIC images to WebP through the same
normalizer the upload path uses.

Usage:
    python scripts/optimize_images.py ./assets
    python scripts/optimize_images.py ./assets/avatar.jpg
    python scripts/optimize_images.py ./assets --output ./optimized
    python scripts/optimize_images.py ./assets/avatar.jpg --output ./optimized/avatar.webp

Without --output each image is replaced in place by its .webp version
(the original is removed unless --keep-original is given).
"""

import sys
import logging
import argparse
from pathlib import Path
from typing import Iterator, Optional

from gitmemo.config import StoreSettings, get_gitmemo_config
from gitmemo.domain.errors import ValidationError
from gitmemo.infrastructure.factory import MemoStoreFactory

# Setup logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".bmp", ".tiff", ".heic", ".heif"}
MIME_BY_EXTENSION = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".heic": "image/heic",
    ".heif": "image/heif",
}


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


def iter_images(source: Path) -> Iterator[Path]:
    if source.is_file():
        if source.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield source
        return
    for path in sorted(source.rglob("*")):
        if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path


def output_path_for(image: Path, source: Path, output: Optional[Path]) -> Path:
    """Target .webp path; a directory output keeps the source's relative layout."""
    if output is None:
        return image.with_suffix(".webp")
    if output.suffix.lower() == ".webp":
        return output
    source_dir = source if source.is_dir() else source.parent
    return (output / image.relative_to(source_dir)).with_suffix(".webp")


def optimize(image: Path, target: Path, normalizer, budget: int, max_dimension: int) -> int:
    raw = image.read_bytes()
    result = normalizer.normalize(
        raw, MIME_BY_EXTENSION.get(image.suffix.lower()), budget, max_dimension
    )
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(result.data)

    saved = (len(raw) - result.size) / len(raw) * 100 if raw else 0.0
    note = " (best effort)" if result.best_effort else ""
    logger.info(
        f"{image} -> {target}: {format_size(len(raw))} -> {format_size(result.size)} "
        f"({saved:.1f}% smaller, {result.width}x{result.height}, q{result.quality}){note}"
    )
    return result.size


def main():
    settings = StoreSettings.from_dict(get_gitmemo_config())

    parser = argparse.ArgumentParser(description="Convert images to WebP under a byte budget")
    parser.add_argument("source", help="Image file or directory")
    parser.add_argument("-o", "--output", help="Output .webp file or directory")
    parser.add_argument("--budget", type=int, default=settings.images.budget_bytes,
                        help="Maximum output size in bytes")
    parser.add_argument("--max-dimension", type=int, default=settings.images.max_dimension,
                        help="Longest side of the output in pixels")
    parser.add_argument("--keep-original", action="store_true",
                        help="Keep source files when converting in place")
    args = parser.parse_args()

    source = Path(args.source)
    if not source.exists():
        logger.error(f"Source not found: {source}")
        sys.exit(1)
    output = Path(args.output) if args.output else None

    images = list(iter_images(source))
    if not images:
        logger.info(f"No supported images under {source}")
        return

    normalizer = MemoStoreFactory.create_normalizer(settings)
    converted, failed = 0, 0
    total_before, total_after = 0, 0

    for image in images:
        target = output_path_for(image, source, output)
        try:
            before = image.stat().st_size
            after = optimize(image, target, normalizer, args.budget, args.max_dimension)
        except (ValidationError, OSError) as e:
            logger.error(f"Failed to convert {image}: {e}")
            failed += 1
            continue

        converted += 1
        total_before += before
        total_after += after
        if output is None and not args.keep_original and image != target:
            image.unlink()

    logger.info(
        f"Converted {converted} image(s), {failed} failed: "
        f"{format_size(total_before)} -> {format_size(total_after)}"
    )
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
