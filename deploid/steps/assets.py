"""Icon generation from a single source logo.

Raster sources are read with Pillow; `.svg` sources are rasterised with
CairoSVG at the requested size before the final fit.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

from PIL import Image, ImageOps

from pipelinekit.step_types import StepRef

from deploid.framework.context import ExecutionContext

KIND_ID = "assets"
DEFAULT_OUTPUT_DIR = "assets-gen"

ANDROID_ICON_SIZES: tuple[tuple[str, int], ...] = (
    ("mipmap-mdpi", 48),
    ("mipmap-hdpi", 72),
    ("mipmap-xhdpi", 96),
    ("mipmap-xxhdpi", 144),
    ("mipmap-xxxhdpi", 192),
)
PWA_ICON_SIZES: tuple[tuple[str, int], ...] = (
    ("icon-192.png", 192),
    ("icon-512.png", 512),
    ("apple-touch-icon.png", 180),
)
FAVICON_SIZES: tuple[int, ...] = (16, 32, 48, 64)


def icon_targets(output_dir: Path) -> list[tuple[Path, int]]:
    """Every generated file (relative to `output_dir`) with its square edge in pixels."""

    targets: list[tuple[Path, int]] = []
    for density_dir, size in ANDROID_ICON_SIZES:
        targets.append((output_dir / "android" / density_dir / "ic_launcher.png", size))
    for name, size in PWA_ICON_SIZES:
        targets.append((output_dir / name, size))
    for size in FAVICON_SIZES:
        targets.append((output_dir / f"favicon-{size}x{size}.png", size))
    return targets


def _rasterize_svg(source: Path, size: int) -> Image.Image:
    import cairosvg  # noqa: PLC0415

    png_bytes = cairosvg.svg2png(url=str(source), output_width=size, output_height=size)
    with Image.open(io.BytesIO(png_bytes)) as im:
        return im.convert("RGBA")


def load_source_image(source: Path, size: int) -> Image.Image:
    if source.suffix.lower() == ".svg":
        return _rasterize_svg(source, size)
    with Image.open(source) as im:
        return im.convert("RGBA")


def render_icon(source: Path, destination: Path, size: int) -> Path:
    """Render `source` as a `size`x`size` PNG, center-cropping non-square sources."""

    if size <= 0:
        raise ValueError(f"Invalid icon size: {size}")
    image = load_source_image(source, size)
    fitted = ImageOps.fit(image, (size, size), method=Image.Resampling.LANCZOS)
    destination.parent.mkdir(parents=True, exist_ok=True)
    fitted.save(destination, format="PNG", optimize=True)
    return destination


def generate_icons(source: Path, output_dir: Path, logger: Any) -> list[Path]:
    written: list[Path] = []
    for destination, size in icon_targets(output_dir):
        render_icon(source, destination, size)
        logger.debug(
            "Generated %s (%dx%d)", destination.relative_to(output_dir).as_posix(), size, size
        )
        written.append(destination)
    return written


async def assets_step(ctx: ExecutionContext) -> None:
    ctx.logger.info("assets: generating icons and assets")

    assets = ctx.config.assets
    if assets is None or not assets.source:
        ctx.logger.warn("No assets.source configured, skipping asset generation")
        return

    source = ctx.resolve(assets.source)
    output_dir = ctx.resolve(assets.output or DEFAULT_OUTPUT_DIR)
    if not source.is_file():
        ctx.missing_input(source, "Source logo not found", default="warn_and_skip")
        return

    ctx.logger.debug_file(source, "Source logo")
    output_dir.mkdir(parents=True, exist_ok=True)
    written = generate_icons(source, output_dir, ctx.logger)
    ctx.logger.info("Asset generation complete (%d files in %s)", len(written), output_dir)


STEPS = (
    StepRef(
        id=KIND_ID,
        factory=lambda: assets_step,
        doc="Generate Android launcher icons, PWA icons and favicons from assets.source.",
        source="deploid.steps.assets.assets_step",
        tags=("android", "web"),
    ),
)
