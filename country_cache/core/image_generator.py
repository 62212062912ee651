import logging
import os
import tempfile
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from country_cache.schemas import SummarySnapshot

logger = logging.getLogger(__name__)

WIDTH, HEIGHT = 700, 500
BACKGROUND = (30, 30, 30)


def _load_fonts():
    try:
        return (
            ImageFont.truetype("DejaVuSans-Bold.ttf", 32),
            ImageFont.truetype("DejaVuSans.ttf", 20),
            ImageFont.truetype("DejaVuSansMono.ttf", 16),
        )
    except OSError:
        # Fallback if system fonts aren't found
        default = ImageFont.load_default()
        return default, default, default


def render_summary(snapshot: SummarySnapshot) -> Image.Image:
    font_large, font_small, font_mono = _load_fonts()

    img = Image.new("RGB", (WIDTH, HEIGHT), color=BACKGROUND)
    d = ImageDraw.Draw(img)

    d.text((30, 30), "Country Summary", fill=(255, 255, 255), font=font_large)
    d.text(
        (30, 100),
        f"Total Countries: {snapshot.total_countries}",
        fill=(255, 255, 255),
        font=font_small,
    )

    # Top 5 GDP List
    y_pos = 150
    d.text(
        (30, y_pos),
        "Top 5 Countries by Estimated GDP:",
        fill=(255, 255, 255),
        font=font_small,
    )
    y_pos += 35

    for i, country in enumerate(snapshot.top_countries, 1):
        gdp_str = f"${country.estimated_gdp:,.2f}"
        line = f"{i}. {country.name.ljust(25)} {gdp_str}"
        d.text((50, y_pos), line, fill=(255, 255, 255), font=font_mono)
        y_pos += 30

    refreshed = (
        snapshot.last_refreshed_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        if snapshot.last_refreshed_at
        else "Never"
    )
    d.text(
        (30, HEIGHT - 50),
        f"Last Refreshed: {refreshed}",
        fill=(170, 170, 170),
        font=font_small,
    )
    return img


def generate_summary_image(snapshot: SummarySnapshot, image_path: str) -> str:
    """Render the snapshot and replace the image at image_path."""
    cache_dir = os.path.dirname(image_path) or "."
    os.makedirs(cache_dir, exist_ok=True)

    img = render_summary(snapshot)

    # Readers never see a half-written file
    fd, tmp_path = tempfile.mkstemp(dir=cache_dir, suffix=".png.tmp")
    try:
        with os.fdopen(fd, "wb") as tmp:
            img.save(tmp, format="PNG")
        os.replace(tmp_path, image_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    logger.info("Generated summary image at %s", image_path)
    return image_path


def existing_image_path(image_path: str) -> Optional[str]:
    return image_path if os.path.exists(image_path) else None
