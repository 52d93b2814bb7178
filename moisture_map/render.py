import logging
from typing import Sequence, Tuple
import numpy as np
from PIL import Image, ImageDraw, ImageFont

from .models import BoundingBox, CellRect, Color, InterpolatedField, Raster, SampleMarker, SamplePoint

logger = logging.getLogger(__name__)

BACKGROUND = (240, 240, 240, 255)
MARKER_FILL = (255, 255, 255, 204)
MARKER_OUTLINE = (0, 0, 0, 255)
LABEL_FILL = (0, 0, 0, 255)


def color_of(value: float, min_value: float, max_value: float) -> Color:
    """Red (low) to cyan (high) ramp. Out-of-range values give out-of-range channels."""
    span = max_value - min_value
    normalized = 0.5 if span == 0 else (value - min_value) / span
    return Color(red=255.0 * (1.0 - normalized), green=255.0 * normalized, blue=255.0 * normalized)


class PixelTransform:
    """Geographic (lat, lon) to surface pixels; latitude grows upward, rows grow downward."""

    def __init__(self, bbox: BoundingBox, width: int, height: int):
        self.bbox = bbox
        self.width = width
        self.height = height
        self.lon_range = bbox.max_lon - bbox.min_lon
        self.lat_range = bbox.max_lat - bbox.min_lat
        if self.lon_range == 0 or self.lat_range == 0:
            logger.warning(
                'Degenerate sample extent (lon range %g, lat range %g); centering that axis',
                self.lon_range, self.lat_range,
            )

    @property
    def degenerate(self) -> bool:
        return self.lon_range == 0 or self.lat_range == 0

    def x(self, lon: float) -> float:
        if self.lon_range == 0:
            return self.width / 2.0
        return (lon - self.bbox.min_lon) / self.lon_range * self.width

    def y(self, lat: float) -> float:
        if self.lat_range == 0:
            return self.height / 2.0
        return (self.bbox.max_lat - lat) / self.lat_range * self.height

    def __call__(self, lat: float, lon: float) -> Tuple[float, float]:
        return self.x(lon), self.y(lat)


def rasterize(field: InterpolatedField, samples: Sequence[SamplePoint], width: int, height: int) -> Raster:
    if width <= 0 or height <= 0:
        raise ValueError(f'surface size must be positive, got {width}x{height}')
    to_px = PixelTransform(field.bbox, width, height)
    lat_axis, lon_axis = field.lattice.lat_axis, field.lattice.lon_axis
    lo, hi = field.bbox.min_value, field.bbox.max_value
    # +1 px overlap hides seams between neighbouring cells
    cell_w = width / len(lon_axis) + 1
    cell_h = height / len(lat_axis) + 1

    cells = []
    for i, lat in enumerate(lat_axis):
        y = to_px.y(float(lat))
        for j, lon in enumerate(lon_axis):
            value = float(field.estimate[i, j])
            cells.append(CellRect(to_px.x(float(lon)), y, cell_w, cell_h, color_of(value, lo, hi)))

    markers = []
    for p in samples:
        x, y = to_px(p.latitude, p.longitude)
        markers.append(SampleMarker(x, y, f'{p.value:.1f}'))
    return Raster(cells=tuple(cells), markers=tuple(markers))


def _load_font(size: int):
    try:
        return ImageFont.truetype('DejaVuSans.ttf', size)
    except OSError:
        return ImageFont.load_default()


def draw_raster(raster: Raster, width: int, height: int) -> Image.Image:
    img = Image.new('RGBA', (width, height), BACKGROUND)
    draw = ImageDraw.Draw(img, 'RGBA')
    font = _load_font(10)
    for cmd in raster.commands():
        if isinstance(cmd, CellRect):
            # Pillow rectangles include the far edge
            draw.rectangle([cmd.x, cmd.y, cmd.x + cmd.width - 1, cmd.y + cmd.height - 1], fill=cmd.color.to_rgb())
        elif isinstance(cmd, SampleMarker):
            r = cmd.radius
            draw.ellipse([cmd.x - r, cmd.y - r, cmd.x + r, cmd.y + r], fill=MARKER_FILL, outline=MARKER_OUTLINE, width=1)
            # label baseline sits 4 px below the marker centre
            draw.text((cmd.x + 8, cmd.y + 4 - 10), cmd.label, fill=LABEL_FILL, font=font)
    return img


def make_legend_png(vmin: float, vmax: float, out_png: str, width: int = 420, height: int = 80,
                    title: str = 'Soil moisture') -> str:
    """
    Horizontal color ramp legend with vmin/mid/vmax labels.
    """
    ramp = np.array([color_of(v, vmin, vmax).to_rgb() for v in np.linspace(vmin, vmax, width)], dtype='uint8')
    rgba = np.dstack([np.tile(ramp, (height, 1, 1)), np.full((height, width), 255, dtype='uint8')])
    img = Image.fromarray(rgba)

    draw = ImageDraw.Draw(img, 'RGBA')
    draw.rectangle([0, 0, width - 1, height - 1], outline=(255, 255, 255, 180), width=1)
    font = _load_font(16)
    font_b = _load_font(18)

    x0, y0, x1, y1 = draw.textbbox((14, 8), title, font=font_b)
    draw.rectangle([x0 - 4, y0 - 2, x1 + 4, y1 + 2], fill=(0, 0, 0, 90))
    draw.text((14, 8), title, fill=(255, 255, 255, 230), font=font_b)

    labels = [(0, f'{vmin:.2f}'), (width // 2, f'{(vmin + vmax) / 2:.2f}'), (width - 1, f'{vmax:.2f}')]
    for x_pos, txt in labels:
        l, t, r, b = draw.textbbox((0, 0), txt, font=font)
        tw, th = r - l, b - t
        bx = max(2, min(width - tw - 2, x_pos - tw // 2))
        by = height - th - 6
        draw.rectangle([bx - 2, by - 2, bx + tw + 2, by + th + 2], fill=(0, 0, 0, 90))
        draw.text((bx, by), txt, fill=(255, 255, 255, 230), font=font)

    img.save(out_png, 'PNG')
    return out_png
