from __future__ import annotations

import math
from pathlib import Path

from PIL import Image, ImageColor, ImageDraw

from ayah_video.core.config import settings
from ayah_video.core.storage import ensure_dir
from ayah_video.models.domain import FrameSize, OverlayGeometry, TextBlock
from ayah_video.services.font_registry import FontRegistry

PANEL_FILL = (0, 0, 0, 153)
PANEL_RADIUS = 25
TEXT_STROKE = (0, 0, 0, 204)
WATERMARK_FILL = (255, 255, 255, 242)


def parse_color(value: str) -> tuple[int, int, int, int]:
    rgb = ImageColor.getcolor(value, "RGBA")
    return tuple(rgb)  # type: ignore[return-value]


class OverlayRenderer:
    def __init__(self, fonts: FontRegistry) -> None:
        self.fonts = fonts

    def render_text_block(
        self,
        path: Path,
        block: TextBlock,
        font_id: str,
        frame: FrameSize,
        box_height: int,
        color: str,
    ) -> Path:
        """Frame-wide transparent strip with the block's lines centred on it."""
        height = max(box_height, math.ceil(block.height_px))
        canvas = Image.new("RGBA", (frame.width_px, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        font = self.fonts.font(font_id, block.font_size_px)
        fill = parse_color(color)

        line_height = block.line_height_px
        start_y = (height - block.height_px) / 2 + line_height / 2
        for index, line in enumerate(block.lines):
            draw.text(
                (frame.width_px / 2, start_y + index * line_height),
                self.fonts.display_text(line),
                font=font,
                fill=fill,
                anchor="mm",
                stroke_width=2,
                stroke_fill=TEXT_STROKE,
            )
        ensure_dir(path.parent)
        canvas.save(path, "PNG")
        return path

    def render_panel(self, path: Path, geometry: OverlayGeometry) -> Path:
        _, _, width, height = geometry.panel_rect.pixel_box()
        canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)
        draw.rounded_rectangle((0, 0, width - 1, height - 1), radius=PANEL_RADIUS, fill=PANEL_FILL)
        ensure_dir(path.parent)
        canvas.save(path, "PNG")
        return path

    def render_watermark(self, path: Path, frame: FrameSize, verse_label: str, font_id: str | None = None) -> Path:
        font_id = font_id or settings.watermark_font
        canvas = Image.new("RGBA", (frame.width_px, frame.height_px), (0, 0, 0, 0))
        draw = ImageDraw.Draw(canvas)

        brand_size = max(36, math.floor(frame.width_px * 0.045))
        label_size = math.floor(brand_size * 0.8)
        brand_y = math.floor(frame.height_px * 0.05)
        label_y = brand_y + brand_size + 10

        draw.text(
            (frame.width_px / 2, brand_y),
            settings.watermark_text,
            font=self.fonts.font(font_id, brand_size),
            fill=WATERMARK_FILL,
            anchor="ma",
            stroke_width=4,
            stroke_fill=TEXT_STROKE,
        )
        draw.text(
            (frame.width_px / 2, label_y),
            self.fonts.display_text(verse_label),
            font=self.fonts.font(font_id, label_size),
            fill=WATERMARK_FILL,
            anchor="ma",
            stroke_width=3,
            stroke_fill=TEXT_STROKE,
        )
        ensure_dir(path.parent)
        canvas.save(path, "PNG")
        return path
