from __future__ import annotations

import math

from ayah_video.models.domain import FrameSize, Frozen, OverlayGeometry, TextBlock, TimedSegment
from ayah_video.services.geometry import GapPolicy, compute_geometry
from ayah_video.services.text_shaper import MIN_FONT_SIZE_PX, MeasureFn, shape_text

BASE_FONT_HEIGHT_FRACTION = 0.045
TRANSLATION_SCALE = 0.7
TEXT_WIDTH_FRACTION = 0.85
ARABIC_BOX_FRACTION = 0.2
TRANSLATION_BOX_FRACTION = 0.15


class LayoutStyle(Frozen):
    arabic_font: str
    translation_font: str
    base_font_px: int
    translation_base_px: int
    max_text_width_px: int
    arabic_box_px: int
    translation_box_px: int
    gap: GapPolicy

    @classmethod
    def for_frame(
        cls,
        frame: FrameSize,
        *,
        arabic_font: str,
        translation_font: str,
        font_size_px: int | None = None,
    ) -> LayoutStyle:
        base = font_size_px or math.floor(frame.height_px * BASE_FONT_HEIGHT_FRACTION)
        base = max(MIN_FONT_SIZE_PX, base)
        return cls(
            arabic_font=arabic_font,
            translation_font=translation_font,
            base_font_px=base,
            translation_base_px=max(MIN_FONT_SIZE_PX, math.floor(base * TRANSLATION_SCALE)),
            max_text_width_px=math.floor(frame.width_px * TEXT_WIDTH_FRACTION),
            arabic_box_px=math.floor(frame.height_px * ARABIC_BOX_FRACTION),
            translation_box_px=math.floor(frame.height_px * TRANSLATION_BOX_FRACTION),
            gap=GapPolicy.for_frame(frame),
        )


class SegmentLayout(Frozen):
    arabic: TextBlock
    translation: TextBlock
    geometry: OverlayGeometry


def layout_segment(segment: TimedSegment, frame: FrameSize, style: LayoutStyle, measure: MeasureFn) -> SegmentLayout:
    """Shape both texts of one verse and place them. Nothing is reused between verses."""
    arabic = shape_text(
        segment.arabic_text,
        font_id=style.arabic_font,
        base_size_px=style.base_font_px,
        max_width_px=style.max_text_width_px,
        max_height_px=style.arabic_box_px,
        measure=measure,
    )
    translation = shape_text(
        segment.translation_text,
        font_id=style.translation_font,
        base_size_px=style.translation_base_px,
        max_width_px=style.max_text_width_px,
        max_height_px=style.translation_box_px,
        measure=measure,
    )
    geometry = compute_geometry(arabic, translation, frame, style.gap)
    return SegmentLayout(arabic=arabic, translation=translation, geometry=geometry)
