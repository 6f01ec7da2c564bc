from __future__ import annotations

import math

from pydantic import Field

from ayah_video.models.domain import FrameSize, Frozen, OverlayGeometry, Point, Rect, TextBlock

GAP_HEIGHT_FRACTION = 0.05
PANEL_PADDING_PX = 60
PANEL_WIDTH_FRACTION = 0.9


class GapPolicy(Frozen):
    inter_block_gap_px: float = Field(default=0, ge=0)
    panel_padding_px: float = Field(default=PANEL_PADDING_PX, ge=0)
    panel_width_fraction: float = Field(default=PANEL_WIDTH_FRACTION, gt=0, le=1)

    @classmethod
    def for_frame(cls, frame: FrameSize) -> GapPolicy:
        return cls(inter_block_gap_px=math.floor(frame.height_px * GAP_HEIGHT_FRACTION))


def block_offsets(arabic: TextBlock, translation: TextBlock, policy: GapPolicy) -> tuple[float, float]:
    """Distances from the frame's vertical centre to the Arabic and translation block centres."""
    arabic_offset = math.floor(arabic.height_px / 2) + policy.inter_block_gap_px
    translation_offset = math.floor(translation.height_px / 2) + policy.inter_block_gap_px
    return arabic_offset, translation_offset


def compute_geometry(
    arabic: TextBlock,
    translation: TextBlock,
    frame: FrameSize,
    policy: GapPolicy,
) -> OverlayGeometry:
    center_x = frame.width_px / 2
    center_y = frame.height_px / 2
    arabic_offset, translation_offset = block_offsets(arabic, translation, policy)

    arabic_anchor = Point(x=center_x, y=center_y - arabic_offset)
    translation_anchor = Point(x=center_x, y=center_y + translation_offset)

    panel_top = arabic_anchor.y - arabic.height_px / 2 - policy.panel_padding_px
    panel_bottom = translation_anchor.y + translation.height_px / 2 + policy.panel_padding_px
    panel_width = frame.width_px * policy.panel_width_fraction
    panel = Rect(
        x=(frame.width_px - panel_width) / 2,
        y=panel_top,
        width=panel_width,
        height=panel_bottom - panel_top,
    )
    return OverlayGeometry(panel_rect=panel, arabic_anchor=arabic_anchor, translation_anchor=translation_anchor)
