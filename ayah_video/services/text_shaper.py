"""Fit a string into a width/height box by shrinking the font and word-wrapping.

The rasterizer is only consulted through a ``measure(font_id, size_px, text)``
callable, so shaping stays a pure function of its inputs.
"""

from __future__ import annotations

import logging
from typing import Callable

from ayah_video.core.errors import InputValidationError
from ayah_video.models.domain import LINE_HEIGHT_RATIO, TextBlock

logger = logging.getLogger(__name__)

MeasureFn = Callable[[str, int, str], float]

MIN_FONT_SIZE_PX = 16
FONT_SIZE_STEP_PX = 2


def wrap_words(text: str, font_id: str, size_px: int, max_width_px: float, measure: MeasureFn) -> list[str]:
    """Greedy wrap on whitespace. Word order is kept as given for both RTL and LTR text."""
    lines: list[str] = []
    current = ""
    for word in text.split():
        candidate = f"{current} {word}" if current else word
        if measure(font_id, size_px, candidate) <= max_width_px:
            current = candidate
            continue
        if current:
            lines.append(current)
        current = word
    if current:
        lines.append(current)
    return lines


def shape_text(
    text: str,
    *,
    font_id: str,
    base_size_px: int,
    max_width_px: float,
    max_height_px: float,
    measure: MeasureFn,
    min_size_px: int = MIN_FONT_SIZE_PX,
    step_px: int = FONT_SIZE_STEP_PX,
) -> TextBlock:
    stripped = " ".join(text.split())
    if not stripped:
        raise InputValidationError("Cannot shape empty text.")
    if base_size_px < min_size_px:
        raise InputValidationError(f"Font size {base_size_px}px is below the {min_size_px}px floor.")
    if max_width_px <= 0 or max_height_px <= 0:
        raise InputValidationError("Text box dimensions must be positive.")
    if step_px <= 0:
        raise InputValidationError("Font size step must be positive.")

    lines = [stripped]
    size = base_size_px
    for size in range(base_size_px, min_size_px - 1, -step_px):
        line_height = size * LINE_HEIGHT_RATIO
        if measure(font_id, size, stripped) <= max_width_px and line_height <= max_height_px:
            return TextBlock(lines=(stripped,), font_size_px=size)

        lines = wrap_words(stripped, font_id, size, max_width_px, measure)
        widths_fit = all(measure(font_id, size, line) <= max_width_px for line in lines)
        if widths_fit and len(lines) * line_height <= max_height_px:
            return TextBlock(lines=tuple(lines), font_size_px=size)

    logger.warning(
        "Text does not fit %.0fx%.0f even at %dpx (%d lines): %r",
        max_width_px,
        max_height_px,
        size,
        len(lines),
        stripped[:60],
    )
    return TextBlock(lines=tuple(lines), font_size_px=size, fits=False)
