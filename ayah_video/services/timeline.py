from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from ayah_video.core.errors import DurationProbeError, InputValidationError
from ayah_video.models.domain import TimedSegment, VerseContent

logger = logging.getLogger(__name__)


def fixed_durations(count: int, total_seconds: float) -> list[float]:
    """Split a fixed clip length evenly across `count` verses (preview renders)."""
    if count < 1:
        raise InputValidationError("At least one verse is required.")
    if total_seconds <= 0:
        raise InputValidationError("Clip length must be positive.")
    return [total_seconds / count] * count


def build_timeline(entries: Sequence[tuple[VerseContent, float | None]]) -> list[TimedSegment]:
    """Lay verses end to end: each segment starts exactly where the previous one ended."""
    if not entries:
        raise InputValidationError("Cannot build a timeline for an empty verse range.")

    surah = entries[0][0].ref.surah_number
    previous_ayah = 0
    for content, duration in entries:
        ref = content.ref
        if ref.surah_number != surah:
            raise InputValidationError(f"Verse {ref.label()} is outside surah {surah}.")
        if ref.ayah_number <= previous_ayah:
            raise InputValidationError(f"Verse {ref.label()} is out of order.")
        previous_ayah = ref.ayah_number
        if duration is None or not math.isfinite(duration) or duration <= 0:
            raise DurationProbeError(f"Verse {ref.label()} has no usable audio duration ({duration!r}).")

    segments: list[TimedSegment] = []
    cursor = 0.0
    for content, duration in entries:
        end = cursor + float(duration)
        segments.append(
            TimedSegment(
                ref=content.ref,
                start_time=cursor,
                end_time=end,
                arabic_text=content.arabic_text,
                translation_text=content.translation_text,
            )
        )
        logger.debug("Verse %s: %.2fs - %.2fs", content.ref.label(), cursor, end)
        cursor = end

    logger.info("Timeline built: %d verse(s), %.2fs total", len(segments), cursor)
    return segments
