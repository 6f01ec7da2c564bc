from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from uuid import uuid4

from ayah_video.core.config import settings
from ayah_video.core.errors import InputValidationError
from ayah_video.core.storage import publish_file, scratch_dir
from ayah_video.models.domain import (
    AudioSegment,
    FrameSize,
    Frozen,
    MediaInput,
    TimedOverlay,
    TimedSegment,
    VerseContent,
)
from ayah_video.models.schemas import VideoGenerateRequest
from ayah_video.services.artifact_service import ArtifactService
from ayah_video.services.audio_service import RecitationAudioService, validate_reciter
from ayah_video.services.background_service import BackgroundService
from ayah_video.services.composition import emit_plan, format_number
from ayah_video.services.corpus_service import CorpusService
from ayah_video.services.font_registry import FontRegistry
from ayah_video.services.layout_service import LayoutStyle, layout_segment
from ayah_video.services.render_service import OverlayRenderer, parse_color
from ayah_video.services.timeline import build_timeline, fixed_durations
from ayah_video.services.transcoder import Transcoder

logger = logging.getLogger(__name__)

FULL_OUTPUT_OPTIONS = (
    "-c:v",
    "libx264",
    "-preset",
    "medium",
    "-crf",
    "23",
    "-pix_fmt",
    "yuv420p",
    "-c:a",
    "aac",
    "-b:a",
    "192k",
    "-movflags",
    "+faststart",
)
PREVIEW_OUTPUT_OPTIONS = (
    "-c:v",
    "libx264",
    "-preset",
    "ultrafast",
    "-crf",
    "28",
    "-pix_fmt",
    "yuv420p",
    "-an",
)


class RenderMode(str, Enum):
    full = "full"
    preview = "preview"


class RenderResult(Frozen):
    video_id: str
    path: Path
    duration_seconds: float
    verse_count: int
    mode: RenderMode


class PreparedRequest(Frozen):
    frame: FrameSize
    style: LayoutStyle
    background: Path
    text_color: str


def verse_label(verses: Sequence[VerseContent]) -> str:
    first, last = verses[0].ref, verses[-1].ref
    ayahs = str(first.ayah_number) if first == last else f"{first.ayah_number}-{last.ayah_number}"
    return f"{verses[0].surah_name} {ayahs}".strip()


class VideoPipeline:
    def __init__(
        self,
        corpus: CorpusService | None = None,
        audio_factory: Callable[[], RecitationAudioService] | None = None,
        transcoder: Transcoder | None = None,
        fonts: FontRegistry | None = None,
        backgrounds: BackgroundService | None = None,
        artifacts: ArtifactService | None = None,
    ) -> None:
        self.corpus = corpus or CorpusService()
        self.audio_factory = audio_factory or RecitationAudioService
        self.transcoder = transcoder or Transcoder()
        self.fonts = fonts or FontRegistry()
        self.backgrounds = backgrounds or BackgroundService(transcoder=self.transcoder)
        self.artifacts = artifacts or ArtifactService()
        self.renderer = OverlayRenderer(self.fonts)

    def prepare(self, request: VideoGenerateRequest) -> PreparedRequest:
        """Check everything that does not need I/O beyond the local disk."""
        validate_reciter(request.reciter_id)
        background = self.backgrounds.resolve(request.background_id)
        try:
            parse_color(request.text_color)
        except ValueError as exc:
            raise InputValidationError(f"Invalid text colour: {request.text_color!r}") from exc

        arabic_font = request.font_id or settings.default_arabic_font
        for font_id in (arabic_font, settings.translation_font, settings.watermark_font):
            self.fonts.require(font_id)

        frame = FrameSize.for_orientation(request.orientation)
        style = LayoutStyle.for_frame(
            frame,
            arabic_font=arabic_font,
            translation_font=settings.translation_font,
            font_size_px=request.font_size_px,
        )
        return PreparedRequest(frame=frame, style=style, background=background, text_color=request.text_color)

    async def render(self, request: VideoGenerateRequest, mode: RenderMode = RenderMode.full) -> RenderResult:
        prepared = self.prepare(request)
        verses = self.corpus.get_range(request.surah_number, request.ayah_start, request.ayah_end)
        video_id = str(uuid4())
        logger.info(
            "Rendering %s %s: surah %d ayahs %d-%d, reciter %s",
            mode.value,
            video_id,
            request.surah_number,
            request.ayah_start,
            request.last_ayah,
            request.reciter_id,
        )

        with scratch_dir(settings.tmp_dir, video_id) as work_dir:
            segments: list[AudioSegment] = []
            if mode is RenderMode.full:
                async with self.audio_factory() as audio:
                    segments = await audio.fetch_range(
                        request.reciter_id,
                        [verse.ref for verse in verses],
                        work_dir,
                        self.transcoder.probe_duration,
                    )
                durations = [segment.duration_seconds for segment in segments]
            else:
                durations = fixed_durations(len(verses), settings.preview_seconds)

            timeline = build_timeline(list(zip(verses, durations)))
            total = timeline[-1].end_time

            audio_input: MediaInput | None = None
            if segments:
                track = await self.transcoder.concat_audio([segment.path for segment in segments], work_dir / "audio.mp3")
                audio_input = MediaInput(kind="audio", path=track)

            overlays = await asyncio.to_thread(self._render_overlays, timeline, prepared, work_dir)
            watermark = await asyncio.to_thread(
                self.renderer.render_watermark, work_dir / "watermark.png", prepared.frame, verse_label(verses)
            )

            plan = emit_plan(
                MediaInput(
                    kind="video",
                    path=prepared.background,
                    options=("-stream_loop", "-1", "-t", format_number(total)),
                ),
                audio_input,
                MediaInput(kind="image", path=watermark),
                overlays,
                prepared.frame,
            )
            options = FULL_OUTPUT_OPTIONS if mode is RenderMode.full else PREVIEW_OUTPUT_OPTIONS
            output = await self.transcoder.compose(plan, work_dir / "output.mp4", options)
            target = publish_file(output, self.artifacts.video_path(video_id, preview=mode is RenderMode.preview))

        if mode is RenderMode.preview:
            self.artifacts.prune_previews()
        logger.info("Finished %s %s: %.2fs, %d verse(s)", mode.value, video_id, total, len(timeline))
        return RenderResult(
            video_id=video_id,
            path=target,
            duration_seconds=total,
            verse_count=len(timeline),
            mode=mode,
        )

    def _render_overlays(self, timeline: Sequence[TimedSegment], prepared: PreparedRequest, work_dir: Path) -> list[TimedOverlay]:
        style, frame = prepared.style, prepared.frame
        overlays: list[TimedOverlay] = []
        for index, segment in enumerate(timeline):
            layout = layout_segment(segment, frame, style, self.fonts.measure)
            stem = f"verse_{index:03d}"
            panel = self.renderer.render_panel(work_dir / f"{stem}_panel.png", layout.geometry)
            arabic = self.renderer.render_text_block(
                work_dir / f"{stem}_arabic.png",
                layout.arabic,
                style.arabic_font,
                frame,
                style.arabic_box_px,
                prepared.text_color,
            )
            translation = self.renderer.render_text_block(
                work_dir / f"{stem}_translation.png",
                layout.translation,
                style.translation_font,
                frame,
                style.translation_box_px,
                prepared.text_color,
            )
            logger.debug(
                "Verse %s: arabic %dpx x%d lines, translation %dpx x%d lines",
                segment.ref.label(),
                layout.arabic.font_size_px,
                len(layout.arabic.lines),
                layout.translation.font_size_px,
                len(layout.translation.lines),
            )
            overlays.append(
                TimedOverlay(
                    geometry=layout.geometry,
                    panel=panel,
                    arabic=arabic,
                    translation=translation,
                    start_time=segment.start_time,
                    end_time=segment.end_time,
                )
            )
        return overlays
