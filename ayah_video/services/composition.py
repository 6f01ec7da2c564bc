"""Translate timed overlays into an ffmpeg filter graph.

Input indices are assigned in a fixed order: background, audio (full renders
only), watermark, then panel/Arabic/translation images for each verse in
timeline order. The watermark is overlaid once without a time gate; every
verse stage is gated to its own window and stacks on the previous stage.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Sequence
from pathlib import Path

from ayah_video.models.domain import FrameSize, Frozen, MediaInput, TimedOverlay

FINAL_LABEL = "final"
INPUT_REFERENCE = re.compile(r"\[(\d+):[va]\]")


class FilterPlan(Frozen):
    inputs: tuple[MediaInput, ...]
    filters: tuple[str, ...]
    video_label: str = FINAL_LABEL
    audio_stream: str | None = None

    def filter_complex(self) -> str:
        return ";".join(self.filters)

    def command(self, output: Path, output_options: Sequence[str] = ()) -> list[str]:
        cmd = ["ffmpeg", "-y"]
        for media in self.inputs:
            cmd.extend(media.options)
            cmd.extend(["-i", str(media.path)])
        cmd.extend(["-filter_complex", self.filter_complex(), "-map", f"[{self.video_label}]"])
        if self.audio_stream:
            cmd.extend(["-map", self.audio_stream])
        cmd.extend(output_options)
        cmd.append(str(output))
        return cmd


def format_number(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def time_gate(start: float, end: float) -> str:
    return f"gte(t,{format_number(start)})*lt(t,{format_number(end)})"


def _check_windows(overlays: Sequence[TimedOverlay]) -> None:
    previous_end = 0.0
    for index, overlay in enumerate(overlays):
        if overlay.end_time <= overlay.start_time:
            raise ValueError(f"Overlay {index} has an empty window.")
        if overlay.start_time < previous_end - 1e-9:
            raise ValueError(f"Overlay {index} starts before overlay {index - 1} ends.")
        previous_end = overlay.end_time


def _check_references(inputs: Sequence[MediaInput], filters: Sequence[str], audio_stream: str | None) -> None:
    counts = Counter(int(match) for line in filters for match in INPUT_REFERENCE.findall(line))
    if audio_stream:
        counts[int(audio_stream.split(":")[0])] += 1
    expected = Counter(range(len(inputs)))
    if counts != expected:
        raise ValueError(f"Filter graph input references {dict(counts)} do not match {len(inputs)} inputs.")


def emit_plan(
    background: MediaInput,
    audio: MediaInput | None,
    watermark: MediaInput,
    overlays: Sequence[TimedOverlay],
    frame: FrameSize,
) -> FilterPlan:
    _check_windows(overlays)

    inputs: list[MediaInput] = [background]
    audio_stream: str | None = None
    if audio is not None:
        audio_stream = f"{len(inputs)}:a"
        inputs.append(audio)
    watermark_index = len(inputs)
    inputs.append(watermark)

    filters = [
        f"[0:v]scale={frame.width_px}:{frame.height_px}[bg]",
        f"[bg][{watermark_index}:v]overlay=0:0[watermarked]",
    ]
    current = "watermarked"
    for index, overlay in enumerate(overlays):
        panel_index = len(inputs)
        inputs.extend(
            [
                MediaInput(kind="image", path=overlay.panel),
                MediaInput(kind="image", path=overlay.arabic),
                MediaInput(kind="image", path=overlay.translation),
            ]
        )
        gate = time_gate(overlay.start_time, overlay.end_time)
        panel_x, panel_y, _, _ = overlay.geometry.panel_rect.pixel_box()
        arabic_y = format_number(overlay.geometry.arabic_anchor.y)
        translation_y = format_number(overlay.geometry.translation_anchor.y)

        filters.append(f"[{current}][{panel_index}:v]overlay={panel_x}:{panel_y}:enable='{gate}'[panel_{index}]")
        filters.append(
            f"[panel_{index}][{panel_index + 1}:v]overlay=(W-w)/2:{arabic_y}-h/2:enable='{gate}'[arabic_{index}]"
        )
        filters.append(
            f"[arabic_{index}][{panel_index + 2}:v]overlay=(W-w)/2:{translation_y}-h/2:enable='{gate}'[verse_{index}]"
        )
        current = f"verse_{index}"

    filters.append(f"[{current}]null[{FINAL_LABEL}]")
    _check_references(inputs, filters, audio_stream)
    return FilterPlan(inputs=tuple(inputs), filters=tuple(filters), audio_stream=audio_stream)
