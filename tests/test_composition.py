import re
from pathlib import Path

import pytest

from ayah_video.models.domain import FrameSize, MediaInput, TextBlock, TimedOverlay
from ayah_video.services.composition import FINAL_LABEL, emit_plan, format_number, time_gate
from ayah_video.services.geometry import GapPolicy, compute_geometry

FRAME = FrameSize(width_px=1920, height_px=1080)
GATE = re.compile(r"enable='gte\(t,([\d.]+)\)\*lt\(t,([\d.]+)\)'")
INPUT = re.compile(r"\[(\d+):v\]")


def overlays(windows: list[tuple[float, float]]) -> list[TimedOverlay]:
    geometry = compute_geometry(
        TextBlock(lines=("a",), font_size_px=48),
        TextBlock(lines=("b", "c"), font_size_px=33),
        FRAME,
        GapPolicy.for_frame(FRAME),
    )
    return [
        TimedOverlay(
            geometry=geometry,
            panel=Path(f"verse_{i}_panel.png"),
            arabic=Path(f"verse_{i}_arabic.png"),
            translation=Path(f"verse_{i}_translation.png"),
            start_time=start,
            end_time=end,
        )
        for i, (start, end) in enumerate(windows)
    ]


def plan_for(windows, with_audio=True):
    return emit_plan(
        MediaInput(kind="video", path=Path("bg.mp4"), options=("-stream_loop", "-1")),
        MediaInput(kind="audio", path=Path("audio.mp3")) if with_audio else None,
        MediaInput(kind="image", path=Path("watermark.png")),
        overlays(windows),
        FRAME,
    )


WINDOWS = [(0.0, 3.0), (3.0, 7.2), (7.2, 10.0)]


def test_each_verse_gets_gated_overlays_covering_the_timeline():
    plan = plan_for(WINDOWS)
    gated = [line for line in plan.filters if "enable=" in line]
    assert len(gated) == 3 * len(WINDOWS)

    windows = [(float(start), float(end)) for line in gated[::3] for start, end in GATE.findall(line)]
    assert windows == WINDOWS
    assert windows[0][0] == 0
    for (_, end), (start, _) in zip(windows, windows[1:]):
        assert end == start


def test_single_ungated_watermark_comes_first():
    plan = plan_for(WINDOWS)
    ungated_overlays = [i for i, line in enumerate(plan.filters) if "overlay" in line and "enable=" not in line]
    assert ungated_overlays == [1]
    assert plan.filters[0] == "[0:v]scale=1920:1080[bg]"
    assert plan.filters[1] == "[bg][2:v]overlay=0:0[watermarked]"
    assert plan.filters[-1] == f"[verse_2]null[{FINAL_LABEL}]"


def test_input_indices_follow_fixed_order():
    plan = plan_for(WINDOWS)
    kinds = [media.kind for media in plan.inputs]
    assert kinds == ["video", "audio", "image"] + ["image"] * 9
    assert plan.inputs[3].path == Path("verse_0_panel.png")
    assert plan.inputs[4].path == Path("verse_0_arabic.png")
    assert plan.inputs[5].path == Path("verse_0_translation.png")
    assert plan.inputs[11].path == Path("verse_2_translation.png")

    referenced = sorted(int(index) for line in plan.filters for index in INPUT.findall(line))
    assert referenced == [0] + list(range(2, 12))
    assert plan.audio_stream == "1:a"


def test_preview_plan_shifts_indices_without_audio():
    plan = plan_for(WINDOWS[:1], with_audio=False)
    assert plan.audio_stream is None
    assert plan.filters[1] == "[bg][1:v]overlay=0:0[watermarked]"
    assert plan.filters[2].startswith("[watermarked][2:v]overlay=")
    assert "-map" in plan.command(Path("out.mp4"))
    assert "1:a" not in plan.command(Path("out.mp4"))


def test_command_maps_final_video_and_audio():
    cmd = plan_for(WINDOWS).command(Path("out.mp4"), ["-c:v", "libx264"])
    assert cmd[:4] == ["ffmpeg", "-y", "-stream_loop", "-1"]
    assert cmd[cmd.index("-filter_complex") + 1] == ";".join(plan_for(WINDOWS).filters)
    assert cmd[-3:] == ["-c:v", "libx264", "out.mp4"]
    maps = [cmd[i + 1] for i, token in enumerate(cmd) if token == "-map"]
    assert maps == [f"[{FINAL_LABEL}]", "1:a"]


def test_text_overlays_are_centred_on_anchor():
    plan = plan_for(WINDOWS[:1])
    arabic_line = plan.filters[3]
    assert "overlay=(W-w)/2:" in arabic_line
    assert "-h/2:enable=" in arabic_line


@pytest.mark.parametrize("windows", [[(0.0, 2.0), (1.5, 3.0)], [(0.0, 0.0)]])
def test_rejects_overlapping_or_empty_windows(windows):
    with pytest.raises(ValueError):
        plan_for(windows)


def test_number_formatting():
    assert format_number(3.0) == "3"
    assert format_number(7.2000001) == "7.2"
    assert time_gate(0, 4.5) == "gte(t,0)*lt(t,4.5)"


def _active_at(plan, t: float) -> set[tuple[float, float]]:
    # gte(t,a)*lt(t,b) is non-zero exactly when a <= t < b
    return {
        (float(start), float(end))
        for line in plan.filters
        for start, end in GATE.findall(line)
        if float(start) <= t < float(end)
    }


@pytest.mark.parametrize("t", [0.0, 3.0, 7.2, 9.999])
def test_exactly_one_verse_visible_at_shared_boundaries(t):
    plan = plan_for(WINDOWS)
    assert all("between(" not in line for line in plan.filters)
    assert len(_active_at(plan, t)) == 1


def test_nothing_gated_after_last_window():
    assert _active_at(plan_for(WINDOWS), 10.0) == set()
