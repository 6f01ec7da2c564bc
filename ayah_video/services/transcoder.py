from __future__ import annotations

import asyncio
import logging
import math
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path

from ayah_video.core.errors import CompositionError, DurationProbeError
from ayah_video.core.storage import ensure_dir
from ayah_video.services.composition import FilterPlan

logger = logging.getLogger(__name__)

DIAGNOSTIC_TAIL_CHARS = 4000


class Transcoder:
    async def _run(self, cmd: list[str]) -> subprocess.CompletedProcess[str]:
        logger.debug("Running: %s", " ".join(cmd))
        try:
            return await asyncio.to_thread(subprocess.run, cmd, capture_output=True, text=True)
        except OSError as exc:
            raise CompositionError(f"Could not start {cmd[0]}.", diagnostics=str(exc)) from exc

    async def probe_duration(self, path: Path) -> float:
        cmd = [
            "ffprobe",
            "-v",
            "error",
            "-show_entries",
            "format=duration",
            "-of",
            "default=noprint_wrappers=1:nokey=1",
            str(path),
        ]
        try:
            result = await self._run(cmd)
        except CompositionError as exc:
            raise DurationProbeError(f"ffprobe unavailable for {path.name}: {exc.diagnostics}") from exc
        if result.returncode != 0:
            raise DurationProbeError(f"ffprobe failed for {path.name}: {result.stderr.strip()[-400:]}")
        try:
            duration = float(result.stdout.strip())
        except ValueError as exc:
            raise DurationProbeError(f"ffprobe returned no duration for {path.name}.") from exc
        if not math.isfinite(duration) or duration <= 0:
            raise DurationProbeError(f"ffprobe returned duration {duration} for {path.name}.")
        return duration

    async def concat_audio(self, paths: Sequence[Path], output: Path) -> Path:
        """Join verse recordings in the given order into one track."""
        if not paths:
            raise CompositionError("No audio segments to concatenate.")
        ensure_dir(output.parent)
        if len(paths) == 1:
            shutil.copyfile(paths[0], output)
            return output

        cmd = ["ffmpeg", "-y"]
        for path in paths:
            cmd.extend(["-i", str(path)])
        streams = "".join(f"[{index}:a]" for index in range(len(paths)))
        cmd.extend(
            [
                "-filter_complex",
                f"{streams}concat=n={len(paths)}:v=0:a=1[audio]",
                "-map",
                "[audio]",
                "-c:a",
                "libmp3lame",
                "-q:a",
                "2",
                str(output),
            ]
        )
        await self._check(cmd, "Audio concatenation failed.")
        return output

    async def compose(self, plan: FilterPlan, output: Path, output_options: Sequence[str]) -> Path:
        ensure_dir(output.parent)
        for index, line in enumerate(plan.filters, start=1):
            logger.debug("  %d. %s", index, line)
        await self._check(plan.command(output, output_options), "Video composition failed.")
        if not output.exists():
            raise CompositionError("Video composition produced no output file.")
        return output

    async def extract_thumbnail(self, video: Path, output: Path, at_seconds: float = 2.0) -> Path:
        ensure_dir(output.parent)
        cmd = [
            "ffmpeg",
            "-y",
            "-ss",
            str(at_seconds),
            "-i",
            str(video),
            "-frames:v",
            "1",
            "-vf",
            "scale=320:180:force_original_aspect_ratio=decrease",
            str(output),
        ]
        await self._check(cmd, "Thumbnail extraction failed.")
        return output

    async def _check(self, cmd: list[str], message: str) -> None:
        result = await self._run(cmd)
        if result.returncode != 0:
            diagnostics = (result.stderr or "")[-DIAGNOSTIC_TAIL_CHARS:]
            logger.error("%s (exit %d)\n%s", message, result.returncode, diagnostics)
            raise CompositionError(message, diagnostics=diagnostics)
