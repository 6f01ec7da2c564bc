#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import shutil
from pathlib import Path

from ayah_video.core.config import settings
from ayah_video.core.errors import CompositionError, ReelError
from ayah_video.core.logs import configure_logging
from ayah_video.models.domain import Orientation
from ayah_video.models.schemas import VideoGenerateRequest
from ayah_video.services.video_pipeline import RenderMode, VideoPipeline


def require_binary(name: str) -> None:
    if shutil.which(name) is None:
        raise SystemExit(f"Missing required binary: {name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render a recited Quran verse range over a background video.")
    parser.add_argument("--surah-number", type=int, required=True)
    parser.add_argument("--ayah", type=int, required=True)
    parser.add_argument("--ayah-end", type=int)
    parser.add_argument("--reciter", type=str, default="alafasy")
    parser.add_argument("--background", type=str, required=True, help="File name inside the backgrounds directory")
    parser.add_argument("--orientation", type=str, choices=[item.value for item in Orientation], default="landscape")
    parser.add_argument("--text-color", type=str, default="#ffffff")
    parser.add_argument("--font-id", type=str)
    parser.add_argument("--font-size", type=int)
    parser.add_argument("--preview", action="store_true", help="Short silent clip with a fast encode")
    parser.add_argument("--output", type=str, help="Copy the finished video here")
    parser.add_argument("--log-level", type=str, default=settings.log_level)
    return parser


def main() -> None:
    args = build_parser().parse_args()
    configure_logging(args.log_level)
    require_binary("ffmpeg")
    require_binary("ffprobe")

    request = VideoGenerateRequest(
        surah_number=args.surah_number,
        ayah_start=args.ayah,
        ayah_end=args.ayah_end,
        reciter_id=args.reciter,
        background_id=args.background,
        text_color=args.text_color,
        font_size_px=args.font_size,
        font_id=args.font_id,
        orientation=Orientation(args.orientation),
    )
    mode = RenderMode.preview if args.preview else RenderMode.full
    pipeline = VideoPipeline()
    pipeline.fonts.resolve()

    try:
        result = asyncio.run(pipeline.render(request, mode))
    except CompositionError as exc:
        raise SystemExit(f"{exc}\n{exc.diagnostics}") from exc
    except ReelError as exc:
        raise SystemExit(str(exc)) from exc

    path = result.path
    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(result.path, output)
        path = output
    print(f"Rendered {result.verse_count} verse(s), {result.duration_seconds:.2f}s: {path}")


if __name__ == "__main__":
    main()
