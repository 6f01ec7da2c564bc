from __future__ import annotations

import logging
from pathlib import Path

from ayah_video.core.config import settings
from ayah_video.core.errors import InputValidationError
from ayah_video.core.storage import ensure_dir
from ayah_video.services.transcoder import Transcoder

logger = logging.getLogger(__name__)

VIDEO_SUFFIXES = {".mp4", ".webm", ".mov", ".avi"}


def _display_name(path: Path) -> str:
    return path.stem.replace("-", " ").replace("_", " ").title()


class BackgroundService:
    def __init__(self, backgrounds_dir: Path | None = None, thumbnails_dir: Path | None = None, transcoder: Transcoder | None = None) -> None:
        self.backgrounds_dir = backgrounds_dir or settings.backgrounds_dir
        self.thumbnails_dir = thumbnails_dir or settings.thumbnails_dir
        self.transcoder = transcoder or Transcoder()

    def list_backgrounds(self) -> list[dict]:
        if not self.backgrounds_dir.exists():
            return []
        rows: list[dict] = []
        for entry in sorted(self.backgrounds_dir.iterdir()):
            if not entry.is_file() or entry.suffix.lower() not in VIDEO_SUFFIXES:
                continue
            rows.append(
                {
                    "id": entry.name,
                    "name": _display_name(entry),
                    "thumbnail_url": f"/api/thumbnail/{entry.name}",
                }
            )
        return rows

    def resolve(self, background_id: str) -> Path:
        if not background_id or Path(background_id).name != background_id or background_id.startswith("."):
            raise InputValidationError(f"Invalid background id: {background_id!r}")
        path = self.backgrounds_dir / background_id
        if path.suffix.lower() not in VIDEO_SUFFIXES or not path.is_file():
            raise InputValidationError(f"Background not found: {background_id}")
        return path

    async def thumbnail(self, background_id: str) -> Path:
        source = self.resolve(background_id)
        target = ensure_dir(self.thumbnails_dir) / f"{source.stem}.jpg"
        if target.exists() and target.stat().st_mtime >= source.stat().st_mtime:
            return target
        logger.info("Generating thumbnail for %s", background_id)
        return await self.transcoder.extract_thumbnail(source, target)
