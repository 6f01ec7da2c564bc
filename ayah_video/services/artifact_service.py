from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from uuid import UUID

from ayah_video.core.config import settings
from ayah_video.core.errors import ContentLookupError, InputValidationError
from ayah_video.core.storage import artifact_lock, ensure_dir

logger = logging.getLogger(__name__)


def validate_artifact_id(artifact_id: str) -> str:
    try:
        return str(UUID(artifact_id))
    except (ValueError, AttributeError, TypeError) as exc:
        raise InputValidationError(f"Invalid video id: {artifact_id!r}") from exc


class ArtifactService:
    """Finished videos under `generated/` and short previews under `previews/`."""

    def __init__(self, generated_dir: Path | None = None, previews_dir: Path | None = None) -> None:
        self.generated_dir = ensure_dir(generated_dir or settings.generated_dir)
        self.previews_dir = ensure_dir(previews_dir or settings.previews_dir)

    def video_path(self, video_id: str, preview: bool = False) -> Path:
        base = self.previews_dir if preview else self.generated_dir
        return base / f"{validate_artifact_id(video_id)}.mp4"

    def existing_path(self, video_id: str, preview: bool = False) -> Path:
        path = self.video_path(video_id, preview=preview)
        if not path.exists():
            raise ContentLookupError("Video not found")
        return path

    def describe(self, video_id: str) -> dict:
        path = self.existing_path(video_id)
        stat = path.stat()
        return {
            "video_id": path.stem,
            "size_bytes": stat.st_size,
            "created_at": datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        }

    def _videos(self, directory: Path) -> list[Path]:
        return [entry for entry in directory.glob("*.mp4") if entry.is_file()]

    def cleanup(self, max_age_hours: float | None = None) -> int:
        """Delete generated videos and previews older than the retention window."""
        max_age = (max_age_hours if max_age_hours is not None else settings.retention_hours) * 3600
        cutoff = time.time() - max_age
        count = 0
        for directory in (self.generated_dir, self.previews_dir):
            with artifact_lock(directory):
                for path in self._videos(directory):
                    if path.stat().st_mtime < cutoff:
                        path.unlink(missing_ok=True)
                        count += 1
        logger.info("Cleanup removed %d file(s) older than %.1fh", count, max_age / 3600)
        return count

    def prune_previews(self, keep: int | None = None) -> int:
        keep = settings.preview_keep if keep is None else keep
        with artifact_lock(self.previews_dir):
            previews = sorted(self._videos(self.previews_dir), key=lambda item: item.stat().st_mtime, reverse=True)
            stale = previews[max(0, keep):]
            for path in stale:
                path.unlink(missing_ok=True)
        if stale:
            logger.debug("Pruned %d old preview(s)", len(stale))
        return len(stale)
