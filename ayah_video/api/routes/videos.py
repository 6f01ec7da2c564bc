import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

from ayah_video.core.errors import (
    AssetFetchError,
    CompositionError,
    ContentLookupError,
    DurationProbeError,
    FontUnavailableError,
    InputValidationError,
    ReelError,
)
from ayah_video.models.schemas import (
    CleanupResponse,
    PreviewResponse,
    ShareResponse,
    VideoGenerateRequest,
    VideoGenerateResponse,
)
from ayah_video.services.artifact_service import ArtifactService
from ayah_video.services.video_pipeline import RenderMode, VideoPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["videos"])
artifacts = ArtifactService()
pipeline = VideoPipeline(artifacts=artifacts)

ERROR_STATUS = (
    (InputValidationError, 400),
    (FontUnavailableError, 400),
    (ContentLookupError, 404),
    (AssetFetchError, 502),
    (DurationProbeError, 502),
)


def http_error(exc: ReelError) -> HTTPException:
    if isinstance(exc, CompositionError):
        logger.error("Composition failed: %s\n%s", exc, exc.diagnostics)
        return HTTPException(status_code=500, detail="Video generation failed")
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    logger.error("Unhandled pipeline error: %s", exc)
    return HTTPException(status_code=500, detail="Video generation failed")


def _lookup(video_id: str, preview: bool = False) -> Path:
    try:
        return artifacts.existing_path(video_id, preview=preview)
    except (InputValidationError, ContentLookupError) as exc:
        raise HTTPException(status_code=404, detail="Video not found") from exc


@router.post("/generate-video", response_model=VideoGenerateResponse)
async def generate_video(payload: VideoGenerateRequest, request: Request) -> VideoGenerateResponse:
    try:
        result = await pipeline.render(payload, RenderMode.full)
    except ReelError as exc:
        raise http_error(exc) from exc
    base_url = str(request.base_url).rstrip("/")
    return VideoGenerateResponse(
        video_id=result.video_id,
        download_url=f"/api/download/{result.video_id}",
        share_url=f"{base_url}/api/share/{result.video_id}",
    )


@router.post("/preview-video", response_model=PreviewResponse)
async def preview_video(payload: VideoGenerateRequest) -> PreviewResponse:
    try:
        result = await pipeline.render(payload, RenderMode.preview)
    except ReelError as exc:
        raise http_error(exc) from exc
    return PreviewResponse(
        preview_id=result.video_id,
        preview_url=f"/api/preview/{result.video_id}",
        duration=result.duration_seconds,
    )


@router.get("/preview/{preview_id}")
def get_preview(preview_id: str) -> FileResponse:
    return FileResponse(_lookup(preview_id, preview=True), media_type="video/mp4")


@router.get("/download/{video_id}")
def download_video(video_id: str) -> FileResponse:
    path = _lookup(video_id)
    return FileResponse(path, media_type="video/mp4", filename=f"quran-verse-{path.stem}.mp4")


@router.get("/share/{video_id}", response_model=ShareResponse)
def share_video(video_id: str, request: Request) -> ShareResponse:
    _lookup(video_id)
    info = artifacts.describe(video_id)
    base_url = str(request.base_url).rstrip("/")
    return ShareResponse(
        video_id=info["video_id"],
        download_url=f"/api/download/{info['video_id']}",
        share_url=f"{base_url}/api/share/{info['video_id']}",
        size_bytes=info["size_bytes"],
        created_at=info["created_at"],
    )


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup() -> CleanupResponse:
    return CleanupResponse(cleaned_count=artifacts.cleanup())
