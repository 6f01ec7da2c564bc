from fastapi import APIRouter, HTTPException, Path
from fastapi.responses import FileResponse

from ayah_video.core.errors import CompositionError, InputValidationError
from ayah_video.models.domain import VerseRef, expand_range
from ayah_video.models.schemas import (
    BackgroundItem,
    FontItem,
    ReciterItem,
    VerseAudioRangeResponse,
    VerseAudioResponse,
)
from ayah_video.services.audio_service import list_reciters, verse_audio_url
from ayah_video.services.background_service import BackgroundService
from ayah_video.services.font_registry import FontRegistry

router = APIRouter(prefix="/api", tags=["catalog"])
backgrounds = BackgroundService()
fonts = FontRegistry()


@router.get("/reciters", response_model=list[ReciterItem])
def get_reciters() -> list[ReciterItem]:
    return [ReciterItem(**row) for row in list_reciters()]


@router.get("/fonts", response_model=list[FontItem])
def get_fonts() -> list[FontItem]:
    return [FontItem(**row) for row in fonts.describe()]


@router.get("/backgrounds", response_model=list[BackgroundItem])
def get_backgrounds() -> list[BackgroundItem]:
    return [BackgroundItem(**row) for row in backgrounds.list_backgrounds()]


@router.get("/thumbnail/{background_id}")
async def get_thumbnail(background_id: str) -> FileResponse:
    try:
        path = await backgrounds.thumbnail(background_id)
    except InputValidationError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except CompositionError as exc:
        raise HTTPException(status_code=500, detail="Thumbnail generation failed") from exc
    return FileResponse(path, media_type="image/jpeg")


@router.get("/verse-audio/{surah_number}/{ayah_number}/{reciter_id}", response_model=VerseAudioResponse)
def get_verse_audio(
    reciter_id: str,
    surah_number: int = Path(ge=1, le=114),
    ayah_number: int = Path(ge=1),
) -> VerseAudioResponse:
    try:
        url = verse_audio_url(reciter_id, VerseRef(surah_number=surah_number, ayah_number=ayah_number))
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return VerseAudioResponse(audio_url=url, reciter_id=reciter_id)


@router.get(
    "/verse-audio-range/{surah_number}/{ayah_start}/{ayah_end}/{reciter_id}",
    response_model=VerseAudioRangeResponse,
)
def get_verse_audio_range(
    reciter_id: str,
    surah_number: int = Path(ge=1, le=114),
    ayah_start: int = Path(ge=1),
    ayah_end: int = Path(ge=1),
) -> VerseAudioRangeResponse:
    if ayah_end < ayah_start:
        raise HTTPException(status_code=422, detail="ayah_end must be >= ayah_start")
    try:
        urls = [verse_audio_url(reciter_id, ref) for ref in expand_range(surah_number, ayah_start, ayah_end)]
    except InputValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return VerseAudioRangeResponse(audio_urls=urls, reciter_id=reciter_id, verses=f"{ayah_start}-{ayah_end}")
