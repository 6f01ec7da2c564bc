from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from ayah_video.models.domain import Orientation


class VideoGenerateRequest(BaseModel):
    surah_number: int = Field(ge=1, le=114)
    ayah_start: int = Field(ge=1)
    ayah_end: int | None = Field(default=None, ge=1)
    reciter_id: str = "alafasy"
    background_id: str
    text_color: str = "#ffffff"
    font_size_px: int | None = Field(default=None, ge=16, le=200)
    font_id: str | None = None
    orientation: Orientation = Orientation.landscape

    @model_validator(mode="after")
    def validate_range(self) -> "VideoGenerateRequest":
        if self.ayah_end is not None and self.ayah_end < self.ayah_start:
            raise ValueError("ayah_end must be >= ayah_start")
        return self

    @property
    def last_ayah(self) -> int:
        return self.ayah_end if self.ayah_end is not None else self.ayah_start


class VideoGenerateResponse(BaseModel):
    success: bool = True
    video_id: str
    download_url: str
    share_url: str


class PreviewResponse(BaseModel):
    success: bool = True
    preview_id: str
    preview_url: str
    duration: float


class ShareResponse(BaseModel):
    video_id: str
    download_url: str
    share_url: str
    size_bytes: int
    created_at: datetime


class CleanupResponse(BaseModel):
    cleaned_count: int


class ReciterItem(BaseModel):
    id: str
    name: str
    language: str = "Arabic"


class FontItem(BaseModel):
    id: str
    name: str
    available: bool


class BackgroundItem(BaseModel):
    id: str
    name: str
    thumbnail_url: str


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime


class VerseAudioResponse(BaseModel):
    audio_url: str
    reciter_id: str


class VerseAudioRangeResponse(BaseModel):
    audio_urls: list[str]
    reciter_id: str
    verses: str
