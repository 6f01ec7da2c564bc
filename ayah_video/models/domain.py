from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

LINE_HEIGHT_RATIO = 1.3


class Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class Orientation(str, Enum):
    landscape = "landscape"
    portrait = "portrait"
    square = "square"


class FrameSize(Frozen):
    width_px: int = Field(gt=0)
    height_px: int = Field(gt=0)

    @classmethod
    def for_orientation(cls, orientation: Orientation) -> FrameSize:
        width, height = {
            Orientation.landscape: (1920, 1080),
            Orientation.portrait: (1080, 1920),
            Orientation.square: (1080, 1080),
        }[Orientation(orientation)]
        return cls(width_px=width, height_px=height)


class VerseRef(Frozen):
    surah_number: int = Field(ge=1)
    ayah_number: int = Field(ge=1)

    def label(self) -> str:
        return f"{self.surah_number}:{self.ayah_number}"


def expand_range(surah_number: int, ayah_start: int, ayah_end: int | None = None) -> list[VerseRef]:
    end = ayah_start if ayah_end is None else ayah_end
    return [VerseRef(surah_number=surah_number, ayah_number=ayah) for ayah in range(ayah_start, end + 1)]


class VerseContent(Frozen):
    ref: VerseRef
    arabic_text: str
    translation_text: str
    surah_name: str = ""


class AudioSegment(Frozen):
    ref: VerseRef
    duration_seconds: float = Field(gt=0)
    path: Path


class TimedSegment(Frozen):
    ref: VerseRef
    start_time: float = Field(ge=0)
    end_time: float
    arabic_text: str
    translation_text: str

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time


class TextBlock(Frozen):
    lines: tuple[str, ...]
    font_size_px: int
    fits: bool = True

    @property
    def line_height_px(self) -> float:
        return self.font_size_px * LINE_HEIGHT_RATIO

    @property
    def height_px(self) -> float:
        return self.line_height_px * len(self.lines)


class Rect(Frozen):
    x: float
    y: float
    width: float
    height: float

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def pixel_box(self) -> tuple[int, int, int, int]:
        return round(self.x), round(self.y), max(1, round(self.width)), max(1, round(self.height))


class Point(Frozen):
    x: float
    y: float


class OverlayGeometry(Frozen):
    panel_rect: Rect
    arabic_anchor: Point
    translation_anchor: Point


class MediaInput(Frozen):
    kind: Literal["video", "audio", "image"]
    path: Path
    options: tuple[str, ...] = ()


class TimedOverlay(Frozen):
    geometry: OverlayGeometry
    panel: Path
    arabic: Path
    translation: Path
    start_time: float
    end_time: float
