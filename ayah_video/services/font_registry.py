from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType

import arabic_reshaper
from bidi.algorithm import get_display
from PIL import ImageFont, features

from ayah_video.core.config import settings
from ayah_video.core.errors import FontUnavailableError
from ayah_video.services.arabic_text import has_arabic

logger = logging.getLogger(__name__)

PROBE_SIZE_PX = 24

FONT_LABELS = {
    "uthmanic_hafs": "Uthmanic Hafs",
    "al_mushaf": "Al Mushaf",
    "taha_naskh": "Uthman Taha Naskh",
    "latin": "Sans",
    "latin_bold": "Sans Bold",
}


@lru_cache(maxsize=256)
def _load_font(path: str, size: int, use_raqm: bool) -> ImageFont.FreeTypeFont:
    layout = ImageFont.Layout.RAQM if use_raqm else ImageFont.Layout.BASIC
    return ImageFont.truetype(path, size=size, layout_engine=layout)


class FontRegistry:
    """Logical font id -> font file, checked once and then read-only."""

    def __init__(self, fonts_dir: Path | None = None, font_files: Mapping[str, str] | None = None) -> None:
        self.fonts_dir = fonts_dir or settings.fonts_dir
        self.font_files = MappingProxyType(dict(font_files if font_files is not None else settings.font_files))
        self.use_raqm = features.check("raqm")
        self._available: Mapping[str, bool] | None = None

    def resolve(self) -> Mapping[str, bool]:
        available: dict[str, bool] = {}
        for font_id, filename in self.font_files.items():
            path = self.fonts_dir / filename
            try:
                _load_font(str(path), PROBE_SIZE_PX, self.use_raqm)
                available[font_id] = True
                logger.info("Registered font %s from %s", font_id, path)
            except OSError:
                available[font_id] = False
                logger.warning("Font %s unavailable: %s", font_id, path)
        if not self.use_raqm:
            logger.info("libraqm not available; Arabic text will be reshaped before drawing")
        self._available = MappingProxyType(available)
        return self._available

    @property
    def availability(self) -> Mapping[str, bool]:
        if self._available is None:
            return self.resolve()
        return self._available

    def available(self, font_id: str) -> bool:
        return self.availability.get(font_id, False)

    def require(self, font_id: str) -> Path:
        if font_id not in self.font_files:
            raise FontUnavailableError(f"Unknown font: {font_id}")
        if not self.available(font_id):
            raise FontUnavailableError(f"Font {font_id} is not installed.")
        return self.fonts_dir / self.font_files[font_id]

    def describe(self) -> list[dict]:
        return [
            {"id": font_id, "name": FONT_LABELS.get(font_id, font_id), "available": self.available(font_id)}
            for font_id in self.font_files
        ]

    def font(self, font_id: str, size_px: int) -> ImageFont.FreeTypeFont:
        return _load_font(str(self.require(font_id)), int(size_px), self.use_raqm)

    def display_text(self, text: str) -> str:
        # Without raqm Pillow neither joins Arabic letters nor reorders RTL runs.
        if self.use_raqm or not has_arabic(text):
            return text
        return get_display(arabic_reshaper.reshape(text))

    def measure(self, font_id: str, size_px: int, text: str) -> float:
        return float(self.font(font_id, size_px).getlength(self.display_text(text)))
