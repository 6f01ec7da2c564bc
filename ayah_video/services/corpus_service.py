from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from ayah_video.core.config import settings
from ayah_video.core.errors import ContentLookupError, InputValidationError
from ayah_video.core.storage import read_json
from ayah_video.models.domain import VerseContent, VerseRef, expand_range
from ayah_video.services.arabic_text import normalize_arabic

logger = logging.getLogger(__name__)


def _extract_surahs(payload: object) -> list[dict]:
    if not isinstance(payload, dict):
        return []
    if isinstance(payload.get("surahs"), list):
        return payload.get("surahs", [])
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("surahs"), list):
        return data.get("surahs", [])
    return []


def _index_ayahs(surahs: list[dict]) -> dict[tuple[int, int], str]:
    texts: dict[tuple[int, int], str] = {}
    for position, surah in enumerate(surahs, start=1):
        surah_num = int(surah.get("number", position) or position)
        for ayah_position, ayah in enumerate(surah.get("ayahs", []), start=1):
            ay_num = int(ayah.get("numberInSurah", ayah_position) or ayah_position)
            texts[(surah_num, ay_num)] = str(ayah.get("text", "")).strip()
    return texts


class CorpusService:
    """Read-only verse lookup over the Uthmani text and the English translation."""

    def __init__(self, arabic_file: Path | None = None, translation_file: Path | None = None) -> None:
        self.arabic_file = arabic_file or settings.quran_arabic_file
        self.translation_file = translation_file or settings.quran_translation_file

    @cached_property
    def _arabic(self) -> tuple[dict[tuple[int, int], str], dict[int, str]]:
        surahs = _extract_surahs(read_json(self.arabic_file, default={}))
        if not surahs:
            raise ContentLookupError(f"Quran text not available at {self.arabic_file}.")
        names: dict[int, str] = {}
        for position, surah in enumerate(surahs, start=1):
            surah_num = int(surah.get("number", position) or position)
            names[surah_num] = str(surah.get("englishName") or surah.get("name") or f"Surah {surah_num}").strip()
        logger.info("Loaded Arabic corpus: %d surahs", len(surahs))
        return _index_ayahs(surahs), names

    @cached_property
    def _translation(self) -> dict[tuple[int, int], str]:
        surahs = _extract_surahs(read_json(self.translation_file, default={}))
        if not surahs:
            raise ContentLookupError(f"Translation not available at {self.translation_file}.")
        return _index_ayahs(surahs)

    def surah_name(self, surah_number: int) -> str:
        _, names = self._arabic
        if surah_number not in names:
            raise ContentLookupError(f"Surah {surah_number} not found.")
        return names[surah_number]

    def get_verse(self, ref: VerseRef) -> VerseContent:
        texts, _ = self._arabic
        arabic = texts.get((ref.surah_number, ref.ayah_number), "")
        if not arabic:
            raise ContentLookupError(f"Verse {ref.label()} not found.")
        translation = self._translation.get((ref.surah_number, ref.ayah_number), "")
        if not translation:
            raise ContentLookupError(f"Translation for verse {ref.label()} not found.")
        return VerseContent(
            ref=ref,
            arabic_text=normalize_arabic(arabic),
            translation_text=translation,
            surah_name=self.surah_name(ref.surah_number),
        )

    def get_range(self, surah_number: int, ayah_start: int, ayah_end: int | None = None) -> list[VerseContent]:
        if ayah_end is not None and ayah_end < ayah_start:
            raise InputValidationError(f"Ayah range {ayah_start}-{ayah_end} is reversed.")
        verses = [self.get_verse(ref) for ref in expand_range(surah_number, ayah_start, ayah_end)]
        logger.info("Verse range %d:%d-%d loaded: %d verses", surah_number, ayah_start, ayah_end or ayah_start, len(verses))
        return verses
