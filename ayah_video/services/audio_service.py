"""Per-verse recitation audio from everyayah-style mirrors.

Each verse is one MP3 at ``{base}/{reciter_dir}/{SSS}{AAA}.mp3``. Any failure
(HTTP error, network error, or the per-verse time ceiling) aborts the whole
range: a video with a missing verse is never produced.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

import httpx

from ayah_video.core.config import settings
from ayah_video.core.errors import AssetFetchError, InputValidationError
from ayah_video.core.storage import ensure_dir
from ayah_video.models.domain import AudioSegment, VerseRef

logger = logging.getLogger(__name__)

ProbeFn = Callable[[Path], Awaitable[float]]

# reciter id -> (display name, everyayah directory)
RECITERS: dict[str, tuple[str, str]] = {
    "abdul_basit": ("Abdul Basit Abdul Samad", "Abdul_Basit_Murattal_192kbps"),
    "alafasy": ("Mishary Rashid Alafasy", "Alafasy_128kbps"),
    "sudais": ("Abdur-Rahman As-Sudais", "Abdurrahmaan_As-Sudais_192kbps"),
    "abdullah_basfar": ("Abdullah Basfar", "Abdullah_Basfar_192kbps"),
    "abu_bakr_shatri": ("Abu Bakr Ash-Shaatree", "Abu_Bakr_Ash-Shaatree_128kbps"),
    "ahmed_neana": ("Ahmed Neana", "Ahmed_Neana_128kbps"),
    "ahmed_ajamy": ("Ahmed ibn Ali al-Ajamy", "Ahmed_ibn_Ali_al-Ajamy_128kbps_ketaballah.net"),
    "akram_alaqimy": ("Akram AlAlaqimy", "Akram_AlAlaqimy_128kbps"),
    "ali_hajjaj": ("Ali Hajjaj AlSuesy", "Ali_Hajjaj_AlSuesy_128kbps"),
    "hani_rifai": ("Hani Rifai", "Hani_Rifai_192kbps"),
    "hudhaify": ("Ali Al-Hudhaify", "Hudhaify_128kbps"),
    "khalid_qahtani": ("Khaalid Abdullaah al-Qahtaanee", "Khaalid_Abdullaah_al-Qahtaanee_192kbps"),
    "minshawy": ("Muhammad Siddiq Al-Minshawi", "Minshawy_Murattal_128kbps"),
    "tablaway": ("Mohammad al-Tablaway", "Mohammad_al_Tablaway_128kbps"),
    "muhsin_qasim": ("Muhsin Al Qasim", "Muhsin_Al_Qasim_192kbps"),
    "abdullaah_juhaynee": ("Abdullaah 3awwaad Al-Juhaynee", "Abdullaah_3awwaad_Al-Juhaynee_128kbps"),
    "husary": ("Mahmoud Khalil Al-Husary", "Husary_128kbps"),
    "ghamadi": ("Saad Al-Ghamdi", "Ghamadi_40kbps"),
    "shuraim": ("Saud Al-Shuraim", "Saood_ash-Shuraym_128kbps"),
}


def list_reciters() -> list[dict]:
    return [{"id": reciter_id, "name": name, "language": "Arabic"} for reciter_id, (name, _) in RECITERS.items()]


def validate_reciter(reciter_id: str) -> str:
    if reciter_id not in RECITERS:
        raise InputValidationError(f"Unknown reciter: {reciter_id}")
    return RECITERS[reciter_id][1]


def verse_audio_url(reciter_id: str, ref: VerseRef, base_url: str | None = None) -> str:
    directory = validate_reciter(reciter_id)
    base = (base_url or settings.audio_base_url).rstrip("/")
    return f"{base}/{directory}/{ref.surah_number:03d}{ref.ayah_number:03d}.mp3"


class RecitationAudioService:
    """Async downloader for verse recordings.

    Usage::

        async with RecitationAudioService() as audio:
            segments = await audio.fetch_range("alafasy", refs, work_dir, probe)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
        concurrency: int | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.audio_base_url).rstrip("/")
        self.timeout_seconds = timeout_seconds or settings.audio_timeout_seconds
        self.concurrency = max(1, concurrency or settings.audio_fetch_concurrency)
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds, connect=10.0),
            follow_redirects=True,
            transport=transport,
        )

    async def __aenter__(self) -> RecitationAudioService:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    def audio_url(self, reciter_id: str, ref: VerseRef) -> str:
        return verse_audio_url(reciter_id, ref, self.base_url)

    async def _download(self, url: str, dest: Path) -> None:
        async with self._client.stream("GET", url) as response:
            if response.status_code == 404:
                raise AssetFetchError(f"Recitation not found: {url}")
            response.raise_for_status()
            with open(dest, "wb") as f:
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    f.write(chunk)

    async def fetch(self, reciter_id: str, ref: VerseRef, dest: Path) -> Path:
        url = self.audio_url(reciter_id, ref)
        ensure_dir(dest.parent)
        logger.debug("Downloading audio for verse %s from %s", ref.label(), url)
        try:
            await asyncio.wait_for(self._download(url, dest), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise AssetFetchError(f"Timed out after {self.timeout_seconds:.0f}s fetching verse {ref.label()}.") from exc
        except httpx.HTTPStatusError as exc:
            raise AssetFetchError(
                f"HTTP {exc.response.status_code} fetching verse {ref.label()}."
            ) from exc
        except httpx.HTTPError as exc:
            raise AssetFetchError(f"Network error fetching verse {ref.label()}: {exc}") from exc
        if not dest.exists() or dest.stat().st_size == 0:
            raise AssetFetchError(f"Empty recitation for verse {ref.label()}.")
        return dest

    async def _fetch_segment(self, reciter_id: str, ref: VerseRef, work_dir: Path, probe: ProbeFn) -> AudioSegment:
        path = await self.fetch(reciter_id, ref, work_dir / f"audio_{ref.surah_number:03d}{ref.ayah_number:03d}.mp3")
        duration = await probe(path)
        logger.info("Verse %s audio duration: %.2fs", ref.label(), duration)
        return AudioSegment(ref=ref, duration_seconds=duration, path=path)

    async def fetch_range(
        self,
        reciter_id: str,
        refs: Sequence[VerseRef],
        work_dir: Path,
        probe: ProbeFn,
    ) -> list[AudioSegment]:
        """Download and probe every verse. Results are always in `refs` order."""
        validate_reciter(reciter_id)
        if self.concurrency == 1:
            return [await self._fetch_segment(reciter_id, ref, work_dir, probe) for ref in refs]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(ref: VerseRef) -> AudioSegment:
            async with semaphore:
                return await self._fetch_segment(reciter_id, ref, work_dir, probe)

        tasks = [asyncio.create_task(bounded(ref)) for ref in refs]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            # No sibling download outlives a failed range.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
