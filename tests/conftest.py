import json
import os
import tempfile
from pathlib import Path

# Settings are read at import time; point them at a throwaway tree first.
os.environ.setdefault("AYAH_VIDEO_DATA_DIR", tempfile.mkdtemp(prefix="ayah-video-tests-"))
os.environ.setdefault("AYAH_VIDEO_CLEANUP_INTERVAL_MINUTES", "0")

import httpx  # noqa: E402
import pytest  # noqa: E402
from PIL import ImageFont  # noqa: E402

from ayah_video.core.config import settings  # noqa: E402
from ayah_video.services.font_registry import FontRegistry  # noqa: E402

ARABIC = {
    1: "بِسْمِ ٱللَّهِ ٱلرَّحْمَٰنِ ٱلرَّحِيمِ",
    2: "ٱلْحَمْدُ لِلَّهِ رَبِّ ٱلْعَٰلَمِينَ",
    3: "ٱلرَّحْمَٰنِ ٱلرَّحِيمِ",
}
ENGLISH = {
    1: "In the name of Allah, the Entirely Merciful, the Especially Merciful.",
    2: "[All] praise is [due] to Allah, Lord of the worlds -",
    3: "The Entirely Merciful, the Especially Merciful,",
}


def fake_measure(font_id: str, size_px: int, text: str) -> float:
    return len(text) * size_px * 0.5


def _corpus_payload(texts: dict[int, str]) -> dict:
    return {
        "code": 200,
        "data": {
            "surahs": [
                {
                    "number": 1,
                    "name": "سُورَةُ ٱلْفَاتِحَةِ",
                    "englishName": "Al-Faatiha",
                    "ayahs": [{"number": n, "numberInSurah": n, "text": text} for n, text in texts.items()],
                }
            ]
        },
    }


class FakeFonts(FontRegistry):
    """Every configured font is available and drawn with Pillow's bundled face."""

    def resolve(self):
        self._available = {font_id: True for font_id in self.font_files}
        return self._available

    def require(self, font_id: str) -> Path:
        if font_id not in self.font_files:
            return super().require(font_id)
        return self.fonts_dir / self.font_files[font_id]

    def font(self, font_id: str, size_px: int):
        self.require(font_id)
        return ImageFont.load_default(size=size_px)

    def display_text(self, text: str) -> str:
        return text

    def measure(self, font_id: str, size_px: int, text: str) -> float:
        return fake_measure(font_id, size_px, text)


class FakeTranscoder:
    def __init__(self, durations: dict[str, float] | None = None) -> None:
        self.durations = durations or {}
        self.plans = []
        self.options = []
        self.compose_error: Exception | None = None

    async def probe_duration(self, path: Path) -> float:
        return self.durations.get(path.name, 2.0)

    async def concat_audio(self, paths, output: Path) -> Path:
        output.write_bytes(b"".join(Path(path).read_bytes() for path in paths))
        return output

    async def compose(self, plan, output: Path, output_options) -> Path:
        if self.compose_error is not None:
            output.write_bytes(b"partial")
            raise self.compose_error
        self.plans.append(plan)
        self.options.append(tuple(output_options))
        output.write_bytes(b"mp4")
        return output

    async def extract_thumbnail(self, video: Path, output: Path, at_seconds: float = 2.0) -> Path:
        output.write_bytes(b"jpeg")
        return output


@pytest.fixture
def measure():
    return fake_measure


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    return tmp_path


@pytest.fixture
def corpus_files(tmp_path):
    quran_dir = tmp_path / "quran"
    quran_dir.mkdir(parents=True, exist_ok=True)
    arabic = quran_dir / "quran-uthmani.json"
    english = quran_dir / "en.sahih.json"
    arabic.write_text(json.dumps(_corpus_payload(ARABIC), ensure_ascii=False), encoding="utf-8")
    english.write_text(json.dumps(_corpus_payload(ENGLISH)), encoding="utf-8")
    return arabic, english


@pytest.fixture
def fake_fonts(tmp_path):
    fonts = FakeFonts(fonts_dir=tmp_path / "fonts")
    fonts.resolve()
    return fonts


@pytest.fixture
def fake_transcoder():
    return FakeTranscoder(
        {"audio_001001.mp3": 3.0, "audio_001002.mp3": 4.2, "audio_001003.mp3": 2.8},
    )


@pytest.fixture
def recitation_transport():
    """Serves a few bytes for every verse except those listed in `missing`."""

    def build(missing: set[str] = frozenset()) -> httpx.MockTransport:
        def handler(request: httpx.Request) -> httpx.Response:
            name = request.url.path.rsplit("/", 1)[-1]
            if name in missing:
                return httpx.Response(404)
            return httpx.Response(200, content=b"ID3" + name.encode())

        return httpx.MockTransport(handler)

    return build
