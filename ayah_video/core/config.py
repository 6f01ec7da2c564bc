from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AYAH_VIDEO_", extra="ignore")

    data_dir: Path = Path("data")
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    audio_base_url: str = "https://everyayah.com/data"
    audio_timeout_seconds: float = 30.0
    audio_fetch_concurrency: int = 1

    retention_hours: float = 24.0
    cleanup_interval_minutes: float = 60.0
    preview_seconds: float = 3.0
    preview_keep: int = 10

    font_files: dict[str, str] = {
        "uthmanic_hafs": "UthmanicHafs1Ver18.ttf",
        "al_mushaf": "AlMushafQuran.ttf",
        "taha_naskh": "UtmanTahaNaskh.ttf",
        "latin": "DejaVuSans.ttf",
        "latin_bold": "DejaVuSans-Bold.ttf",
    }
    default_arabic_font: str = "uthmanic_hafs"
    translation_font: str = "latin"
    watermark_font: str = "latin_bold"
    watermark_text: str = "I made this on SakinahTimes.com"

    @property
    def generated_dir(self) -> Path:
        return self.data_dir / "generated"

    @property
    def previews_dir(self) -> Path:
        return self.data_dir / "previews"

    @property
    def tmp_dir(self) -> Path:
        return self.data_dir / "tmp"

    @property
    def backgrounds_dir(self) -> Path:
        return self.data_dir / "backgrounds"

    @property
    def thumbnails_dir(self) -> Path:
        return self.data_dir / "thumbnails"

    @property
    def fonts_dir(self) -> Path:
        return self.data_dir / "fonts"

    @property
    def quran_arabic_file(self) -> Path:
        return self.data_dir / "quran" / "quran-uthmani.json"

    @property
    def quran_translation_file(self) -> Path:
        return self.data_dir / "quran" / "en.sahih.json"


settings = Settings()
