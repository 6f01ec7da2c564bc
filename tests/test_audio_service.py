import asyncio

import httpx
import pytest

from ayah_video.core.errors import AssetFetchError, InputValidationError
from ayah_video.core.storage import scratch_dir
from ayah_video.models.domain import VerseRef
from ayah_video.services.audio_service import RECITERS, RecitationAudioService, list_reciters, verse_audio_url


def ref(ayah: int, surah: int = 1) -> VerseRef:
    return VerseRef(surah_number=surah, ayah_number=ayah)


async def _probe(path):
    return 1.0 + len(path.name) / 100


def test_catalogue_lists_every_reciter():
    rows = list_reciters()
    assert {row["id"] for row in rows} == set(RECITERS)
    assert all(row["name"] for row in rows)


def test_audio_url_is_zero_padded():
    service = RecitationAudioService(base_url="https://audio.test/data/")
    assert service.audio_url("alafasy", ref(7, surah=2)) == "https://audio.test/data/Alafasy_128kbps/002007.mp3"
    asyncio.run(service.close())


def test_unknown_reciter_rejected():
    service = RecitationAudioService()
    with pytest.raises(InputValidationError):
        service.audio_url("nobody", ref(1))
    asyncio.run(service.close())


def test_fetch_writes_file(tmp_path, recitation_transport):
    async def run():
        async with RecitationAudioService(base_url="https://audio.test", transport=recitation_transport()) as audio:
            return await audio.fetch("husary", ref(1), tmp_path / "a.mp3")

    path = asyncio.run(run())
    assert path.read_bytes() == b"ID3001001.mp3"


def test_missing_recording_raises(tmp_path, recitation_transport):
    async def run():
        async with RecitationAudioService(base_url="https://audio.test", transport=recitation_transport({"001002.mp3"})) as audio:
            await audio.fetch_range("husary", [ref(1), ref(2), ref(3)], tmp_path, _probe)

    with pytest.raises(AssetFetchError):
        asyncio.run(run())


def test_server_error_raises(tmp_path):
    transport = httpx.MockTransport(lambda request: httpx.Response(503))

    async def run():
        async with RecitationAudioService(base_url="https://audio.test", transport=transport) as audio:
            await audio.fetch("husary", ref(1), tmp_path / "a.mp3")

    with pytest.raises(AssetFetchError, match="HTTP 503"):
        asyncio.run(run())


def test_network_timeout_raises(tmp_path):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    async def run():
        async with RecitationAudioService(base_url="https://audio.test", transport=httpx.MockTransport(handler)) as audio:
            await audio.fetch("husary", ref(1), tmp_path / "a.mp3")

    with pytest.raises(AssetFetchError):
        asyncio.run(run())


def test_time_ceiling_applies_per_verse(tmp_path):
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, content=b"late")

    async def run():
        async with RecitationAudioService(
            base_url="https://audio.test", timeout_seconds=0.05, transport=httpx.MockTransport(handler)
        ) as audio:
            await audio.fetch("husary", ref(1), tmp_path / "a.mp3")

    with pytest.raises(AssetFetchError, match="Timed out"):
        asyncio.run(run())


@pytest.mark.parametrize("concurrency", [1, 3])
def test_fetch_range_keeps_verse_order(tmp_path, recitation_transport, concurrency):
    async def run():
        async with RecitationAudioService(
            base_url="https://audio.test", concurrency=concurrency, transport=recitation_transport()
        ) as audio:
            return await audio.fetch_range("alafasy", [ref(1), ref(2), ref(3), ref(4)], tmp_path, _probe)

    segments = asyncio.run(run())
    assert [segment.ref.ayah_number for segment in segments] == [1, 2, 3, 4]
    assert all(segment.path.exists() for segment in segments)
    assert all(segment.duration_seconds > 1 for segment in segments)


def test_failed_verse_cancels_concurrent_siblings(tmp_path):
    async def handler(request):
        if request.url.path.endswith("001001.mp3"):
            return httpx.Response(404)
        await asyncio.sleep(0.2)
        return httpx.Response(200, content=b"ID3")

    async def run():
        with scratch_dir(tmp_path, "request") as work_dir:
            async with RecitationAudioService(
                base_url="https://audio.test", concurrency=2, transport=httpx.MockTransport(handler)
            ) as audio:
                with pytest.raises(AssetFetchError):
                    await audio.fetch_range("husary", [ref(n) for n in range(1, 5)], work_dir, _probe)
        leftover = [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]
        await asyncio.sleep(0.3)
        return leftover

    assert asyncio.run(run()) == []
    assert not (tmp_path / "request").exists()


def test_verse_audio_url_uses_configured_mirror():
    assert verse_audio_url("husary", ref(255, surah=2)).endswith("/Husary_128kbps/002255.mp3")
    with pytest.raises(InputValidationError):
        verse_audio_url("nobody", ref(1))
