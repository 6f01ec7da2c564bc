import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from ayah_video.api.routes import catalog, health, videos
from ayah_video.core.config import settings
from ayah_video.core.logs import configure_logging

logger = logging.getLogger(__name__)


async def _cleanup_loop(interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await asyncio.to_thread(videos.artifacts.cleanup)
        except Exception:
            logger.exception("Scheduled cleanup failed; retrying in %.0fs", interval_seconds)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)
    videos.pipeline.fonts.resolve()
    catalog.fonts.resolve()

    task: asyncio.Task | None = None
    if settings.cleanup_interval_minutes > 0:
        task = asyncio.create_task(_cleanup_loop(settings.cleanup_interval_minutes * 60))
        logger.info("Cleanup scheduled every %.0f minutes", settings.cleanup_interval_minutes)
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


app = FastAPI(title="ayah-video-engine", version="0.1.0", lifespan=lifespan)

app.include_router(health.router)
app.include_router(catalog.router)
app.include_router(videos.router)


def run() -> None:
    uvicorn.run("ayah_video.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
