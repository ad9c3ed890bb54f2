import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from resumefit.core.session_store import clear_sessions, purge_expired_sessions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = purge_expired_sessions()
                if deleted:
                    logger.info("editor_session_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover
                logger.warning("editor_session_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=300)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
    clear_sessions()
