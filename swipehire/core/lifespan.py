import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from swipehire.analytics.db import init_db, purge_old_records
from swipehire.core.analysis_store import purge_expired_analyses
from swipehire.core.endpoint_rate_limit import purge_stale_hits

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


def _purge() -> dict[str, int]:
    deleted = purge_old_records()
    deleted["saved_analyses"] = purge_expired_analyses()
    deleted["rate_limit_hits"] = purge_stale_hits()
    return deleted


@asynccontextmanager
async def lifespan(app):
    init_db()
    _purge()

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = _purge()
                if any(deleted.values()):
                    logger.info("retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover - background loop must survive
                logger.warning("retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=PURGE_INTERVAL_S)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
