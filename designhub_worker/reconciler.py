import asyncio
import logging
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from designhub.core.config import settings
from designhub.services.cascade import designs_needing_propagation
from designhub_worker.celery_app import celery


log = logging.getLogger(__name__)


async def _tick() -> int:
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as db:
        design_ids = await designs_needing_propagation(db, limit=settings.propagation_batch_size)

    await engine.dispose()

    if not design_ids:
        return 0

    log.info("tick: enqueueing propagation for %d design(s)", len(design_ids))
    for design_id in design_ids:
        celery.send_task("designhub_worker.tasks.propagate_design", args=[design_id], queue="cascade")

    return len(design_ids)


async def main():
    celery.connection().ensure_connection(max_retries=3)

    logging.basicConfig(level=logging.INFO)
    log.info("reconciler: started")
    while True:
        try:
            await _tick()
        except Exception:
            log.exception("reconciler: tick crashed")
        await asyncio.sleep(settings.reconcile_poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())
