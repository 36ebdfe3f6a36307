import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from designhub_worker.celery_app import celery
from designhub.core.config import settings
from designhub.core.errors import DesignNotFound, InvalidTransition, StorageUnavailable
import designhub.models  # noqa: F401  # ensures Models are registered
from designhub.services.cascade import CascadeReport, propagate_decision
from designhub.services.retry import propagation_countdown


log = logging.getLogger(__name__)


async def _propagate_design(design_id: str) -> CascadeReport:
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)
    try:
        async with Session() as db:
            report = await propagate_decision(db, design_id=design_id)
            await db.commit()
            return report
    finally:
        await engine.dispose()


@celery.task(name="designhub_worker.tasks.propagate_design", bind=True, max_retries=5)
def propagate_design(self, design_id: str) -> dict:
    try:
        report = asyncio.run(_propagate_design(design_id))
    except (DesignNotFound, InvalidTransition) as e:
        # nothing to propagate; retrying will not change that
        log.warning("propagate %s skipped: %s", design_id, e)
        return {"design_id": design_id, "skipped": str(e)}
    except (StorageUnavailable, SQLAlchemyError) as e:
        raise self.retry(exc=e, countdown=propagation_countdown(self.request.retries))

    failed = [f.listing_id for f in report.failures]
    if failed:
        # listings that failed stay eligible; the next run picks them up
        log.warning("propagate %s: %d listing(s) failed, retrying", design_id, len(failed))
        raise self.retry(countdown=propagation_countdown(self.request.retries))

    return {
        "design_id": design_id,
        "published": report.published_count,
        "draft": report.draft_count,
        "rejected": report.rejected_count,
        "skipped": report.skipped_count,
    }
