from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.config import settings
from designhub.core.db import get_db, storage_errors

router = APIRouter()


@router.get("/health")
async def health() -> dict:
    return {"status": "ok", "service": settings.service_name}


@router.get("/health/ready")
async def ready(db: AsyncSession = Depends(get_db)) -> dict:
    # StorageUnavailable -> 503 through the app error handler
    with storage_errors("readiness probe"):
        await db.execute(text("SELECT 1"))
    return {"status": "ready"}
