from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.models.audit_log import AuditLog


async def audit(
    db: AsyncSession,
    *,
    actor_id: str | None,
    action: str,
    target_type: str | None = None,
    target_id: str | None = None,
    detail: dict | None = None,
) -> AuditLog:
    """Queue an audit row in the current transaction; it lands with the caller's commit."""
    entry = AuditLog(actor_id=actor_id, action=action, target_type=target_type, target_id=target_id, detail=detail or {})
    db.add(entry)
    return entry


async def history_for(db: AsyncSession, *, target_type: str, target_id: str, limit: int = 50) -> list[AuditLog]:
    with storage_errors("audit history"):
        stmt = (
            select(AuditLog)
            .where(AuditLog.target_type == target_type, AuditLog.target_id == target_id)
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all())
