from __future__ import annotations

import hashlib
import json
from typing import Any

from fastapi import Header, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from designhub.core.db import storage_errors
from designhub.core.errors import IdempotencyConflict
from designhub.models.idempotency import IdempotencyKey

MAX_KEY_LENGTH = 200


def fingerprint_request(path: str, body: dict[str, Any]) -> str:
    payload = json.dumps({"path": path, "body": body}, sort_keys=True, separators=(",", ":"))
    return "sha256:" + hashlib.sha256(payload.encode("utf-8")).hexdigest()


async def require_idempotency_key(idempotency_key: str | None = Header(default=None)) -> str:
    key = (idempotency_key or "").strip()
    if not key:
        raise HTTPException(status_code=400, detail="Missing Idempotency-Key header")
    if len(key) > MAX_KEY_LENGTH:
        raise HTTPException(status_code=400, detail="Idempotency-Key too long")
    return key


async def _find(db: AsyncSession, vendor_id: str, key: str) -> IdempotencyKey | None:
    with storage_errors("idempotency lookup"):
        stmt = select(IdempotencyKey).where(IdempotencyKey.vendor_id == vendor_id, IdempotencyKey.key == key)
        return (await db.execute(stmt)).scalar_one_or_none()


def _replay(row: IdempotencyKey, request_hash: str) -> dict[str, Any]:
    if row.request_hash != request_hash:
        raise IdempotencyConflict(
            "Idempotency-Key was already used for a different submission",
            details=[{"key": row.key}],
        )
    if not row.response:
        # reserved but not yet answered: the first attempt is still in flight
        raise IdempotencyConflict("Submission with this Idempotency-Key is already in progress")
    return row.response


async def reserve_submission(
    db: AsyncSession,
    *,
    vendor_id: str,
    key: str,
    request_path: str,
    request_body: dict[str, Any],
) -> dict[str, Any] | None:
    """
    Claim (vendor_id, key) for this request.

    Returns the stored response when the same request was already completed,
    otherwise None and the caller proceeds. A different request under the
    same key raises IdempotencyConflict.
    """
    request_hash = fingerprint_request(request_path, request_body)

    existing = await _find(db, vendor_id, key)
    if existing is not None:
        return _replay(existing, request_hash)

    try:
        with storage_errors("idempotency reserve"):
            async with db.begin_nested():
                db.add(IdempotencyKey(vendor_id=vendor_id, key=key, request_hash=request_hash, response={}))
                await db.flush()
    except IntegrityError:
        # a concurrent retry reserved it first
        winner = await _find(db, vendor_id, key)
        if winner is None:
            raise
        return _replay(winner, request_hash)
    return None


async def remember_response(db: AsyncSession, *, vendor_id: str, key: str, response: dict[str, Any]) -> None:
    row = await _find(db, vendor_id, key)
    if row is None:
        raise IdempotencyConflict("Idempotency reservation disappeared", details=[{"key": key}])
    row.response = response
    with storage_errors("idempotency store"):
        await db.flush()
