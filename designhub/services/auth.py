import hmac
from dataclasses import dataclass
from fastapi import Depends, Header, HTTPException

from designhub.core.config import settings


@dataclass(frozen=True)
class Actor:
    actor_id: str
    role: str  # "vendor" | "moderator"


async def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str:
    # identity is resolved upstream by the gateway
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-Actor-Id")
    return x_actor_id.strip()


async def require_vendor(vendor_id: str, actor_id: str = Depends(get_actor_id)) -> Actor:
    if actor_id != vendor_id:
        raise HTTPException(status_code=403, detail="Vendor cannot act for another vendor")
    return Actor(actor_id=actor_id, role="vendor")


async def require_moderator(
    x_moderator_key: str | None = Header(default=None),
    actor_id: str = Depends(get_actor_id),
) -> Actor:
    expected = settings.moderator_key.get_secret_value()
    if not x_moderator_key or not hmac.compare_digest(x_moderator_key, expected):
        raise HTTPException(status_code=403, detail="Moderator key required")
    return Actor(actor_id=actor_id, role="moderator")
