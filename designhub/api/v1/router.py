from fastapi import APIRouter

from designhub.api.v1.endpoints.health import router as health_router
from designhub.api.v1.endpoints.listings import router as listings_router
from designhub.api.v1.endpoints.moderation import router as moderation_router
from designhub.api.v1.endpoints.admin import router as admin_router


router = APIRouter(prefix="/v1")
router.include_router(health_router, tags=["health"])
router.include_router(listings_router, tags=["listings"])
router.include_router(moderation_router, tags=["moderation"])
router.include_router(admin_router, tags=["admin"])
