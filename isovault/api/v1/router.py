# isovault/api/v1/router.py
from fastapi import APIRouter
from slowapi import Limiter

from isovault.api.v1.endpoints.health import router as health_router
from isovault.api.v1.endpoints.messages import build_messages_router
from isovault.core.config import Settings


def build_api_router_v1(limiter: Limiter, settings: Settings) -> APIRouter:
    api_router_v1 = APIRouter(prefix="/api/v1")

    api_router_v1.include_router(health_router)
    api_router_v1.include_router(build_messages_router(limiter, settings.RATE_LIMIT))
    return api_router_v1
