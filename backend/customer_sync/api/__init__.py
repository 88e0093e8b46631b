from fastapi import APIRouter

from .activities import router as activities_router
from .customers import router as customers_router
from .devices import router as devices_router
from .tokens import router as tokens_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(customers_router)
api_router.include_router(devices_router)
api_router.include_router(activities_router)
api_router.include_router(tokens_router)
