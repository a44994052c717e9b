from fastapi import APIRouter

from enrollment.presentation.routers.health import router as health_router
from enrollment.presentation.routers.v1.auth import router as auth_router

api = APIRouter()
api.include_router(health_router)

# Add all v1 routers here
routers = (auth_router,)
for router in routers:
    api.include_router(router, prefix="/v1")
