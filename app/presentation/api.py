from fastapi import APIRouter

from app.presentation.routers.v1.auth import router as auth_router
from app.presentation.routes.health import router as health_router

api = APIRouter()
api.include_router(health_router)

v1 = APIRouter(prefix="/v1")
for router in (auth_router,):
    v1.include_router(router)
api.include_router(v1)
