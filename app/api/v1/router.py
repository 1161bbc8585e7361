from fastapi import APIRouter
from app.api.v1 import health, auth, users, products, comments, notifications, search_history, diagnostics
from app.core.config import settings

api_router = APIRouter(prefix=settings.API_V1_PREFIX)

api_router.include_router(health.router, tags=['health'])
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(products.router)
api_router.include_router(comments.router)
api_router.include_router(notifications.router)
api_router.include_router(search_history.router)
api_router.include_router(diagnostics.router)
