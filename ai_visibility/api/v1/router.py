from fastapi import APIRouter

from ai_visibility.api.v1.crawls import router as crawls_router
from ai_visibility.api.v1.metrics import router as metrics_router
from ai_visibility.api.v1.processing import router as processing_router
from ai_visibility.api.v1.queries import router as queries_router
from ai_visibility.api.v1.settings import router as settings_router

api_v1_router = APIRouter(prefix="/api/v1")
api_v1_router.include_router(settings_router)
api_v1_router.include_router(queries_router)
api_v1_router.include_router(processing_router)
api_v1_router.include_router(crawls_router)
api_v1_router.include_router(metrics_router)
