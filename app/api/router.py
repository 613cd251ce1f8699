from fastapi import APIRouter

from app.api.oembed.routes import router as oembed_router

router = APIRouter()
router.include_router(oembed_router)
