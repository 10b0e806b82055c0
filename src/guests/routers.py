from fastapi import APIRouter

from .features.get_guest_info.router import router as get_guest_info_router

router = APIRouter()

router.include_router(get_guest_info_router)
