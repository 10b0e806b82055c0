from fastapi import APIRouter

from .features.get_rsvp.router import router as get_rsvp_router
from .features.submit_rsvp.router import router as submit_rsvp_router

router = APIRouter()

router.include_router(get_rsvp_router)
router.include_router(submit_rsvp_router)
