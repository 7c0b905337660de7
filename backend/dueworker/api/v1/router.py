"""Aggregate router for API v1."""
from fastapi import APIRouter

from .scheduler import router as scheduler_router

router = APIRouter()
router.include_router(scheduler_router)
