from fastapi import APIRouter

from fileshare.api.v1.auth import router as auth_router
from fileshare.api.v1.files import router as files_router

router = APIRouter()
router.include_router(auth_router)
router.include_router(files_router)
