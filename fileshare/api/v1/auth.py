from fastapi import APIRouter, Form, HTTPException, Response, status

from fileshare.config import settings
from fileshare.schemas.common import APIResponse, error_detail
from fileshare.services.auth import verify_share_password
from fileshare.services.jwt import create_access_token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("", response_model=APIResponse[None])
def login(response: Response, password: str = Form(...)):
    """
    Exchange the shared password for an auth cookie.

    Raises:
        HTTPException 401: If the password does not match
    """
    if not verify_share_password(password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_detail("Unauthorized", "Invalid password"),
        )

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=create_access_token(),
        max_age=settings.JWT_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="strict",
    )
    return APIResponse(success=True)
