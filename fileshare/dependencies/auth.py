from fastapi import HTTPException, Request, status

from fileshare.config import settings
from fileshare.schemas.common import error_detail
from fileshare.services.jwt import TOKEN_SUBJECT, decode_access_token


def require_auth(request: Request) -> None:
    """
    Reject requests without a valid auth cookie.

    The cookie is issued by POST /auth after the shared password is checked.
    """
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    payload = decode_access_token(token) if token else None
    if not payload or payload.get("sub") != TOKEN_SUBJECT:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error_detail("Unauthorized", "Authentication required"),
        )
