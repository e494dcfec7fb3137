import logging
from fastapi import Depends, Query, Request
from fastapi.security import OAuth2PasswordBearer
from recipe_api.core.config import Settings
from recipe_api.core.errors import AuthenticationError
from recipe_api.core.security import decode_access_token
from recipe_api.services.recipe_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"

# OAuth2 password bearer scheme - extracts token from Authorization header
# auto_error=False lets the cookie act as a fallback credential
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/authorisation/login", auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def verify_session(token: str | None, settings: Settings) -> dict:
    """
    Decode a session token or raise 401.

    Absent, expired and tampered tokens all produce the same error so callers
    cannot tell which part of the credential was wrong.
    """
    claims = decode_access_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    if claims is None:
        if token:
            logger.warning("Rejected invalid or expired session token")
        raise AuthenticationError(headers={"WWW-Authenticate": "Bearer"})
    return claims


async def get_current_claims(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_settings),
) -> dict:
    """
    Claims of the caller's session token.

    The Authorization header wins; the HTTP-only cookie set at login is used
    when no bearer token is sent.
    """
    return verify_session(token or request.cookies.get(TOKEN_COOKIE), settings)


class PaginationParams:
    """Offset/limit pagination: page is 1-based, limit defaults to 20"""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
