"""
Session middleware for protected pages.

Requests to a protected path must carry a valid `token` cookie. Without one
(or with an expired or tampered one) the caller is redirected to the login
page with the original path in `redirectTo`. With one, the decoded claims are
handed to the downstream handler through the request itself (an `x-user`
header and request.state.user); nothing is kept between requests.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Optional
from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from recipe_api.core.security import decode_access_token

logger = logging.getLogger(__name__)

STATIC_PREFIXES = ("/_next/", "/static/", "/images/", "/favicon")
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".svg", ".webp", ".ico")
USER_HEADER = "x-user"


@dataclass(frozen=True)
class SessionDecision:
    forward: bool
    claims: Optional[dict] = None


def is_static_asset(path: str) -> bool:
    return path.startswith(STATIC_PREFIXES) or path.lower().endswith(IMAGE_EXTENSIONS)


def is_protected(path: str, protected_paths: Iterable[str]) -> bool:
    for protected in protected_paths:
        if protected == "/" or path == protected or path.startswith(protected + "/"):
            return True
    return False


def resolve_session(
    path: str,
    token: Optional[str],
    secret: str,
    algorithm: str,
    protected_paths: Iterable[str],
) -> SessionDecision:
    """Decide whether a request may proceed; depends only on its arguments and the clock"""
    if is_static_asset(path) or not is_protected(path, protected_paths):
        return SessionDecision(forward=True)

    claims = decode_access_token(token, secret, algorithm)
    if claims is None:
        return SessionDecision(forward=False)
    return SessionDecision(forward=True, claims=claims)


def login_redirect_url(login_path: str, original_path: str) -> str:
    return f"{login_path}?{urlencode({'redirectTo': original_path})}"


class SessionMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, settings):
        super().__init__(app)
        self.settings = settings
        self.protected_paths = settings.get_protected_paths()

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        decision = resolve_session(
            path,
            request.cookies.get("token"),
            self.settings.JWT_SECRET,
            self.settings.JWT_ALGORITHM,
            self.protected_paths,
        )

        if not decision.forward:
            # Missing and invalid tokens get the same redirect
            logger.info(f"Redirecting unauthenticated request for {path} to login")
            return RedirectResponse(login_redirect_url(self.settings.LOGIN_PATH, path))

        # A client-supplied x-user header is never trusted; only verified claims are forwarded
        headers = [(k, v) for k, v in request.scope["headers"] if k.lower() != USER_HEADER.encode()]
        if decision.claims is not None:
            request.state.user = decision.claims
            headers.append((USER_HEADER.encode(), json.dumps(decision.claims).encode()))
        request.scope["headers"] = headers

        return await call_next(request)
