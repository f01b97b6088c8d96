"""Double-submit cookie CSRF guard.

Safe methods (GET/HEAD/OPTIONS) always pass and make sure the client holds a
``_csrf`` cookie; the token is also placed on ``request.state.csrf_token`` so
handlers can hand it to the client. Unsafe methods must echo the cookie value
in the ``x-csrf-token`` header. Tokens live for 24h and are not rotated on use.
"""

from __future__ import annotations

import logging
import secrets
from typing import Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette import status

from estate_api.core.config import Settings

logger = logging.getLogger("estate_api.csrf")

CSRF_COOKIE_NAME = "_csrf"
CSRF_HEADER_NAME = "x-csrf-token"
TOKEN_BYTES = 32
TOKEN_MAX_AGE_SECONDS = 24 * 60 * 60
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def generate_csrf_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def set_csrf_cookie(response: Response, token: str, *, secure: bool) -> None:
    # Readable from JS so the SPA can copy it into the header
    response.set_cookie(
        CSRF_COOKIE_NAME,
        token,
        max_age=TOKEN_MAX_AGE_SECONDS,
        httponly=False,
        secure=secure,
        samesite="strict",
    )


def tokens_match(cookie_token: Optional[str], header_token: Optional[str]) -> bool:
    if not cookie_token or not header_token:
        return False
    return secrets.compare_digest(cookie_token.encode(), header_token.encode())


def ensure_csrf_token(request: Request, response: Response, *, secure: bool) -> str:
    """Return the caller's token, issuing a cookie on ``response`` if there is none."""
    token = getattr(request.state, "csrf_token", None) or request.cookies.get(
        CSRF_COOKIE_NAME
    )
    if not token:
        token = generate_csrf_token()
        set_csrf_cookie(response, token, secure=secure)
    return token


def create_csrf_middleware(settings: Settings, path_prefix: str = "/api"):
    secure = settings.is_production

    async def csrf_middleware(request: Request, call_next):  # type: ignore
        if not request.url.path.startswith(path_prefix):
            return await call_next(request)

        if request.method in SAFE_METHODS:
            token = request.cookies.get(CSRF_COOKIE_NAME)
            issued = False
            if not token:
                token = generate_csrf_token()
                issued = True
            request.state.csrf_token = token
            response = await call_next(request)
            if issued:
                set_csrf_cookie(response, token, secure=secure)
            return response

        cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
        header_token = request.headers.get(CSRF_HEADER_NAME)
        if not tokens_match(cookie_token, header_token):
            logger.info(
                "CSRF validation failed: path=%s cookie=%s header=%s",
                request.url.path,
                bool(cookie_token),
                bool(header_token),
            )
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content={"message": "Invalid CSRF token"},
            )
        return await call_next(request)

    return csrf_middleware
