"""
Error Classification Middleware

Unhandled exceptions are classified by message before a response is
rendered:

- SESSION_KEY_MISMATCH: the identity provider rotated its signing keys
  and the caller's session token can no longer be verified. The session
  cookies are expired and the client is sent back to sign-in.
- STREAM_UNAVAILABLE: the realtime channel failed. Clients fall back to
  polling, so this is logged quietly.
- GENERIC: everything else.
"""

import logging
from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

SESSION_COOKIES = [
    "__session",
    "__client_uat",
    "__clerk_db_jwt",
    "__clerk_db_jwt_1",
    "__clerk_db_jwt_2",
    "__clerk_db_jwt_3",
    "__clerk_db_jwt_4",
]

SIGN_IN_REDIRECT = "/sign-in?session=expired"

_SESSION_KEY_MARKERS = (
    "Handshake token verification failed",
    "Unable to find a signing key in JWKS",
    "jwk-kid-mismatch",
)

_STREAM_MARKERS = (
    "[StreamClient]",
    "WebSocket",
    "ws.onerror",
)


class ErrorKind(Enum):
    SESSION_KEY_MISMATCH = "session_key_mismatch"
    STREAM_UNAVAILABLE = "stream_unavailable"
    GENERIC = "generic"


def classify_error(message: str) -> ErrorKind:
    """Map an error message to the kind of failure it signals."""
    message = message or ""

    if any(marker in message for marker in _SESSION_KEY_MARKERS):
        return ErrorKind.SESSION_KEY_MISMATCH
    if "JWKS" in message and ("kid=" in message or "signing key" in message):
        return ErrorKind.SESSION_KEY_MISMATCH

    if any(marker in message for marker in _STREAM_MARKERS):
        return ErrorKind.STREAM_UNAVAILABLE

    return ErrorKind.GENERIC


def expire_session_cookies(response, secure: bool = False) -> None:
    """Expire every identity-provider session cookie on a response."""
    for name in SESSION_COOKIES:
        response.set_cookie(
            name,
            "",
            max_age=0,
            expires=0,
            path="/",
            httponly=True,
            secure=secure,
            samesite="lax",
        )


class ErrorClassificationMiddleware(BaseHTTPMiddleware):
    """
    Starlette middleware turning unhandled exceptions into JSON responses.

    Workflow errors and HTTPExceptions are rendered by the app's own
    handlers and never reach this middleware.
    """

    def __init__(self, app, secure_cookies: bool = False):
        super().__init__(app)
        self.secure_cookies = secure_cookies

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            kind = classify_error(str(e))

            if kind == ErrorKind.SESSION_KEY_MISMATCH:
                logger.warning(f"Session signing key mismatch on {request.url.path}, clearing session")
                response = JSONResponse(
                    status_code=401,
                    content={
                        "error": "Session expired. Please sign in again.",
                        "redirect": SIGN_IN_REDIRECT,
                    },
                )
                expire_session_cookies(response, secure=self.secure_cookies)
                return response

            if kind == ErrorKind.STREAM_UNAVAILABLE:
                logger.warning(f"Realtime stream unavailable on {request.url.path}: {message}")
            else:
                logger.exception(f"Unhandled error on {request.method} {request.url.path}: {message}")

            return JSONResponse(status_code=500, content={"error": "Internal server error"})
