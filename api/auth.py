"""
Session API

Identity itself is handled upstream. This router only lets a client
recover from a stale session by clearing its cookies.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from contentflow.utils.config import get_settings

from api.middleware import expire_session_cookies

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/clear-session")
async def clear_session():
    """Expire all session cookies."""
    response = JSONResponse({"success": True, "message": "Session cleared"})
    expire_session_cookies(response, secure=get_settings().ENVIRONMENT == "production")
    logger.info("Session cookies cleared")
    return response
