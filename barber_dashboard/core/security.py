from fastapi import Depends, HTTPException, Request

from barber_dashboard.core.config import settings
from barber_dashboard.core.logger import logger
from barber_dashboard.services.db_service import db_service


async def require_session(request: Request) -> str:
    """
    Route gate for the dashboard API.
    Only checks that the session cookie is present; whether the token is
    still valid is up to the auth provider lookup in `get_owner_id`.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        logger.info(f"🚫 No session cookie for {request.url.path}")
        raise HTTPException(status_code=401, detail="Not signed in")
    return token


async def get_owner_id(token: str = Depends(require_session)) -> str:
    """The signed-in owner's id; every dashboard query is scoped by it."""
    owner_id = await db_service.current_user_id(token)
    if not owner_id:
        raise HTTPException(status_code=401, detail="Session expired. Please sign in again.")
    return owner_id
