import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from showplot import users
from showplot.background import run_sync
from showplot.database import get_db
from showplot.schemas import GoogleCredential, MeRead, UserRead
from showplot.settings.config import settings
from showplot.users import (
    clear_session_cookie,
    current_user_optional,
    get_jwt_strategy,
    set_session_cookie,
    upsert_google_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.get("/me", response_model=MeRead)
async def me(request: Request, user=Depends(current_user_optional)):
    if user:
        return MeRead(user=UserRead.model_validate(user))
    response = JSONResponse({"user": None})
    # token present but its user is gone (or the secret rotated)
    if request.cookies.get(settings.SESSION_COOKIE_NAME):
        clear_session_cookie(response)
    return response


@router.post("/auth/google")
async def google_sign_in(payload: GoogleCredential, db: AsyncSession = Depends(get_db)):
    if not settings.GOOGLE_CLIENT_ID:
        raise HTTPException(status_code=500, detail="Missing GOOGLE_CLIENT_ID on server")
    if not users.SECRET:
        raise HTTPException(status_code=500, detail="Missing SESSION_SECRET on server")

    credential = str(payload.credential or "").strip()
    if not credential:
        raise HTTPException(status_code=400, detail="Missing credential")

    try:
        claims = await run_sync(users.verify_google_id_token, credential)
    except ValueError as exc:
        logger.info("Google sign-in rejected: %s", exc)
        raise HTTPException(status_code=401, detail=str(exc) or "Google sign-in failed")
    if not claims or not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid Google token")

    user = await upsert_google_user(db, claims)
    token = await get_jwt_strategy().write_token(user)
    logger.info("User %s signed in with Google", user.id)

    response = JSONResponse({"user": UserRead.model_validate(user).model_dump()})
    set_session_cookie(response, token)
    return response


@router.post("/auth/logout")
async def logout():
    response = JSONResponse({"ok": True})
    clear_session_cookie(response)
    return response


__all__ = ["router"]
