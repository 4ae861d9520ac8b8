import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi_users import FastAPIUsers, models
from fastapi_users.manager import BaseUserManager, IntegerIDMixin
from fastapi_users.authentication import (
    AuthenticationBackend,
    BearerTransport,
    CookieTransport,
    JWTStrategy,
)
from fastapi_users.db import SQLAlchemyUserDatabase
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_db
from .models import User
from .settings.config import settings


logger = logging.getLogger(__name__)

SECRET = settings.SESSION_SECRET.strip()

# -------------------------
# Database Dependency
# -------------------------
async def get_user_db(session=Depends(get_db)):
    yield SQLAlchemyUserDatabase(session, User)

# -------------------------
# User Manager
# -------------------------
class UserManager(IntegerIDMixin, BaseUserManager[User, int]):
    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def on_after_login(self, user: User, request=None, response=None):
        logger.info("User %s signed in", user.id)

async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db)

# -------------------------
# Authentication Backends
# -------------------------
class SessionJWTStrategy(JWTStrategy):
    """JWT strategy that refuses every token while no secret is configured."""

    async def read_token(self, token: Optional[str], user_manager):
        if not SECRET:
            return None
        return await super().read_token(token, user_manager)


cookie_transport = CookieTransport(
    cookie_name=settings.SESSION_COOKIE_NAME,
    cookie_max_age=settings.SESSION_LIFETIME_SECONDS,
    cookie_secure=settings.cookie_secure,
    cookie_httponly=True,
    cookie_samesite="lax",
)

bearer_transport = BearerTransport(tokenUrl="/api/auth/google")

def get_jwt_strategy() -> JWTStrategy:
    return SessionJWTStrategy(secret=SECRET, lifetime_seconds=settings.SESSION_LIFETIME_SECONDS)

auth_backend = AuthenticationBackend(
    name="cookie",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)

bearer_backend = AuthenticationBackend(
    name="bearer",
    transport=bearer_transport,
    get_strategy=get_jwt_strategy,
)

# -------------------------
# FastAPI Users instance
# -------------------------
fastapi_users = FastAPIUsers[User, int](
    get_user_manager,
    [auth_backend, bearer_backend],
)

current_user_optional = fastapi_users.current_user(optional=True, active=True)


async def require_authenticated_user(
    user: models.UP = Depends(current_user_optional),
):
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


async def require_admin_user(
    user: models.UP = Depends(require_authenticated_user),
):
    if not getattr(user, "is_superuser", False):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user

# -------------------------
# Google sign-in
# -------------------------
def verify_google_id_token(credential: str) -> dict:
    """Verify a Google ID token for our client id and return its claims.

    Raises ValueError when the token is malformed, expired or issued for
    another audience. Blocking (fetches Google's certs); call via run_sync.
    """
    return google_id_token.verify_oauth2_token(
        credential,
        google_requests.Request(),
        audience=settings.GOOGLE_CLIENT_ID,
    )


async def upsert_google_user(db: AsyncSession, claims: dict) -> User:
    """Create or refresh the user keyed by the Google subject id."""
    google_sub = str(claims.get("sub") or "")
    if not google_sub:
        raise ValueError("Invalid Google token")
    email = str(claims.get("email") or "")
    name = str(claims.get("name") or "")
    picture = str(claims.get("picture") or "")

    user = (await db.execute(select(User).where(User.google_sub == google_sub))).scalars().first()
    if not user:
        user = User(google_sub=google_sub)
        db.add(user)
        logger.info("Creating user for Google subject %s", google_sub)
    user.email = email
    user.name = name
    user.picture = picture
    if email and email.lower() in settings.admin_emails:
        user.is_superuser = True
    await db.commit()
    await db.refresh(user)
    return user


def set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        key=cookie_transport.cookie_name,
        value=token,
        httponly=True,
        max_age=cookie_transport.cookie_max_age,
        secure=cookie_transport.cookie_secure,
        samesite=cookie_transport.cookie_samesite,
        path="/",
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(cookie_transport.cookie_name, path="/")
