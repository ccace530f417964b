# minty/api/deps.py
from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import jwt
import uuid

from minty.core.database import get_async_session
from minty.core.auth import User, TOKEN_AUDIENCE
from minty.core.config import settings
from minty.utils.notifications import NotificationService

optional_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_user_from_token(token: str, db: AsyncSession) -> User:
    """Decode an access token and load the active user it belongs to."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=TOKEN_AUDIENCE,
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise _unauthorized("Invalid token: missing user ID")

    try:
        user_id = uuid.UUID(user_id_str)
    except ValueError:
        raise _unauthorized("Invalid user ID format in token")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalars().first()

    if not user:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise _unauthorized("Inactive user")
    return user


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> User:
    """
    Resolve the current user from a bearer token found in:
    - Authorization header
    - `token` / `access_token` query parameters
    """
    token = credentials.credentials if credentials else None

    if not token:
        token = request.query_params.get("token") or request.query_params.get("access_token")

    if not token:
        raise _unauthorized("Not authenticated")

    return await get_user_from_token(token, db)


def get_notification_service(request: Request) -> NotificationService:
    """The application-wide notification service created in minty.main"""
    return request.app.state.notification_service
