"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to resolve the
signed-in user from the request:

1. Bearer JWT in the Authorization header (CLI, scripts)
2. JWT in the access_token cookie (browser, set by the OAuth callback)

get_current_user → 401 when nobody is signed in
require_admin    → additionally 403 when the user isn't an admin
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.jwt import TokenError, user_id_from_token
from constructivo.config import settings
from constructivo.db.engine import get_db
from constructivo.db.models import User


def _token_from_request(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    return request.cookies.get(settings.auth_cookie_name)


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Resolve the signed-in user, or None for anonymous requests."""
    token = _token_from_request(request, authorization)
    if not token:
        return None

    try:
        user_id = user_id_from_token(token)
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User no longer exists")
    return user


async def get_current_user(
    user: Optional[User] = Depends(get_current_user_optional),
) -> User:
    """Signed-in user (required — 401 if anonymous)."""
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Signed-in admin (403 for regular users)."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Not authorized")
    return user
