"""Session tokens for signed-in users.

Learn: After Google sign-in the server issues its own JWT, stored in an
httpOnly cookie (browser) or sent as a Bearer header (CLI). The token
only says *who* you are: {"sub": "<user id>", "iss": "constructivo"}.
Whether you are an admin is looked up in the database on every request,
so revoking admin rights takes effect immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from constructivo.config import settings

ISSUER = "constructivo"


class TokenError(Exception):
    """The token is missing, expired, tampered with, or not ours."""


def create_access_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    claims = {
        "sub": str(user_id),
        "iss": ISSUER,
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    """Decode a session token, raising TokenError if it can't be trusted."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=ISSUER,
            options={"require": ["sub", "exp", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if claims.get("type") != "access":
        raise TokenError("Not an access token")
    return claims


def user_id_from_token(token: str) -> int:
    claims = verify_token(token)
    try:
        return int(claims["sub"])
    except ValueError:
        raise TokenError("Invalid token subject")
