"""Auth API — Google sign-in, session cookie, current user.

Learn: Routes for the browser sign-in flow:
- GET /auth/google → redirect to Google (state kept in a short-lived cookie)
- GET /auth/google/callback → exchange code, upsert user, set JWT cookie
- POST /logout → clear the cookie
- GET /user → who am I
- GET /auth/check-credentials, /auth/check-callback, /auth/check-api → setup diagnostics
  for whoever is configuring the Google Cloud console
"""

import secrets
from typing import Optional
from urllib.parse import quote

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from constructivo.auth.dependencies import get_current_user_optional
from constructivo.auth.google import GoogleOAuthClient, OAuthError, get_google_client
from constructivo.auth.jwt import create_access_token
from constructivo.config import settings
from constructivo.db.engine import get_db
from constructivo.db.models import User
from constructivo.schemas.user import UserRead
from constructivo.services.user_service import UserService

logger = structlog.get_logger()
router = APIRouter()

STATE_COOKIE = "oauth_state"


def _callback_url(request: Request) -> str:
    return str(request.base_url).rstrip("/") + settings.google_callback_path


def _auth_error_redirect(message: str) -> RedirectResponse:
    return RedirectResponse(f"/auth?error={quote(message)}", status_code=302)


# ─── Setup diagnostics ───────────────────────────────────


@router.get("/auth/check-credentials")
async def check_credentials():
    """Report whether the Google client id/secret are configured."""
    client_id = bool(settings.google_client_id)
    client_secret = bool(settings.google_client_secret)
    return {
        "clientId": client_id,
        "clientSecret": client_secret,
        "details": {
            "clientIdPresent": client_id,
            "clientSecretPresent": client_secret,
        },
    }


@router.get("/auth/check-callback")
async def check_callback(request: Request):
    """Show the origin and redirect URI to register with Google."""
    callback = _callback_url(request)
    origin = str(request.base_url).rstrip("/")
    return {
        "domain": request.url.hostname,
        "currentCallback": callback,
        "details": {
            "authorizedOrigin": origin,
            "authorizedRedirect": callback,
            "configSteps": {
                "originUrl": origin,
                "redirectUrl": callback,
                "instructions": [
                    "1. Go to Google Cloud Console > APIs & Services > Credentials",
                    "2. Edit your OAuth 2.0 Client ID",
                    f'3. Add "{origin}" to Authorized JavaScript origins',
                    f'4. Add "{callback}" to Authorized redirect URIs',
                    "5. Save the changes",
                ],
            },
        },
    }


@router.get("/auth/check-api")
async def check_api(request: Request):
    """Whether the OAuth consent screen can be used (credentials present)."""
    configured = bool(settings.google_client_id and settings.google_client_secret)
    return {
        "consentScreen": configured,
        "testUsers": True,
        "details": {
            "consentScreenConfigured": configured,
            "authorizedOrigin": str(request.base_url).rstrip("/"),
            "authorizedRedirect": _callback_url(request),
        },
    }


# ─── Google sign-in ──────────────────────────────────────


@router.get("/auth/google")
async def google_login(
    request: Request,
    google: GoogleOAuthClient = Depends(get_google_client),
):
    if not google.configured:
        return _auth_error_redirect("Google sign-in is not configured.")

    state = secrets.token_urlsafe(24)
    response = RedirectResponse(
        google.authorization_url(_callback_url(request), state), status_code=302
    )
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=600,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


@router.get("/auth/google/callback")
async def google_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    google: GoogleOAuthClient = Depends(get_google_client),
    db: AsyncSession = Depends(get_db),
):
    expected_state = request.cookies.get(STATE_COOKIE)
    if not code or not state or not expected_state or not secrets.compare_digest(
        state, expected_state
    ):
        return _auth_error_redirect("Failed to complete authentication. Please try again.")

    try:
        profile = await google.fetch_profile(code, _callback_url(request))
    except OAuthError as e:
        return _auth_error_redirect(str(e))

    user = await UserService(db).get_or_create(email=profile.email, name=profile.name)
    logger.info("auth.signed_in", user_id=user.id, is_admin=user.is_admin)

    response = RedirectResponse("/admin", status_code=302)
    response.delete_cookie(STATE_COOKIE)
    response.set_cookie(
        settings.auth_cookie_name,
        create_access_token(user.id),
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


# ─── Session ─────────────────────────────────────────────


@router.post("/logout")
async def logout():
    response = JSONResponse({"message": "Logout successful"})
    response.delete_cookie(settings.auth_cookie_name)
    return response


@router.get("/user", response_model=UserRead)
async def current_user(user: Optional[User] = Depends(get_current_user_optional)):
    if not user:
        raise HTTPException(status_code=401, detail="Not logged in")
    return user
