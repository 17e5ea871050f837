# storefront/routers/auth.py

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from storefront.clients.supabase import SupabaseClient, get_supabase_client
from storefront.core import locales
from storefront.core.config import settings
from storefront.schemas.user import LoginRequest
from storefront.services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter()

# These handlers never raise: every outcome is a JSON body with a status code.


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc)


@router.post("/auth/login")
async def login(request: Request, client: SupabaseClient = Depends(get_supabase_client)):
    """Password sign-in. 200 {user} with session cookies, or 400 {error}."""
    try:
        credentials = LoginRequest.model_validate(await request.json())
        session = await auth_service.login(client, credentials.email, credentials.password)
    except Exception as e:
        logger.info(f"Login failed: {_error_message(e)}")
        return JSONResponse(status_code=400, content={"error": _error_message(e)})

    response = JSONResponse(status_code=200, content={"user": session.user.model_dump(mode="json")})
    for cookie in auth_service.session_cookies(session):
        response.headers.append("set-cookie", cookie)
    return response


@router.api_route("/auth/logout", methods=["GET", "POST"])
async def logout(request: Request, client: SupabaseClient = Depends(get_supabase_client)):
    """Revokes the session if there is one and always expires both cookies."""
    try:
        await auth_service.logout(client, request.cookies.get(settings.ACCESS_TOKEN_COOKIE))
    except Exception as e:
        logger.error("Unexpected logout failure", exc_info=True)
        return JSONResponse(status_code=400, content={"error": _error_message(e)})

    response = JSONResponse(status_code=200, content={"success": True})
    for cookie in auth_service.expired_session_cookies():
        response.headers.append("set-cookie", cookie)
    return response


@router.get("/session/verify")
async def verify_session(request: Request, client: SupabaseClient = Depends(get_supabase_client)):
    token = request.cookies.get(settings.ACCESS_TOKEN_COOKIE)
    if not token:
        return JSONResponse(status_code=401, content={"error": locales.ERROR_INVALID_SESSION})

    try:
        user = await auth_service.verify_session(client, token)
    except Exception as e:
        return JSONResponse(
            status_code=401,
            content={"error": _error_message(e) or locales.ERROR_INVALID_SESSION},
        )
    return JSONResponse(status_code=200, content={"user": user.model_dump(mode="json")})
