# teacher_eval/api/v1/endpoints/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import ValidationError

from teacher_eval.api.deps.admin import get_settings_dep, has_admin_session
from teacher_eval.core.config import Settings
from teacher_eval.core.security import create_admin_token, password_matches
from teacher_eval.schemas.auth import LoginIn, SessionOut

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


async def _read_login(request: Request) -> LoginIn:
    # the login form posts urlencoded data, API clients send JSON
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            return LoginIn.model_validate(await request.json())
        except (ValueError, ValidationError):
            raise HTTPException(status_code=400, detail="Invalid login payload")
    form = await request.form()
    return LoginIn(password=form.get("password"))


@router.get("/login")
def login_form(request: Request):
    """Target of the admin redirect; describes how to log in."""
    return {
        "detail": "POST the admin password to this URL",
        "fields": ["password"],
        "admin": has_admin_session(request),
    }


@router.post("/login", response_model=SessionOut)
async def login(request: Request, settings: Settings = Depends(get_settings_dep)):
    """
    Shared-password login. On success the response carries a signed
    httpOnly cookie that marks the browser as admin.
    """
    data = await _read_login(request)
    if not password_matches(data.password, settings):
        logger.warning("Rejected admin login from %s", request.client.host if request.client else "?")
        raise HTTPException(status_code=401, detail="Invalid password")

    response = JSONResponse(SessionOut(admin=True).model_dump())
    response.set_cookie(
        settings.ADMIN_COOKIE_NAME,
        create_admin_token(settings),
        max_age=settings.ADMIN_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=settings.ENV != "dev",
    )
    logger.info("Admin session opened")
    return response


@router.api_route("/logout", methods=["GET", "POST"])
def logout(settings: Settings = Depends(get_settings_dep)):
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(settings.ADMIN_COOKIE_NAME)
    return response


@router.get("/me", response_model=SessionOut)
def me(request: Request):
    return SessionOut(admin=has_admin_session(request))
