# teacher_eval/api/deps/admin.py
from fastapi import Request

from teacher_eval.core.config import Settings
from teacher_eval.core.exceptions import AdminRequired, Forbidden
from teacher_eval.core.security import is_admin_cookie


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def has_admin_session(request: Request) -> bool:
    settings: Settings = request.app.state.settings
    return is_admin_cookie(request.cookies.get(settings.ADMIN_COOKIE_NAME), settings)


def require_admin(request: Request) -> bool:
    """
    Admin pages and report APIs: without a valid cookie the client is sent
    to the login route.
    """
    if not has_admin_session(request):
        raise AdminRequired()
    return True


def require_admin_strict(request: Request) -> bool:
    """Imports and restore answer 403 instead of redirecting."""
    if not has_admin_session(request):
        raise Forbidden("Only administrators can import or restore data")
    return True
