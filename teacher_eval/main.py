# teacher_eval/main.py
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from teacher_eval.api.v1.endpoints import (
    admin_backups, admin_imports, admin_reports, auth, catalogs, health, responses,
)
from teacher_eval.core.config import Settings, get_settings
from teacher_eval.core.exceptions import AdminRequired, SurveyError
from teacher_eval.core.logging_config import setup_logging
from teacher_eval.db.seed import seed_once
from teacher_eval.db.session import Database

API_V1_PREFIX = "/api/v1"
LOGIN_URL = f"{API_V1_PREFIX}/auth/login"

logger = logging.getLogger(__name__)


def _register_handlers(app: FastAPI) -> None:
    @app.exception_handler(AdminRequired)
    async def admin_required_handler(request: Request, exc: AdminRequired):
        return RedirectResponse(url=LOGIN_URL, status_code=303)

    @app.exception_handler(SurveyError)
    async def survey_error_handler(request: Request, exc: SurveyError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    db = Database(settings)
    db.create_schema()
    if settings.SEED_ON_STARTUP:
        with db.session() as session:
            if seed_once(session):
                logger.info("Reference data seeded")

    app = FastAPI(
        title=settings.APP_NAME,
        description="Anonymous teacher evaluation surveys and reports",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.db = db

    # CORS (in prod: restrict origins with CORS_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Versioned routers
    app.include_router(health.router,    prefix=API_V1_PREFIX)
    app.include_router(auth.router,      prefix=API_V1_PREFIX)
    app.include_router(catalogs.router,  prefix=API_V1_PREFIX)
    app.include_router(responses.router, prefix=API_V1_PREFIX)

    # Admin: everything below /api/v1/admin
    app.include_router(admin_reports.router, prefix=f"{API_V1_PREFIX}/admin")
    app.include_router(admin_imports.router, prefix=f"{API_V1_PREFIX}/admin")
    app.include_router(admin_backups.router, prefix=f"{API_V1_PREFIX}/admin")

    _register_handlers(app)

    @app.get("/health")
    def health_root():
        return {"status": "ok"}

    @app.get("/")
    def root():
        return {
            "message": "ISPT teacher evaluation API",
            "version": "1.0.0",
            "docs": "/docs",
            "api_v1": API_V1_PREFIX,
        }

    logger.info("%s ready (env=%s)", settings.APP_NAME, settings.ENV)
    return app
