import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.admin import router as admin_router
from api.auth import router as auth_router
from api.directory import router as directory_router
from api.employees import router as employees_router
from backend.logger import setup_logging
from db.employee_repo import create_employee_repo
from db.json_file import StorageFault
from db.user_repo import create_user_repo
from services.auth_service import create_auth_service
from services.session_service import SessionService
from settings.config import Settings, settings

logger = logging.getLogger("backend.app")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    cfg = app_settings or settings
    setup_logging(cfg.log_level, cfg.log_file)

    employee_repo = create_employee_repo(cfg)
    user_repo = create_user_repo(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # A StorageFault here aborts startup; never serve from a half-loaded file.
        employee_repo.init()
        user_repo.init()
        if cfg.session_secret == "change-me":
            logger.warning("SESSION_SECRET is not configured; using the insecure default")
        try:
            yield
        finally:
            for repo in (employee_repo, user_repo):
                try:
                    repo.close()
                except StorageFault as exc:
                    logger.error("Final save failed, recent changes are lost: %s", exc)

    app = FastAPI(title="Employee Directory API", lifespan=lifespan)
    app.state.settings = cfg
    app.state.employee_repo = employee_repo
    app.state.user_repo = user_repo
    app.state.auth_service = create_auth_service(user_repo, cfg)
    app.state.session_service = SessionService(
        cfg.session_secret,
        algorithm=cfg.session_algorithm,
        ttl_seconds=cfg.session_ttl_seconds,
    )

    if cfg.cors_origins == ["*"]:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cfg.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])
    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(employees_router, prefix="/api", tags=["employees"])
    app.include_router(directory_router, prefix="/api", tags=["directory"])
    return app


app = create_app()
