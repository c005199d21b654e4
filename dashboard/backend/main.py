# -*- coding: utf-8 -*-
"""
Точка входа FastAPI приложения дашборда.

Запуск:
    uvicorn dashboard.backend.main:app --host 0.0.0.0 --port 5000 --reload
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Callable, Optional

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from dashboard.backend.auth.dependencies import rate_limit
from dashboard.backend.auth.sessions import SessionStore
from dashboard.backend.auth.throttling import FixedWindowRateLimiter, LoginAttemptTracker
from dashboard.backend.config import DashboardSettings, get_settings
from dashboard.backend.database import JsonStore
from dashboard.backend.errors import add_exception_handlers
from dashboard.backend.logging_config import setup_logging
from dashboard.backend.routers import auth, dashboard, panel, settings as settings_router, users
from dashboard.backend.services.access import AccessRegistry
from dashboard.backend.services.provisioning import PanelProvisioner
from dashboard.backend.services.tiers import TierRegistry
from dashboard.backend.services.users import UserDirectory

logger = logging.getLogger("dashboard.main")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
}


def create_app(
    settings: Optional[DashboardSettings] = None,
    panel_transport: Optional[httpx.AsyncBaseTransport] = None,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """
    Собирает приложение со всеми компонентами в app.state.

    Args:
        settings: настройки (по умолчанию из окружения)
        panel_transport: транспорт httpx для API панели (подменяется в тестах)
        clock: источник времени для сессий и ограничений
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        logger.info("Запуск дашборда...")
        logger.info(f"Версия: {settings.APP_VERSION}")
        logger.info(f"Debug режим: {settings.DEBUG}")
        logger.info(f"Каталог данных: {Path(settings.DATA_DIR).resolve()}")
        configured = [key for key, server in settings.servers.items() if server.is_configured]
        logger.info(f"Настроенные серверы: {', '.join(configured) or 'нет'}")
        if not settings.owner_ids:
            logger.warning("OWNER_IDS не задан: управление пользователями недоступно")

        yield

        logger.info("Дашборд остановлен")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="REST API дашборда реселлеров панелей Pterodactyl",
        docs_url="/api/docs" if settings.DEBUG else None,
        redoc_url="/api/redoc" if settings.DEBUG else None,
        openapi_url="/api/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    store = JsonStore(settings.DATA_DIR)
    tiers = TierRegistry(store)
    access = AccessRegistry(store)

    app.state.settings = settings
    app.state.users = UserDirectory(settings, tiers, access)
    app.state.sessions = SessionStore(
        ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
        remember_ttl=timedelta(days=settings.SESSION_REMEMBER_DAYS),
        clock=clock,
    )
    app.state.login_attempts = LoginAttemptTracker(
        max_attempts=settings.LOGIN_MAX_ATTEMPTS,
        lockout_seconds=settings.LOGIN_LOCKOUT_MINUTES * 60,
        clock=clock,
    )
    app.state.rate_limiters = {
        "login": FixedWindowRateLimiter(
            "login", settings.LOGIN_RATE_LIMIT, settings.LOGIN_RATE_WINDOW_SECONDS, clock=clock
        ),
        "api": FixedWindowRateLimiter(
            "api", settings.API_RATE_LIMIT, settings.API_RATE_WINDOW_SECONDS, clock=clock
        ),
    }
    app.state.provisioner = PanelProvisioner(settings, access, transport=panel_transport)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-CSRF-Token"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.SESSION_COOKIE_SECURE:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response

    add_exception_handlers(app)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Проверка работоспособности сервиса."""
        return {"status": "ok", "version": settings.APP_VERSION}

    api_limit = [Depends(rate_limit("api"))]
    app.include_router(auth.router, prefix="/api", tags=["Authentication"])
    app.include_router(dashboard.router, prefix="/api", tags=["Dashboard"], dependencies=api_limit)
    app.include_router(users.router, prefix="/api", tags=["Users"], dependencies=api_limit)
    app.include_router(settings_router.router, prefix="/api", tags=["Settings"], dependencies=api_limit)
    app.include_router(panel.router, prefix="/api", tags=["Panels"], dependencies=api_limit)

    # Статика фронтенда (login.html, dashboard.html), если каталог есть
    public_dir = Path(settings.PUBLIC_DIR)
    if public_dir.is_dir():
        logger.info(f"Раздача статических файлов из: {public_dir}")

        @app.get("/", include_in_schema=False)
        async def index():
            return RedirectResponse(url="/login.html")

        app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="public")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "dashboard.backend.main:app",
        host=_settings.DASHBOARD_HOST,
        port=_settings.DASHBOARD_PORT,
        reload=_settings.DEBUG,
        log_level=_settings.LOG_LEVEL.lower(),
    )
