# -*- coding: utf-8 -*-
"""
Иерархия ошибок дашборда и их регистрация в FastAPI.

Каждая ошибка несёт HTTP статус, машинный код и безопасное для клиента
сообщение. Подробности (исключения API панели, трейсбеки) только в логах.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("dashboard.errors")


class DashboardError(Exception):
    """Базовая ошибка дашборда."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Внутренняя ошибка сервера"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class Unauthenticated(DashboardError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHENTICATED"
    message = "Требуется авторизация"


class ForgerySuspected(DashboardError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORGERY_SUSPECTED"
    message = "Невалидный CSRF токен"


class Forbidden(DashboardError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "Доступ запрещён"


class ValidationFailed(DashboardError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_FAILED"
    message = "Некорректные данные"


class RateLimited(DashboardError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"
    message = "Слишком много запросов. Попробуйте позже"

    def __init__(self, message: Optional[str] = None, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


class NotFound(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Не найдено"


class UpstreamFailure(DashboardError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "UPSTREAM_FAILURE"
    message = "Не удалось создать панель"


class PanelNameTaken(DashboardError):
    status_code = status.HTTP_409_CONFLICT
    code = "PANEL_NAME_TAKEN"
    message = "Имя пользователя уже занято"


class ServerNotConfigured(DashboardError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "SERVER_NOT_CONFIGURED"
    message = "Сервер не настроен"


class TierConflict(DashboardError):
    """Пользователь одновременно числится в нескольких тирах."""
    status_code = status.HTTP_409_CONFLICT
    code = "TIER_CONFLICT"
    message = "Противоречивые данные о тире пользователя"


class StorageError(DashboardError):
    code = "STORAGE_ERROR"
    message = "Ошибка хранилища"


def error_response(exc: DashboardError) -> JSONResponse:
    headers = None
    if isinstance(exc, RateLimited) and exc.retry_after:
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "code": exc.code, "message": exc.message},
        headers=headers,
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Регистрирует обработчики ошибок в приложении."""

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} на {request.method} {request.url.path}: {exc}")
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        logger.info(f"Невалидный запрос {request.method} {request.url.path}: {fields}")
        return error_response(ValidationFailed())

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return error_response(NotFound())
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "code": "HTTP_ERROR", "message": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Глобальный обработчик необработанных исключений."""
        logger.error(f"Необработанное исключение: {exc}", exc_info=True)
        return error_response(DashboardError())
