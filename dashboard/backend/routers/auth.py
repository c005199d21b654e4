# -*- coding: utf-8 -*-
"""
API роутер аутентификации.

Эндпоинты:
- POST /auth/login - Вход по Telegram ID
- GET /auth/check - Текущая сессия
- GET /auth/permissions - Карта прав для интерфейса
- POST /auth/refresh - Перечитать тир и доступ в сессию
- POST /auth/logout - Выход
- GET /csrf-token - CSRF токен сессии
"""

import logging

from fastapi import APIRouter, Depends, Request, Response

from dashboard.backend.auth.dependencies import (
    CurrentUser,
    client_address,
    get_current_user,
    get_optional_user,
    get_sessions,
    get_settings,
    get_users,
    rate_limit,
    read_session_id,
    require_session,
    verify_csrf,
)
from dashboard.backend.auth.sessions import SessionData
from dashboard.backend.auth.throttling import LoginAttemptTracker
from dashboard.backend.auth.tokens import create_session_token
from dashboard.backend.errors import RateLimited, Unauthenticated, ValidationFailed
from dashboard.backend.models.auth import (
    AuthCheckResponse,
    CsrfTokenResponse,
    LoginRequest,
    LoginResponse,
    PermissionsResponse,
    StatusResponse,
    UserInfo,
)
from dashboard.backend.services.permissions import Principal, permissions_for
from dashboard.backend.utils.security import is_valid_telegram_id

router = APIRouter()
logger = logging.getLogger("dashboard.routers.auth")


def user_info(principal: Principal) -> UserInfo:
    return UserInfo(
        id=principal.user_id,
        tier=principal.tier.value if principal.tier else None,
        is_owner=principal.is_owner,
        access=sorted(principal.access),
    )


def set_session_cookie(request: Request, response: Response, session_id: str, session: SessionData) -> None:
    """Выставляет подписанную cookie сессии."""
    settings = get_settings(request)
    lifetime = get_sessions(request).lifetime(session.remember)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(settings, session_id, lifetime),
        max_age=int(lifetime.total_seconds()),
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="strict",
    )


async def read_login_request(request: Request) -> LoginRequest:
    """Тело запроса входа. Тело, которое не является JSON-объектом, даёт пустой запрос."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        return LoginRequest()
    return LoginRequest.model_validate(payload)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    dependencies=[Depends(rate_limit("login"))],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": LoginRequest.model_json_schema()}},
        },
    },
)
async def login(request: Request, response: Response):
    """
    Вход по Telegram ID.

    Пока клиент заблокирован после неудачных попыток, реестры не читаются.
    Любой ввод, кроме 6-15 цифр, считается неудачной попыткой.
    При успехе всегда выдаётся новая сессия, а предъявленная старая
    уничтожается.
    """
    ip = client_address(request)
    attempts: LoginAttemptTracker = request.app.state.login_attempts

    locked_for = attempts.locked_for(ip)
    if locked_for:
        logger.warning(f"Попытка входа во время блокировки, IP: {ip}")
        raise RateLimited(
            f"Слишком много неудачных попыток. Попробуйте через {max(1, locked_for // 60)} мин",
            retry_after=locked_for,
        )

    data = await read_login_request(request)
    identifier = data.telegram_id
    if not is_valid_telegram_id(identifier):
        remaining = attempts.record_failure(ip)
        logger.warning(f"Вход с некорректным Telegram ID, IP: {ip}, осталось попыток: {remaining}")
        raise ValidationFailed("Некорректный Telegram ID")

    users = get_users(request)
    if not users.exists(identifier):
        remaining = attempts.record_failure(ip)
        logger.warning(f"Вход с незарегистрированным ID {identifier}, IP: {ip}, осталось попыток: {remaining}")
        raise Unauthenticated("Telegram ID не зарегистрирован. Обратитесь к администратору или зарегистрируйтесь через бота")

    attempts.record_success(ip)
    principal = users.principal(identifier)

    sessions = get_sessions(request)
    sessions.destroy(read_session_id(request))
    session_id, session = sessions.create(principal, remember=data.remember)
    set_session_cookie(request, response, session_id, session)

    logger.info(
        f"Успешный вход: {identifier} (tier: {principal.tier.value if principal.tier else '-'}, "
        f"owner: {principal.is_owner}), IP: {ip}"
    )
    return LoginResponse(user=user_info(principal), csrf_token=session.csrf_token)


def session_view(principal: Principal) -> AuthCheckResponse:
    info = user_info(principal)
    return AuthCheckResponse(
        user_id=info.id,
        username=f"User {info.id}",
        tier=info.tier,
        is_owner=info.is_owner,
        access=info.access,
        permissions=permissions_for(principal),
    )


@router.get("/auth/check", response_model=AuthCheckResponse)
async def check(current_user: CurrentUser = Depends(get_current_user)):
    """Данные текущей сессии (снимок на момент входа)."""
    return session_view(current_user.principal)


@router.get("/auth/permissions", response_model=PermissionsResponse)
async def permissions(current_user: CurrentUser = Depends(get_current_user)):
    """Права текущего пользователя, посчитанные той же политикой, что и на сервере."""
    return PermissionsResponse(permissions=permissions_for(current_user.principal))


@router.post("/auth/refresh", response_model=AuthCheckResponse)
async def refresh(request: Request, current_user: CurrentUser = Depends(require_session)):
    """Перечитывает тир, доступ и статус владельца в текущую сессию."""
    users = get_users(request)
    sessions = get_sessions(request)
    if not users.exists(current_user.user_id):
        sessions.destroy(current_user.session_id)
        raise Unauthenticated()

    principal = users.principal(current_user.user_id)
    sessions.update_principal(current_user.session_id, principal)
    logger.info(f"Сессия пользователя {current_user.user_id} обновлена")
    return session_view(principal)


@router.post("/auth/logout", response_model=StatusResponse)
async def logout(request: Request, response: Response):
    """
    Выход из системы.

    Живая сессия требует CSRF токен. Без сессии просто очищается cookie.
    """
    settings = get_settings(request)
    current_user = get_optional_user(request)
    if current_user is not None:
        await verify_csrf(request, current_user)
        get_sessions(request).destroy(current_user.session_id)
        logger.info(f"Выход пользователя: {current_user.user_id}, IP: {client_address(request)}")

    response.delete_cookie(settings.SESSION_COOKIE_NAME, httponly=True, samesite="strict")
    return StatusResponse(message="Выход выполнен")


@router.get("/csrf-token", response_model=CsrfTokenResponse)
async def csrf_token(request: Request, current_user: CurrentUser = Depends(get_current_user)):
    """CSRF токен, привязанный к текущей сессии."""
    token = get_sessions(request).ensure_csrf_token(current_user.session)
    return CsrfTokenResponse(csrf_token=token)
