# -*- coding: utf-8 -*-
"""
FastAPI зависимости для авторизации в дашборде.

Каждый защищённый эндпоинт проходит проверки строго по порядку и
останавливается на первой неудаче:

1. есть живая сессия (иначе 401 Unauthenticated)
2. CSRF токен совпадает с токеном сессии, только для изменяющих
   методов (иначе 403 ForgerySuspected)
3. политика прав разрешает действие (иначе 403 Forbidden)
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, Request

from dashboard.backend.auth.sessions import SessionData, SessionStore
from dashboard.backend.auth.throttling import FixedWindowRateLimiter
from dashboard.backend.auth.tokens import verify_session_token
from dashboard.backend.config import DashboardSettings
from dashboard.backend.errors import ForgerySuspected, Forbidden, RateLimited, Unauthenticated
from dashboard.backend.services.permissions import Capability, Principal, is_allowed
from dashboard.backend.services.provisioning import PanelProvisioner
from dashboard.backend.services.users import UserDirectory
from dashboard.backend.utils.security import get_client_ip

logger = logging.getLogger("dashboard.auth.dependencies")

CSRF_HEADER = "X-CSRF-Token"
CSRF_FORM_FIELD = "_csrf"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class CurrentUser:
    """
    Контекст текущего авторизованного пользователя.

    Содержит идентификатор сессии и снимок прав из неё.
    """
    def __init__(self, session_id: str, session: SessionData):
        self.session_id = session_id
        self.session = session

    @property
    def principal(self) -> Principal:
        return self.session.principal

    @property
    def user_id(self) -> str:
        return self.principal.user_id

    @property
    def tier(self):
        return self.principal.tier

    @property
    def is_owner(self) -> bool:
        return self.principal.is_owner

    @property
    def access(self) -> frozenset[str]:
        return self.principal.access


# -------------------- компоненты из состояния приложения --------------------
def get_settings(request: Request) -> DashboardSettings:
    return request.app.state.settings


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_users(request: Request) -> UserDirectory:
    return request.app.state.users


def get_provisioner(request: Request) -> PanelProvisioner:
    return request.app.state.provisioner


def client_address(request: Request) -> str:
    """Адрес клиента с учётом доверенных прокси из настроек."""
    return get_client_ip(request, get_settings(request).trusted_proxies)


# -------------------- сессия --------------------
def read_session_id(request: Request) -> Optional[str]:
    """Идентификатор сессии из подписанной cookie или None."""
    settings = get_settings(request)
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    return verify_session_token(settings, token)


def get_optional_user(request: Request) -> Optional[CurrentUser]:
    """Текущий пользователь, если сессия есть. Не выбрасывает исключение."""
    session_id = read_session_id(request)
    session = get_sessions(request).get(session_id)
    if session is None:
        return None
    return CurrentUser(session_id=session_id, session=session)


async def get_current_user(request: Request) -> CurrentUser:
    """
    Проверка 1: требуется живая сессия.

    Raises:
        Unauthenticated: если cookie нет, подпись неверна или сессия истекла
    """
    current_user = get_optional_user(request)
    if current_user is None:
        raise Unauthenticated()
    return current_user


async def verify_csrf(request: Request, current_user: CurrentUser) -> None:
    """
    Проверка 2: CSRF токен для изменяющих запросов.

    Токен берётся из заголовка X-CSRF-Token или поля `_csrf` JSON-тела.
    """
    if request.method in SAFE_METHODS:
        return

    token = request.headers.get(CSRF_HEADER)
    if not token and request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            token = body.get(CSRF_FORM_FIELD)

    expected = current_user.session.csrf_token
    if not token or not expected or not hmac.compare_digest(str(token), expected):
        logger.warning(
            f"Отклонён запрос без валидного CSRF: {request.method} {request.url.path}, "
            f"user {current_user.user_id}, IP: {client_address(request)}"
        )
        raise ForgerySuspected()


def require(capability: Capability):
    """
    Зависимость, выполняющая все три проверки для действия `capability`.

    Args:
        capability: Проверяемое действие из политики прав
    """
    async def guard(request: Request) -> CurrentUser:
        current_user = await get_current_user(request)
        await verify_csrf(request, current_user)
        if not is_allowed(current_user.principal, capability):
            logger.warning(
                f"Доступ запрещён: {capability.value} для {current_user.user_id}, "
                f"IP: {client_address(request)}"
            )
            raise Forbidden()
        return current_user

    return guard


async def require_session(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Сессия и CSRF без проверки прав (выход, обновление сессии)."""
    await verify_csrf(request, current_user)
    return current_user


# -------------------- ограничение частоты --------------------
def rate_limit(group: str):
    """
    Зависимость ограничения частоты для группы роутов ("login" или "api").
    """
    async def limiter_dependency(request: Request) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiters[group]
        client = client_address(request)
        retry_after = limiter.hit(client)
        if retry_after:
            logger.warning(f"Превышен лимит запросов {group} для {client}")
            raise RateLimited(retry_after=retry_after)

    return limiter_dependency
