# -*- coding: utf-8 -*-
"""
API роутер управления пользователями бота.

Эндпоинты:
- GET /users/list - Список пользователей (тир OWN и выше или владелец)
- POST /users/update - Заменить тир и доступ (только владелец)
- POST /users/delete - Удалить пользователя (только владелец)
- GET /tiers/list - Тиры пользователей (только владелец)
"""

import logging

from fastapi import APIRouter, Depends, Request

from dashboard.backend.auth.dependencies import CurrentUser, client_address, get_sessions, get_users, require
from dashboard.backend.logging_config import AUDIT_LOGGER
from dashboard.backend.models.auth import StatusResponse
from dashboard.backend.models.user import (
    TierListResponse,
    TierRecordItem,
    UserDeleteRequest,
    UserListItem,
    UserListResponse,
    UserUpdateRequest,
)
from dashboard.backend.services.permissions import Capability
from dashboard.backend.services.tiers import TIER_ORDER

router = APIRouter()
logger = logging.getLogger("dashboard.routers.users")
audit_logger = logging.getLogger(AUDIT_LOGGER)


@router.get("/users/list", response_model=UserListResponse)
async def list_users(
    request: Request,
    current_user: CurrentUser = Depends(require(Capability.VIEW_USERS)),
):
    """Все пользователи из списков серверов и реестра тиров."""
    users = get_users(request).list_users()
    items = [
        UserListItem(
            id=user.id,
            tier=user.tier.value if user.tier else None,
            access=list(user.access),
            is_owner=user.is_owner,
        )
        for user in users
    ]
    return UserListResponse(
        total=len(items),
        with_tier=sum(1 for item in items if item.tier),
        users=items,
    )


@router.post("/users/update", response_model=StatusResponse)
async def update_user(
    request: Request,
    data: UserUpdateRequest,
    current_user: CurrentUser = Depends(require(Capability.MODIFY_USERS)),
):
    """
    Заменяет тир и доступ пользователя.

    Пустой тир удаляет запись о тире. Доступ заменяется целиком.
    Открытые сессии пользователя получают новый снимок прав.
    """
    users = get_users(request)
    principal = users.update_user(data.user_id, data.tier or None, data.access)

    get_sessions(request).refresh_user(data.user_id, principal if users.exists(data.user_id) else None)
    audit_logger.info(
        f"{current_user.user_id} обновил пользователя {data.user_id}: "
        f"tier={data.tier or '-'}, access={sorted(set(data.access))}, IP: {client_address(request)}"
    )
    return StatusResponse(message="Пользователь обновлён")


@router.post("/users/delete", response_model=StatusResponse)
async def delete_user(
    request: Request,
    data: UserDeleteRequest,
    current_user: CurrentUser = Depends(require(Capability.MODIFY_USERS)),
):
    """Удаляет тир пользователя и его доступ ко всем серверам."""
    users = get_users(request)
    users.delete_user(data.user_id)

    # Владелец остаётся пользователем и после удаления из реестров
    remaining = users.principal(data.user_id) if users.exists(data.user_id) else None
    get_sessions(request).refresh_user(data.user_id, remaining)
    audit_logger.info(f"{current_user.user_id} удалил пользователя {data.user_id}, IP: {client_address(request)}")
    return StatusResponse(message="Пользователь удалён")


@router.get("/tiers/list", response_model=TierListResponse)
async def list_tiers(
    request: Request,
    current_user: CurrentUser = Depends(require(Capability.MANAGE_TIERS)),
):
    """
    Тиры пользователей, сгруппированные в порядке тиров.

    Пользователи, которых tier.json относит к разным тирам, в группы не
    попадают и перечислены отдельно.
    """
    tiers = get_users(request).tiers
    records = tiers.all_records()
    return TierListResponse(
        order=[tier.value for tier in TIER_ORDER],
        tiers=tiers.grouped(),
        records=[
            TierRecordItem(user_id=record.user_id, tier=record.tier.value, created_at=record.created_at)
            for record in records.values()
        ],
        conflicts=sorted(tiers.conflicted_users()),
    )
