# -*- coding: utf-8 -*-
"""
API роутер обзора.

Эндпоинты:
- GET /dashboard/stats - Обзорная статистика
- GET /servers/list - Настроенные серверы
"""

import logging

from fastapi import APIRouter, Depends, Request

from dashboard.backend.auth.dependencies import CurrentUser, get_settings, get_users, require
from dashboard.backend.models.stats import DashboardStats, ServerInfo
from dashboard.backend.services.permissions import Capability

router = APIRouter()
logger = logging.getLogger("dashboard.routers.dashboard")


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_stats(
    request: Request,
    current_user: CurrentUser = Depends(require(Capability.VIEW_OVERVIEW)),
):
    """Количество серверов и пользователей, тир текущего пользователя."""
    settings = get_settings(request)
    users = get_users(request)

    configured = [s for s in settings.servers.values() if s.has_domain]
    return DashboardStats(
        servers=len(configured),
        users=len(users.access.all_members()),
        with_tier=len(users.tiers.all_records()),
        tier=current_user.tier.value if current_user.tier else None,
    )


@router.get("/servers/list", response_model=list[ServerInfo])
async def list_servers(
    request: Request,
    current_user: CurrentUser = Depends(require(Capability.VIEW_SERVERS)),
):
    """Серверы с заданным доменом и числом пользователей с доступом."""
    settings = get_settings(request)
    access = get_users(request).access

    return [
        ServerInfo(
            key=server.key,
            name=server.name,
            domain=server.domain,
            status="active" if server.is_configured else "unconfigured",
            users=access.member_count(server.key),
            has_access=server.key in current_user.access,
        )
        for server in settings.servers.values()
        if server.has_domain
    ]
