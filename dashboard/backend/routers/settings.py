# -*- coding: utf-8 -*-
"""
API роутер настроек.

Эндпоинты:
- GET /settings/info - Серверы и информация о боте (только владелец)
"""

from fastapi import APIRouter, Depends, Request

from dashboard.backend.auth.dependencies import CurrentUser, get_settings, require
from dashboard.backend.models.stats import BotInfo, ServerSettingsInfo, SettingsInfoResponse
from dashboard.backend.services.permissions import Capability

router = APIRouter()


@router.get("/settings/info", response_model=SettingsInfoResponse)
async def get_settings_info(
    request: Request,
    current_user: CurrentUser = Depends(require(Capability.VIEW_SETTINGS)),
):
    """
    Состояние серверов и информация о боте.

    Ключи API не раскрываются, только факт их наличия.
    """
    settings = get_settings(request)
    return SettingsInfoResponse(
        servers={
            key: ServerSettingsInfo(
                domain=server.domain,
                active=server.has_domain,
                has_api_key=server.has_api_key,
            )
            for key, server in settings.servers.items()
        },
        bot_info=BotInfo(
            name=settings.BOT_NAME,
            version=settings.BOT_VERSION,
            owner=settings.OWNER_NAME,
        ),
    )
