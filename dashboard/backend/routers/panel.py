# -*- coding: utf-8 -*-
"""
API роутер создания панелей.

Эндпоинты:
- POST /panel/create - Создать аккаунт на сервере Pterodactyl
"""

import logging

from fastapi import APIRouter, Depends

from dashboard.backend.auth.dependencies import CurrentUser, get_provisioner, require
from dashboard.backend.models.panel import PanelCreateRequest, PanelCreateResponse, PanelInfo
from dashboard.backend.services.permissions import Capability
from dashboard.backend.services.provisioning import PanelProvisioner

router = APIRouter()
logger = logging.getLogger("dashboard.routers.panel")


@router.post("/panel/create", response_model=PanelCreateResponse)
async def create_panel(
    data: PanelCreateRequest,
    current_user: CurrentUser = Depends(require(Capability.CREATE_PANEL)),
    provisioner: PanelProvisioner = Depends(get_provisioner),
):
    """
    Создаёт панель на выбранном сервере.

    Требует тир (RESELLER и выше) и доступ к серверу. Сгенерированный
    пароль возвращается только в этом ответе.
    """
    credentials = await provisioner.provision(
        current_user.principal,
        name=data.name,
        server_key=data.server,
        ram_limit=data.ram_limit,
    )
    return PanelCreateResponse(
        panel=PanelInfo(
            id=credentials.id,
            username=credentials.username,
            email=credentials.email,
            password=credentials.password,
            server=credentials.server,
            ram_limit=credentials.ram_limit,
        ),
    )
