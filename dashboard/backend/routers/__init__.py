# -*- coding: utf-8 -*-
"""
API роутеры дашборда.

Содержит:
- auth: Вход, сессия, CSRF
- dashboard: Обзор и список серверов
- users: Пользователи и тиры
- settings: Настройки
- panel: Создание панелей
"""

from dashboard.backend.routers import auth, dashboard, panel, settings, users

__all__ = [
    "auth",
    "dashboard",
    "panel",
    "settings",
    "users",
]
