# -*- coding: utf-8 -*-
"""
FastAPI бэкенд дашборда.

Модули:
- auth: Сессии, CSRF, ограничение попыток входа
- services: Реестры тиров и доступа, политика прав, создание панелей
- routers: API эндпоинты
- models: Pydantic схемы
"""
