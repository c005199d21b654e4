"""
Запуск дашборда.

Использование:
    python run_dashboard.py
"""

import uvicorn

from dashboard.backend.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "dashboard.backend.main:app",
        host=settings.DASHBOARD_HOST,
        port=settings.DASHBOARD_PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
