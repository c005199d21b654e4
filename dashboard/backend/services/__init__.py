"""
Бизнес-логика дашборда: реестры тиров и доступа, политика прав,
создание панелей.
"""
