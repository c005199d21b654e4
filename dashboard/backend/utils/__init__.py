# -*- coding: utf-8 -*-
"""
Утилиты дашборда.
"""
