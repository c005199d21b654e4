# -*- coding: utf-8 -*-
"""
Веб-дашборд для реселлеров панелей Pterodactyl.
"""
