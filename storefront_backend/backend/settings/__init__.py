"""
PATH: backend/settings/__init__.py

Settings live in three modules:
- base.py   env parsing and everything shared (order pipeline config included)
- dev.py    local development and the test suite
- prod.py   production; refuses to boot on unsafe config

This package imports none of them. Pick one with DJANGO_SETTINGS_MODULE.
"""
