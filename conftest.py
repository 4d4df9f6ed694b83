"""
Root pytest configuration for the Django project.

Sets environment defaults so the test suite runs without a .env file or
running Postgres/Redis. Real environments override any of these.
App-wide configuration lives in app/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("CHANNEL_LAYER_BACKEND", "memory")
os.environ.setdefault("SECURE_SSL_REDIRECT", "False")
os.environ.setdefault("ENV_FILE", "/nonexistent/.env")
