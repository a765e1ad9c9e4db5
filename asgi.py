"""
asgi.py -- Application assembly for the auth service.

Builds the app once from environment configuration (core.config.get_settings).
Tests never import this module; they call api.main.create_app() directly.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import create_app

app = create_app()
