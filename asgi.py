"""
asgi.py -- Application assembly for the marketplace API.

The only place that reads configuration for the server process: settings are
loaded once here and handed to create_app().

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())
