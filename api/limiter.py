"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount SlowAPIMiddleware and attach to app.state)
and by api/routes/v1/auth.py (to apply per-route limits with @limiter.limit()).

The limiter is declared once at import time because the route decorators need
it. Whether limits apply is a per-app decision: every limit is declared with
exempt_when=limits_disabled, which reads Settings.rate_limit_enabled from the
app serving the request. create_app() never mutates this module.

Hit counters live in process memory (memory://) and are shared by every app
in the process; limiter.reset() clears them.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")


def limits_disabled(request: Request) -> bool:
    """exempt_when hook: True when the serving app has rate limiting switched off."""
    return not request.app.state.settings.rate_limit_enabled
