"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount as middleware) and api/routes/v1/auth.py
(to throttle POST /auth/login with @limiter.limit()).

One shared instance means every route counts against the same in-memory
store; a limiter created per module would never see the other module's hits.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
