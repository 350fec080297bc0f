"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (mounted as middleware, toggled by RATE_LIMIT_ENABLED)
and api/routes/auth.py (per-route limits via @limiter.limit()).

One shared instance means every route counts against the same in-memory store.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
