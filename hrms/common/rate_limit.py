"""Shared slowapi limiter.

Authenticated calls are bucketed per bearer token, anonymous calls
(Google login, refresh) per client IP. Routers import ``limiter`` and
tighten individual endpoints with ``@limiter.limit("N/period")``.
"""

import hashlib

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from hrms.config import settings


def client_key(request: Request) -> str:
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        return "token:" + hashlib.sha256(auth[7:].strip().encode()).hexdigest()[:32]
    return "ip:" + get_remote_address(request)


limiter = Limiter(key_func=client_key, default_limits=[settings.RATE_LIMIT_DEFAULT])
