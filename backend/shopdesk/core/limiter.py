# path: backend/shopdesk/core/limiter.py
"""
Rate limiting support (SlowAPI).

The module-level limiter is used as a decorator on public endpoints;
apply_rate_limiting() wires its middleware and 429 handler into the app.
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)


def apply_rate_limiting(app) -> Limiter:
    """Attach SlowAPI middleware and exception handler."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter
