"""slowapi limiter keyed by client IP; the first X-Forwarded-For hop wins."""
from fastapi import Request
from slowapi import Limiter

from .config import settings

ANALYZE_RATE_LIMIT = f"{settings.analyze_rate_limit_per_minute}/minute"
DEFAULT_RATE_LIMIT = f"{settings.rate_limit_per_minute}/minute"


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(key_func=client_ip)
