"""
Rate Limiting Module

Provides rate limiting for API endpoints using Redis as the backend.
Falls back to in-memory storage if Redis is unavailable.

SECURITY: Rate limiting prevents abuse of sensitive endpoints like:
- Login (prevents password brute force)
- OTP verification (prevents code guessing)
- Registration and OTP resend (prevents email bombing)
"""

import logging
import secrets
import time
from collections.abc import Callable
from functools import wraps
from typing import Any

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from school_directory.core.config import settings
from school_directory.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


class RateLimitExceeded(HTTPException):
    """Exception raised when rate limit is exceeded."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": f"Too many requests. Maximum {limit} requests per {window_seconds} seconds.",
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Uses a sliding window algorithm with Redis sorted sets.

    Args:
        client: Redis client
        key: Rate limit key (e.g., "rate_limit:1.2.3.4:/api/v1/auth/login")
        limit: Maximum requests allowed
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    # Use a pipeline for atomic operations
    pipe = client.pipeline()

    # Remove old entries outside the window
    pipe.zremrangebyscore(key, 0, window_start)

    # Count current requests in window
    pipe.zcard(key)

    # Add current request; the suffix keeps same-instant requests distinct
    pipe.zadd(key, {f"{now}:{secrets.token_hex(4)}": now})

    # Set expiry on the key
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using in-memory storage.

    Fallback when Redis is unavailable. Note: This doesn't work
    across multiple server instances.
    """
    now = time.time()
    window_start = now - window_seconds

    # Drop keys whose entries have all aged out
    for stale_key in [k for k, v in _memory_store.items() if not v or v[-1] <= window_start]:
        del _memory_store[stale_key]

    timestamps = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(timestamps) >= limit:
        _memory_store[key] = timestamps
        return False

    timestamps.append(now)
    _memory_store[key] = timestamps
    return True


def reset_memory_store() -> None:
    """Clear the in-memory fallback store."""
    _memory_store.clear()


async def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Args:
        key: Unique key for this rate limit
        limit: Maximum requests allowed in the window
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    redis_client = await get_redis()

    if redis_client is not None:
        try:
            return await _check_rate_limit_redis(redis_client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def client_ip_key(request: Request) -> str:
    """Default rate limit key: client IP + endpoint path."""
    client_ip = request.client.host if request.client else "unknown"
    return f"rate_limit:{client_ip}:{request.url.path}"


def rate_limit(
    limit: int | None = None,
    window_seconds: int | None = None,
    key_func: Callable[[Request], str] | None = None,
):
    """
    Rate limiting decorator for FastAPI endpoints.

    Usage:
        @router.post("/login")
        @rate_limit(limit=10, window_seconds=60)
        async def login(request: Request, ...):
            ...

    Args:
        limit: Maximum requests allowed in the window (default: AUTH_RATE_LIMIT)
        window_seconds: Time window in seconds (default: AUTH_RATE_LIMIT_WINDOW_SECONDS)
        key_func: Optional function to generate rate limit key from request.
                  Default uses client IP + endpoint path.

    Raises:
        RateLimitExceeded: When rate limit is exceeded (HTTP 429)
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            if not settings.rate_limit_enabled:
                return await func(*args, **kwargs)

            # Find request object in args or kwargs
            request: Request | None = None
            for arg in args:
                if isinstance(arg, Request):
                    request = arg
                    break
            if not request:
                request = kwargs.get("request")

            if not request:
                logger.warning(
                    f"Rate limit decorator on {func.__name__} couldn't find Request object"
                )
                return await func(*args, **kwargs)

            max_requests = limit if limit is not None else settings.auth_rate_limit
            window = (
                window_seconds
                if window_seconds is not None
                else settings.auth_rate_limit_window_seconds
            )
            key = (key_func or client_ip_key)(request)

            allowed = await check_rate_limit(key, max_requests, window)

            if not allowed:
                logger.warning(f"Rate limit exceeded for {key}: {max_requests}/{window}s")
                raise RateLimitExceeded(max_requests, window)

            return await func(*args, **kwargs)

        return wrapper

    return decorator


__all__ = [
    "rate_limit",
    "check_rate_limit",
    "client_ip_key",
    "reset_memory_store",
    "RateLimitExceeded",
]
