"""Redis client used for request rate limiting.

Redis is optional: when it is not configured (or unreachable at startup) the
API keeps serving and the rate limiter lets every request through.
"""

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

logger = structlog.get_logger()

_client: redis.Redis | None = None


async def init_redis(url: str | None) -> None:
    """Connect to Redis; leave the client unset if no URL or the ping fails."""
    global _client  # noqa: PLW0603
    if not url:
        return
    client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis_unavailable", url=url, error=str(exc))
        await client.aclose()
        return
    _client = client


async def close_redis() -> None:
    """Close the Redis client."""
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Get the Redis client."""
    if _client is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _client
