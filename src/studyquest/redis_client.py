"""Redis client used to fan engagement notifications out over pub/sub.

Redis is optional for this service: when it is not configured, notifications
are still returned to the caller, they are just not broadcast.
"""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Create the shared client. An empty URL leaves broadcasting disabled."""
    global _client  # noqa: PLW0603
    if not url:
        _client = None
        return
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )


async def close_redis() -> None:
    """Close the shared client if one was created."""
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """Return the shared client, or None when broadcasting is disabled."""
    return _client
