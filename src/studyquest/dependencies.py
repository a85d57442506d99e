"""Shared FastAPI dependencies for engagement endpoints."""

from redis.asyncio import Redis

from studyquest.config import get_settings
from studyquest.redis_client import get_redis


def get_notification_publisher() -> Redis | None:
    """Redis client for broadcasting engagement notifications.

    None when Redis is not configured or broadcasting is switched off with
    SQ_PUBLISH_ENGAGEMENT_EVENTS; notifications are then only returned in
    the response.
    """
    if not get_settings().publish_engagement_events:
        return None
    return get_redis()
