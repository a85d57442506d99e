"""Engagement arq worker: applies engagement triggers off the request path.

The content service enqueues one job per user action; each job runs the
orchestrator in its own session. The arq job id doubles as the XP
idempotency key, so a retried job never awards XP twice.
"""

from __future__ import annotations

import logging

from arq import create_pool
from arq.connections import ArqRedis, RedisSettings
from pydantic import ValidationError

from studyquest.config import get_settings
from studyquest.database import close_db, get_session_factory, init_db
from studyquest.gamification.orchestrator import EngagementOrchestrator, parse_trigger
from studyquest.gamification.seed import seed_badges
from studyquest.gamification.store import create_user_progress
from studyquest.middleware.logging import setup_logging
from studyquest.redis_client import close_redis, get_redis, init_redis

logger = logging.getLogger(__name__)


async def engagement_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB and pub/sub connections on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)
    await init_redis(settings.redis_url if settings.publish_engagement_events else "")
    async with get_session_factory()() as db:
        await seed_badges(db)
    logger.info("Engagement worker started")


async def engagement_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    await close_redis()
    await close_db()
    logger.info("Engagement worker shut down")


async def process_engagement_event(ctx: dict, user_id: str, event: dict) -> dict:  # type: ignore[type-arg]
    """Run one trigger for one user. Returns a JSON-safe summary."""
    try:
        trigger = parse_trigger(event)
    except ValidationError as e:
        logger.error("Rejected malformed engagement event for user %s: %s", user_id, e)
        return {"user_id": user_id, "accepted": False, "error": "invalid event"}

    job_id = ctx.get("job_id")
    async with get_session_factory()() as db:
        orchestrator = EngagementOrchestrator(db, get_redis())
        outcome = await orchestrator.handle(
            user_id,
            trigger,
            idempotency_key=f"job:{job_id}" if job_id else None,
        )

    return {
        "user_id": user_id,
        "accepted": True,
        "trigger": outcome.trigger,
        "streak": outcome.streak.streak,
        "xp_awarded": outcome.xp.amount if outcome.xp is not None and outcome.xp.success else 0,
        "badges": outcome.badges,
        "notifications": outcome.notifications.to_list(),
        "errors": outcome.errors,
    }


async def create_progress_for_user(ctx: dict, user_id: str) -> bool:  # type: ignore[type-arg]
    """Account-creation hook: create the progress row if it is missing."""
    async with get_session_factory()() as db:
        created = await create_user_progress(db, user_id)
        await db.commit()
    if created:
        logger.info("Created progress record for user %s", user_id)
    return created


async def enqueue_engagement_event(
    user_id: str,
    event: dict,
    *,
    pool: ArqRedis | None = None,
) -> str | None:
    """Producer helper for other services. Returns the job id."""
    owned = pool is None
    if pool is None:
        pool = await create_pool(RedisSettings.from_dsn(get_settings().arq_redis_url))
    try:
        job = await pool.enqueue_job("process_engagement_event", user_id, event)
    finally:
        if owned:
            await pool.aclose()
    return job.job_id if job is not None else None


class EngagementWorkerSettings:
    """arq worker settings for engagement jobs."""

    functions = [process_engagement_event, create_progress_for_user]
    on_startup = engagement_startup
    on_shutdown = engagement_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    max_jobs = get_settings().worker_max_jobs
    job_timeout = get_settings().worker_job_timeout_seconds
