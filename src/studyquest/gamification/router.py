"""Engagement API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.auth.dependencies import get_current_user_id
from studyquest.database import get_session
from studyquest.dependencies import get_notification_publisher
from studyquest.gamification import store
from studyquest.gamification.badge_service import get_badge_progress
from studyquest.gamification.levels import compute_level
from studyquest.gamification.orchestrator import EngagementOrchestrator
from studyquest.gamification.schemas import (
    AllBadgesResponse,
    BadgeDefinitionResponse,
    BadgeProgressResponse,
    CreateProgressResponse,
    EngagementEventRequest,
    EngagementResponse,
    ProgressResponse,
    StreakCalendarResponse,
    StreakDayEntry,
    StreakOutcome,
    StreakResponse,
    UserBadgesResponse,
    XPHistoryEntry,
    XPHistoryResponse,
    XPOutcome,
)
from studyquest.gamification.streak_service import get_streak_calendar, get_streak_stats
from studyquest.gamification.xp_service import get_xp_history

router = APIRouter(prefix="/api/v1", tags=["Engagement"])


# ── Public endpoints ──


@router.get("/badges", response_model=AllBadgesResponse)
async def list_badges(db: AsyncSession = Depends(get_session)):
    """Get all badge definitions in display order."""
    badges = await store.get_badge_definitions(db)
    return AllBadgesResponse(badges=[
        BadgeDefinitionResponse(
            id=b.id,
            name=b.name,
            description=b.description,
            requirement=b.requirement,
            category=b.category,
            xp_reward=b.xp_reward,
            icon=b.icon,
        )
        for b in badges
    ])


# ── Authenticated endpoints ──


@router.post("/users/me/progress", response_model=CreateProgressResponse)
async def create_progress(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Create the caller's progress row. Safe to call more than once."""
    created = await store.create_user_progress(db, user_id)
    await db.commit()
    return CreateProgressResponse(user_id=user_id, created=created)


@router.get("/users/me/progress", response_model=ProgressResponse)
async def get_progress(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Points, level and streak for the caller."""
    progress = await store.get_user_progress(db, user_id)
    level_info = compute_level(progress.points)
    return ProgressResponse(
        user_id=user_id,
        points=progress.points,
        level=level_info["level"],
        progress_percentage=level_info["progress_percentage"],
        xp_into_level=level_info["xp_into_level"],
        xp_to_next_level=level_info["xp_to_next_level"],
        xp_per_level=level_info["xp_per_level"],
        streak=progress.streak,
        longest_streak=max(progress.longest_streak, progress.streak),
        last_active_date=progress.last_active_date,
    )


@router.get("/users/me/xp/history", response_model=XPHistoryResponse)
async def xp_history(
    limit: int = Query(50, ge=1, le=200),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Most recent XP ledger entries."""
    entries = await get_xp_history(db, user_id, limit)
    return XPHistoryResponse(entries=[XPHistoryEntry(**e) for e in entries])


@router.get("/users/me/streak", response_model=StreakResponse)
async def get_streak(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    stats = await get_streak_stats(db, user_id)
    return StreakResponse(**stats)


@router.get("/users/me/streak/calendar", response_model=StreakCalendarResponse)
async def streak_calendar(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """The last 7 days, oldest first."""
    days = await get_streak_calendar(db, user_id)
    return StreakCalendarResponse(days=[
        StreakDayEntry(date=d.date, is_active=d.is_active, day_of_week=d.day_of_week)
        for d in days
    ])


@router.get("/users/me/badges", response_model=UserBadgesResponse)
async def my_badges(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
):
    """Every badge with the caller's progress toward it."""
    progress = await get_badge_progress(db, user_id)
    items = [BadgeProgressResponse(**vars(p)) for p in progress]
    return UserBadgesResponse(
        badges=items,
        total_available=len(items),
        total_earned=sum(1 for p in items if p.earned),
    )


@router.post("/users/me/engagement/events", response_model=EngagementResponse)
async def record_engagement(
    body: EngagementEventRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_session),
    redis: Redis | None = Depends(get_notification_publisher),
):
    """Run streak, XP and badge updates for one user action.

    Engagement failures are non-fatal: the response is still 200 with
    `user_error` set.
    """
    idempotency_key = f"{user_id}:{body.idempotency_key}" if body.idempotency_key else None

    orchestrator = EngagementOrchestrator(db, redis)
    outcome = await orchestrator.handle(user_id, body.event, idempotency_key=idempotency_key)

    xp = None
    if outcome.xp is not None:
        xp = XPOutcome(
            success=outcome.xp.success,
            amount=outcome.xp.amount,
            new_points=outcome.xp.new_points,
            old_level=outcome.xp.old_level,
            new_level=outcome.xp.new_level,
            leveled_up=outcome.xp.leveled_up,
            duplicate=outcome.xp.duplicate,
        )
    return EngagementResponse(
        user_id=user_id,
        trigger=outcome.trigger,
        streak=StreakOutcome(
            success=outcome.streak.success,
            streak=outcome.streak.streak,
            was_reset=outcome.streak.was_reset,
        ),
        xp=xp,
        badges=outcome.badges,
        notifications=outcome.notifications.to_list(),
        errors=outcome.errors,
        user_error=outcome.user_error,
    )
