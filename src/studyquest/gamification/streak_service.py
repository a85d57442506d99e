"""Daily streak state machine and read-only streak queries.

States, keyed by last_active_date relative to today:
  None            -> streak starts at 1
  today (or later) -> no-op
  yesterday       -> streak + 1
  2+ days ago     -> reset to 1 (was_reset)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.config import get_settings
from studyquest.gamification import store
from studyquest.gamification.clock import days_between, get_clock, is_yesterday, last_n_days
from studyquest.gamification.exceptions import EngagementError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakUpdateResult:
    success: bool
    streak: int = 0
    was_reset: bool = False
    previous_active_date: date | None = None
    error: str | None = None


@dataclass(frozen=True)
class StreakDay:
    date: date
    is_active: bool
    day_of_week: str


def next_streak(streak: int, last_active_date: date | None, today: date) -> tuple[int, bool, bool]:
    """Classify and transition. Returns (new_streak, was_reset, changed)."""
    if last_active_date is None:
        return 1, False, True
    gap = days_between(last_active_date, today)
    if gap <= 0:
        # Already counted today; a future date (clock skew) is treated the same.
        return streak, False, False
    if gap == 1:
        return streak + 1, False, True
    return 1, True, True


async def update_streak(
    db: AsyncSession,
    user_id: str,
    *,
    today: date | None = None,
) -> StreakUpdateResult:
    """Record today's activity for a user.

    The read, classification and write form one compare-and-set unit: the
    write only lands if (streak, last_active_date) are unchanged since the
    read. On a lost race the row is re-read and re-classified, so two
    concurrent calls on the same day increment at most once.
    """
    if today is None:
        today = get_clock().today()

    attempts = max(get_settings().streak_cas_retries, 1)
    try:
        for _ in range(attempts):
            progress = await store.get_user_progress(db, user_id)
            current, longest = progress.streak, progress.longest_streak
            previous = progress.last_active_date
            new_streak, was_reset, changed = next_streak(current, previous, today)

            if not changed:
                await db.rollback()
                return StreakUpdateResult(
                    success=True,
                    streak=current,
                    previous_active_date=previous,
                )

            written = await store.compare_and_set_streak(
                db,
                user_id,
                expected_streak=current,
                expected_date=previous,
                streak=new_streak,
                longest_streak=max(longest, new_streak),
                last_active_date=today,
            )
            if written:
                await db.commit()
                if was_reset:
                    logger.info(
                        "Streak reset for user %s: was %d, last active %s",
                        user_id, current, previous,
                    )
                return StreakUpdateResult(
                    success=True,
                    streak=new_streak,
                    was_reset=was_reset,
                    previous_active_date=previous,
                )

            await db.rollback()
            logger.debug("Streak write for user %s lost a race, retrying", user_id)
    except EngagementError as exc:
        await db.rollback()
        logger.warning("Streak update for user %s failed: %s", user_id, exc)
        return StreakUpdateResult(success=False, error=str(exc))

    return StreakUpdateResult(success=False, error="Streak update conflicted with concurrent writers")


async def get_streak_calendar(
    db: AsyncSession,
    user_id: str,
    *,
    today: date | None = None,
) -> list[StreakDay]:
    """The 7 days ending today, oldest first, flagged by streak coverage."""
    if today is None:
        today = get_clock().today()
    progress = await store.get_user_progress(db, user_id)
    last_active = progress.last_active_date

    calendar = []
    for day in last_n_days(today, 7):
        is_active = last_active is not None and (
            days_between(day, today) < progress.streak or day == last_active
        )
        calendar.append(StreakDay(date=day, is_active=is_active, day_of_week=day.strftime("%a")))
    return calendar


def streak_at_risk(streak: int, last_active_date: date | None, today: date) -> bool:
    """A live streak that lapses unless the user is active today."""
    return streak > 0 and last_active_date is not None and is_yesterday(last_active_date, today)


async def should_show_streak_warning(
    db: AsyncSession,
    user_id: str,
    *,
    today: date | None = None,
) -> bool:
    if today is None:
        today = get_clock().today()
    progress = await store.get_user_progress(db, user_id)
    return streak_at_risk(progress.streak, progress.last_active_date, today)


async def get_streak_stats(
    db: AsyncSession,
    user_id: str,
    *,
    today: date | None = None,
) -> dict:
    """Current streak, historical best and at-risk flag."""
    if today is None:
        today = get_clock().today()
    progress = await store.get_user_progress(db, user_id)
    return {
        "current_streak": progress.streak,
        "longest_streak": max(progress.longest_streak, progress.streak),
        "is_at_risk": streak_at_risk(progress.streak, progress.last_active_date, today),
        "last_active_date": progress.last_active_date,
    }
