"""Badge evaluation: user stats against structured badge rules, awarded once."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.db.models import BadgeDefinition
from studyquest.gamification import store
from studyquest.gamification.exceptions import DuplicateBadgeError, EngagementError, PersistenceError
from studyquest.gamification.levels import calculate_level

logger = logging.getLogger(__name__)


class BadgeCategory(str, Enum):
    UPLOAD = "upload"
    QUIZ = "quiz"
    STREAK = "streak"
    ACHIEVEMENT = "achievement"
    SOCIAL = "social"


class BadgeRule(str, Enum):
    """What a badge's threshold is compared against."""

    UPLOAD_COUNT = "upload_count"
    QUIZ_COMPLETED = "quiz_completed"
    PERFECT_QUIZ_COUNT = "perfect_quiz_count"
    STREAK_DAYS = "streak_days"
    LEVEL_REACHED = "level_reached"
    MANUAL = "manual"


@dataclass(frozen=True)
class UserStatsSnapshot:
    upload_count: int = 0
    perfect_quiz_count: int = 0
    total_quiz_count: int = 0
    current_streak: int = 0
    level: int = 1


@dataclass(frozen=True)
class BadgeCheckResult:
    success: bool
    newly_earned: list[str] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class BadgeProgress:
    badge_id: str
    name: str
    description: str
    requirement: str
    category: str
    icon: str | None
    xp_reward: int
    earned: bool
    earned_at: datetime | None
    progress: int
    total: int
    progress_percentage: int


def rule_value(rule: BadgeRule | str, stats: UserStatsSnapshot) -> int | None:
    """The statistic a rule measures, or None for manually awarded badges."""
    values = {
        BadgeRule.UPLOAD_COUNT: stats.upload_count,
        BadgeRule.QUIZ_COMPLETED: stats.total_quiz_count,
        BadgeRule.PERFECT_QUIZ_COUNT: stats.perfect_quiz_count,
        BadgeRule.STREAK_DAYS: stats.current_streak,
        BadgeRule.LEVEL_REACHED: stats.level,
    }
    try:
        return values.get(BadgeRule(rule))
    except ValueError:
        logger.warning("Unknown badge rule %r", rule)
        return None


def is_satisfied(badge: BadgeDefinition, stats: UserStatsSnapshot) -> bool:
    """Evaluate one badge. Social/manual badges are never auto-awarded."""
    if badge.category == BadgeCategory.SOCIAL.value:
        return False
    value = rule_value(badge.rule, stats)
    if value is None:
        return False
    return value >= max(badge.threshold, 1)


async def get_user_stats(db: AsyncSession, user_id: str) -> UserStatsSnapshot:
    """Aggregate the badge input vector. Raises NotFoundError/PersistenceError."""
    progress = await store.get_user_progress(db, user_id)
    return UserStatsSnapshot(
        upload_count=await store.count_uploads(db, user_id),
        perfect_quiz_count=await store.count_quiz_attempts(db, user_id, perfect_only=True),
        total_quiz_count=await store.count_quiz_attempts(db, user_id),
        current_streak=progress.streak,
        level=calculate_level(progress.points),
    )


async def check_and_award_badges(db: AsyncSession, user_id: str) -> BadgeCheckResult:
    """Award every newly satisfied badge exactly once.

    Returns only the badges inserted by this pass. A badge that loses an
    insert race is treated as already earned. One failing insert does not
    stop the remaining badges from being evaluated.
    """
    try:
        badges = await store.get_badge_definitions(db)
        earned = await store.get_earned_badges(db, user_id)
        stats = await get_user_stats(db, user_id)
    except EngagementError as exc:
        await db.rollback()
        logger.warning("Badge evaluation for user %s failed: %s", user_id, exc)
        return BadgeCheckResult(success=False, error=str(exc))

    candidates = [b.id for b in badges if b.id not in earned and is_satisfied(b, stats)]

    newly_earned: list[str] = []
    for badge_id in candidates:
        try:
            await store.insert_earned_badge(db, user_id, badge_id)
            await db.commit()
        except DuplicateBadgeError:
            await db.rollback()
            logger.debug("Badge %s already earned by user %s", badge_id, user_id)
            continue
        except PersistenceError as exc:
            await db.rollback()
            logger.warning("Could not award badge %s to user %s: %s", badge_id, user_id, exc)
            continue
        newly_earned.append(badge_id)

    if newly_earned:
        logger.info("User %s earned badges: %s", user_id, newly_earned)
    return BadgeCheckResult(success=True, newly_earned=newly_earned)


def _progress_for(
    badge: BadgeDefinition,
    stats: UserStatsSnapshot,
    earned_at: datetime | None,
) -> BadgeProgress:
    total = badge.threshold if rule_value(badge.rule, stats) is not None else 0
    if earned_at is not None:
        progress, percentage = total, 100
    elif total > 0:
        progress = min(rule_value(badge.rule, stats) or 0, total)
        percentage = round(progress / total * 100)
    else:
        progress, percentage = 0, 0

    return BadgeProgress(
        badge_id=badge.id,
        name=badge.name,
        description=badge.description,
        requirement=badge.requirement,
        category=badge.category,
        icon=badge.icon,
        xp_reward=badge.xp_reward,
        earned=earned_at is not None,
        earned_at=earned_at,
        progress=progress,
        total=total,
        progress_percentage=percentage,
    )


async def get_badge_progress(db: AsyncSession, user_id: str) -> list[BadgeProgress]:
    """Every badge with earned state and progress toward its threshold."""
    badges = await store.get_badge_definitions(db)
    earned = await store.get_earned_badges(db, user_id)
    stats = await get_user_stats(db, user_id)
    return [_progress_for(b, stats, earned.get(b.id)) for b in badges]


async def get_badge_details(db: AsyncSession, badge_ids: list[str]) -> list[BadgeDefinition]:
    """Definitions for the given ids, in display order."""
    return await store.get_badge_definitions_by_ids(db, badge_ids)
