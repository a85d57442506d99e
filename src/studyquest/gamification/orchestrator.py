"""Engagement orchestrator: one entry point per user action.

A trigger runs the streak update, then the XP award, then badge
evaluation, strictly in that order, and collects the visible effects in
an owned NotificationQueue. Store failures are reported on the outcome
and never raised to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.gamification import rewards
from studyquest.gamification.badge_service import check_and_award_badges
from studyquest.gamification.clock import Clock, get_clock
from studyquest.gamification.notifications import (
    BadgeEarned,
    LevelUp,
    NotificationQueue,
    XPAwarded,
    publish_notifications,
)
from studyquest.gamification.streak_service import StreakUpdateResult, update_streak
from studyquest.gamification.xp_service import XPAwardResult, award_xp

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Triggers
# ---------------------------------------------------------------------------


class SessionStart(BaseModel):
    type: Literal["session_start"] = "session_start"
    evaluate_badges: bool = True


class ContentUploaded(BaseModel):
    type: Literal["content_uploaded"] = "content_uploaded"
    evaluate_badges: bool = True


class QuizCompleted(BaseModel):
    type: Literal["quiz_completed"] = "quiz_completed"
    score: float = Field(ge=0, le=100)
    evaluate_badges: bool = True


class StoryChapterCompleted(BaseModel):
    type: Literal["story_chapter_completed"] = "story_chapter_completed"
    evaluate_badges: bool = False


class AudioCompleted(BaseModel):
    type: Literal["audio_completed"] = "audio_completed"
    evaluate_badges: bool = False


TriggerEvent = Annotated[
    Union[SessionStart, ContentUploaded, QuizCompleted, StoryChapterCompleted, AudioCompleted],
    Field(discriminator="type"),
]

trigger_adapter: TypeAdapter[TriggerEvent] = TypeAdapter(TriggerEvent)


def parse_trigger(data: dict) -> TriggerEvent:
    """Validate a raw trigger payload (raises pydantic.ValidationError)."""
    return trigger_adapter.validate_python(data)


def xp_for_trigger(trigger: TriggerEvent) -> tuple[int, str]:
    """Reward-table amount and ledger reason for a trigger."""
    if isinstance(trigger, SessionStart):
        return rewards.DAILY_LOGIN_XP, "daily_login"
    if isinstance(trigger, ContentUploaded):
        return rewards.UPLOAD_XP, "content_upload"
    if isinstance(trigger, QuizCompleted):
        return rewards.quiz_reward(trigger.score), "quiz_completed"
    if isinstance(trigger, StoryChapterCompleted):
        return rewards.STORY_CHAPTER_XP, "story_chapter"
    return rewards.AUDIO_COMPLETE_XP, "audio_complete"


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass
class EngagementOutcome:
    user_id: str
    trigger: str
    streak: StreakUpdateResult
    xp: XPAwardResult | None = None
    badges: list[str] = field(default_factory=list)
    notifications: NotificationQueue = field(default_factory=NotificationQueue)
    errors: list[str] = field(default_factory=list)
    user_error: str | None = None


class EngagementOrchestrator:
    """Runs streak, XP and badge updates for a single user action."""

    def __init__(
        self,
        db: AsyncSession,
        redis: object | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.db = db
        self.redis = redis
        self.clock = clock or get_clock()

    async def handle(
        self,
        user_id: str,
        trigger: TriggerEvent,
        *,
        idempotency_key: str | None = None,
        today: date | None = None,
    ) -> EngagementOutcome:
        if today is None:
            today = self.clock.today()

        streak = await update_streak(self.db, user_id, today=today)
        outcome = EngagementOutcome(user_id=user_id, trigger=trigger.type, streak=streak)
        if not streak.success:
            outcome.errors.append(f"streak: {streak.error}")

        await self._award(outcome, trigger, today, idempotency_key)

        if trigger.evaluate_badges:
            badges = await check_and_award_badges(self.db, user_id)
            if badges.success:
                outcome.badges = badges.newly_earned
            else:
                outcome.errors.append(f"badges: {badges.error}")
            for badge_id in outcome.badges:
                outcome.notifications.enqueue(BadgeEarned(badge_id=badge_id))

        if outcome.errors:
            logger.warning("Engagement for user %s (%s) had errors: %s", user_id, trigger.type, outcome.errors)

        await publish_notifications(self.redis, user_id, outcome.notifications)
        return outcome

    async def _award(
        self,
        outcome: EngagementOutcome,
        trigger: TriggerEvent,
        today: date,
        idempotency_key: str | None,
    ) -> None:
        if isinstance(trigger, SessionStart):
            if not outcome.streak.success:
                # Without the streak read we cannot tell if today was already rewarded.
                outcome.errors.append("xp: daily login skipped, streak state unknown")
                return
            previous = outcome.streak.previous_active_date
            if previous is not None and previous >= today:
                return

        amount, reason = xp_for_trigger(trigger)
        xp = await award_xp(self.db, outcome.user_id, amount, reason, idempotency_key=idempotency_key)
        outcome.xp = xp

        if xp.duplicate:
            return
        if not xp.success:
            outcome.errors.append(f"xp: {xp.error}")
            outcome.user_error = "We couldn't save your progress. Please try again."
            return

        outcome.notifications.enqueue(XPAwarded(amount=xp.amount, reason=reason))
        if xp.leveled_up:
            outcome.notifications.enqueue(LevelUp(old_level=xp.old_level, new_level=xp.new_level))
