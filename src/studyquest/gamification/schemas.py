"""Pydantic response models for engagement endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from studyquest.gamification.orchestrator import TriggerEvent


# --- Progress / XP ---


class ProgressResponse(BaseModel):
    user_id: str
    points: int
    level: int
    progress_percentage: int
    xp_into_level: int
    xp_to_next_level: int
    xp_per_level: int
    streak: int
    longest_streak: int
    last_active_date: date | None = None


class CreateProgressResponse(BaseModel):
    user_id: str
    created: bool


class XPHistoryEntry(BaseModel):
    amount: int
    reason: str | None = None
    created_at: datetime


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]


# --- Streak ---


class StreakResponse(BaseModel):
    current_streak: int
    longest_streak: int
    is_at_risk: bool
    last_active_date: date | None = None


class StreakDayEntry(BaseModel):
    date: date
    is_active: bool
    day_of_week: str


class StreakCalendarResponse(BaseModel):
    days: list[StreakDayEntry]


# --- Badge ---


class BadgeDefinitionResponse(BaseModel):
    id: str
    name: str
    description: str
    requirement: str
    category: str
    xp_reward: int
    icon: str | None = None


class AllBadgesResponse(BaseModel):
    badges: list[BadgeDefinitionResponse]


class BadgeProgressResponse(BaseModel):
    badge_id: str
    name: str
    description: str
    requirement: str
    category: str
    icon: str | None = None
    xp_reward: int
    earned: bool
    earned_at: datetime | None = None
    progress: int
    total: int
    progress_percentage: int


class UserBadgesResponse(BaseModel):
    badges: list[BadgeProgressResponse]
    total_available: int
    total_earned: int


# --- Engagement ---


class EngagementEventRequest(BaseModel):
    event: TriggerEvent
    idempotency_key: str | None = Field(default=None, max_length=128)


class StreakOutcome(BaseModel):
    success: bool
    streak: int
    was_reset: bool


class XPOutcome(BaseModel):
    success: bool
    amount: int
    new_points: int
    old_level: int
    new_level: int
    leveled_up: bool
    duplicate: bool = False


class EngagementResponse(BaseModel):
    user_id: str
    trigger: str
    streak: StreakOutcome
    xp: XPOutcome | None = None
    badges: list[str]
    notifications: list[dict]
    errors: list[str] = []
    user_error: str | None = None
