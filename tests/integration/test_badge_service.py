"""Integration tests for badge_service: one-time awards and progress."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from studyquest.db.models import ContentUpload, QuizAttempt, UserBadge
from studyquest.gamification import store
from studyquest.gamification.badge_service import (
    check_and_award_badges,
    get_badge_details,
    get_badge_progress,
    get_user_stats,
)
from studyquest.gamification.exceptions import DuplicateBadgeError


async def _add_uploads(db, user_id: str, count: int) -> None:
    for n in range(count):
        db.add(ContentUpload(user_id=user_id, title=f"Chapter {n}"))
    await db.commit()


async def _add_quiz(db, user_id: str, percentage: int) -> None:
    db.add(QuizAttempt(user_id=user_id, score=percentage // 10, percentage=percentage))
    await db.commit()


async def _badge_rows(db, user_id: str) -> int:
    stmt = select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user_id)
    return (await db.execute(stmt)).scalar_one()


class TestUserStats:
    @pytest.mark.asyncio
    async def test_aggregates_counts(self, seeded_db, make_user):
        await make_user(points=2100, streak=4)
        await _add_uploads(seeded_db, "user-1", 2)
        await _add_quiz(seeded_db, "user-1", 100)
        await _add_quiz(seeded_db, "user-1", 70)
        await _add_uploads(seeded_db, "someone-else", 3)

        stats = await get_user_stats(seeded_db, "user-1")

        assert stats.upload_count == 2
        assert stats.total_quiz_count == 2
        assert stats.perfect_quiz_count == 1
        assert stats.current_streak == 4
        assert stats.level == 5


class TestCheckAndAwardBadges:
    @pytest.mark.asyncio
    async def test_first_upload_awarded_once(self, seeded_db, make_user):
        await make_user()
        await _add_uploads(seeded_db, "user-1", 1)

        first = await check_and_award_badges(seeded_db, "user-1")
        second = await check_and_award_badges(seeded_db, "user-1")

        assert first.success is True
        assert first.newly_earned == ["first_upload"]
        assert second.success is True
        assert second.newly_earned == []
        assert await _badge_rows(seeded_db, "user-1") == 1

    @pytest.mark.asyncio
    async def test_multiple_badges_in_display_order(self, seeded_db, make_user):
        await make_user(streak=7)
        await _add_quiz(seeded_db, "user-1", 100)

        result = await check_and_award_badges(seeded_db, "user-1")

        assert result.newly_earned == ["first_quiz", "perfect_quiz", "streak_3", "streak_7"]

    @pytest.mark.asyncio
    async def test_level_badges(self, seeded_db, make_user):
        await make_user(points=4600)

        result = await check_and_award_badges(seeded_db, "user-1")

        assert result.newly_earned == ["level_5", "level_10"]

    @pytest.mark.asyncio
    async def test_social_badges_never_awarded(self, seeded_db, make_user):
        await make_user(points=10_000, streak=40)
        await _add_uploads(seeded_db, "user-1", 50)

        result = await check_and_award_badges(seeded_db, "user-1")

        assert "top_10" not in result.newly_earned
        assert "study_buddy" not in result.newly_earned

    @pytest.mark.asyncio
    async def test_nothing_earned_for_new_user(self, seeded_db, make_user):
        await make_user()
        result = await check_and_award_badges(seeded_db, "user-1")
        assert result.success is True
        assert result.newly_earned == []

    @pytest.mark.asyncio
    async def test_unknown_user_fails(self, seeded_db):
        result = await check_and_award_badges(seeded_db, "ghost")
        assert result.success is False
        assert result.error

    @pytest.mark.asyncio
    async def test_lost_insert_race_counts_as_earned(self, seeded_db, make_user, monkeypatch):
        await make_user()
        await _add_uploads(seeded_db, "user-1", 1)

        async def raced(db, user_id, badge_id):
            raise DuplicateBadgeError(user_id, badge_id)

        monkeypatch.setattr(store, "insert_earned_badge", raced)

        result = await check_and_award_badges(seeded_db, "user-1")

        assert result.success is True
        assert result.newly_earned == []


class TestInsertEarnedBadge:
    @pytest.mark.asyncio
    async def test_duplicate_pair_rejected(self, seeded_db, make_user):
        await make_user()
        await store.insert_earned_badge(seeded_db, "user-1", "first_upload")
        await seeded_db.commit()

        with pytest.raises(DuplicateBadgeError):
            await store.insert_earned_badge(seeded_db, "user-1", "first_upload")
        await seeded_db.rollback()

        assert await _badge_rows(seeded_db, "user-1") == 1


class TestBadgeProgress:
    @pytest.mark.asyncio
    async def test_progress_toward_thresholds(self, seeded_db, make_user):
        await make_user()
        await _add_uploads(seeded_db, "user-1", 4)
        await check_and_award_badges(seeded_db, "user-1")

        progress = {p.badge_id: p for p in await get_badge_progress(seeded_db, "user-1")}

        assert progress["first_upload"].earned is True
        assert progress["first_upload"].progress_percentage == 100
        assert progress["first_upload"].earned_at is not None
        assert progress["upload_10"].earned is False
        assert (progress["upload_10"].progress, progress["upload_10"].total) == (4, 10)
        assert progress["upload_10"].progress_percentage == 40
        assert progress["top_10"].total == 0
        assert progress["top_10"].progress_percentage == 0

    @pytest.mark.asyncio
    async def test_progress_capped_at_threshold(self, seeded_db, make_user):
        await make_user(streak=12)

        progress = {p.badge_id: p for p in await get_badge_progress(seeded_db, "user-1")}

        assert progress["streak_7"].progress == 7
        assert progress["streak_7"].progress_percentage == 100

    @pytest.mark.asyncio
    async def test_badge_details(self, seeded_db):
        badges = await get_badge_details(seeded_db, ["streak_7", "first_upload", "missing"])
        assert [b.id for b in badges] == ["first_upload", "streak_7"]
        assert badges[1].name == "Week Warrior"
        assert await get_badge_details(seeded_db, []) == []
