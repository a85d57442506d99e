"""Badge seed data: the catalogue shown on the achievements screen."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.db.models import BadgeDefinition
from studyquest.gamification.store import dialect_insert

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Uploads
    {
        "id": "first_upload",
        "name": "First Steps",
        "description": "Upload your first piece of study material",
        "requirement": "Upload 1 document",
        "category": "upload",
        "rule": "upload_count",
        "threshold": 1,
        "xp_reward": 25,
        "icon": "upload",
        "sort_order": 1,
    },
    {
        "id": "upload_10",
        "name": "Knowledge Seeker",
        "description": "Build a small library of study material",
        "requirement": "Upload 10 documents",
        "category": "upload",
        "rule": "upload_count",
        "threshold": 10,
        "xp_reward": 100,
        "icon": "books",
        "sort_order": 2,
    },
    {
        "id": "upload_50",
        "name": "Librarian",
        "description": "Your shelves are full",
        "requirement": "Upload 50 documents",
        "category": "upload",
        "rule": "upload_count",
        "threshold": 50,
        "xp_reward": 300,
        "icon": "library",
        "sort_order": 3,
    },
    # Quizzes
    {
        "id": "first_quiz",
        "name": "Quiz Rookie",
        "description": "Finish your first quiz",
        "requirement": "Complete 1 quiz",
        "category": "quiz",
        "rule": "quiz_completed",
        "threshold": 1,
        "xp_reward": 25,
        "icon": "quiz",
        "sort_order": 4,
    },
    {
        "id": "perfect_quiz",
        "name": "Perfectionist",
        "description": "Answer every question correctly",
        "requirement": "Score 100% on a quiz",
        "category": "quiz",
        "rule": "perfect_quiz_count",
        "threshold": 1,
        "xp_reward": 100,
        "icon": "star",
        "sort_order": 5,
    },
    {
        "id": "perfect_quiz_5",
        "name": "Flawless",
        "description": "Perfect scores are becoming a habit",
        "requirement": "Score 100% on 5 quizzes",
        "category": "quiz",
        "rule": "perfect_quiz_count",
        "threshold": 5,
        "xp_reward": 250,
        "icon": "trophy",
        "sort_order": 6,
    },
    # Streaks
    {
        "id": "streak_3",
        "name": "On a Roll",
        "description": "Study three days in a row",
        "requirement": "Maintain a 3 day streak",
        "category": "streak",
        "rule": "streak_days",
        "threshold": 3,
        "xp_reward": 30,
        "icon": "flame",
        "sort_order": 7,
    },
    {
        "id": "streak_7",
        "name": "Week Warrior",
        "description": "Study every day for a week",
        "requirement": "Maintain a 7 day streak",
        "category": "streak",
        "rule": "streak_days",
        "threshold": 7,
        "xp_reward": 100,
        "icon": "flame",
        "sort_order": 8,
    },
    {
        "id": "streak_30",
        "name": "Unstoppable",
        "description": "A full month without missing a day",
        "requirement": "Maintain a 30 day streak",
        "category": "streak",
        "rule": "streak_days",
        "threshold": 30,
        "xp_reward": 500,
        "icon": "fire",
        "sort_order": 9,
    },
    # Levels
    {
        "id": "level_5",
        "name": "Rising Star",
        "description": "Reach level 5",
        "requirement": "Reach level 5",
        "category": "achievement",
        "rule": "level_reached",
        "threshold": 5,
        "xp_reward": 0,
        "icon": "medal",
        "sort_order": 10,
    },
    {
        "id": "level_10",
        "name": "Scholar",
        "description": "Reach level 10",
        "requirement": "Reach level 10",
        "category": "achievement",
        "rule": "level_reached",
        "threshold": 10,
        "xp_reward": 0,
        "icon": "crown",
        "sort_order": 11,
    },
    # Social, awarded by hand
    {
        "id": "top_10",
        "name": "Top 10",
        "description": "Finish a week in the top 10 of the leaderboard",
        "requirement": "Rank in the weekly top 10",
        "category": "social",
        "rule": "manual",
        "threshold": 0,
        "xp_reward": 200,
        "icon": "podium",
        "sort_order": 12,
    },
    {
        "id": "study_buddy",
        "name": "Study Buddy",
        "description": "Share a study set with a friend",
        "requirement": "Share content with another learner",
        "category": "social",
        "rule": "manual",
        "threshold": 0,
        "xp_reward": 50,
        "icon": "friends",
        "sort_order": 13,
    },
]


async def seed_badges(db: AsyncSession) -> int:
    """Upsert all badge definitions. Returns number of badges seeded."""
    seeded = 0
    for badge_data in BADGE_SEED_DATA:
        stmt = dialect_insert(db, BadgeDefinition).values(**badge_data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "requirement": stmt.excluded.requirement,
                "category": stmt.excluded.category,
                "rule": stmt.excluded.rule,
                "threshold": stmt.excluded.threshold,
                "xp_reward": stmt.excluded.xp_reward,
                "icon": stmt.excluded.icon,
                "sort_order": stmt.excluded.sort_order,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
