"""XP reward table.

This is caller policy: the XP engine accepts any positive amount and the
orchestrator picks the amount from here.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

DAILY_LOGIN_XP = 10
UPLOAD_XP = 50
STORY_CHAPTER_XP = 40
AUDIO_COMPLETE_XP = 30
QUIZ_BASE_XP = 50
QUIZ_PERFECT_XP = 150


def quiz_reward(score: float) -> int:
    """Quiz XP scaled linearly from QUIZ_BASE_XP (0%) to QUIZ_PERFECT_XP (100%).

    Scores outside 0-100 are clamped. Halves round up.
    """
    score = min(max(score, 0), 100)
    raw = Decimal(QUIZ_BASE_XP) + Decimal(str(score)) / 100 * (QUIZ_PERFECT_XP - QUIZ_BASE_XP)
    return int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
