"""XP award service with atomic point updates and level-up detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.gamification import store
from studyquest.gamification.exceptions import EngagementError
from studyquest.gamification.levels import calculate_level, compute_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XPAwardResult:
    """Outcome of one award attempt. Failed awards changed nothing."""

    success: bool
    amount: int = 0
    new_points: int = 0
    old_level: int = 1
    new_level: int = 1
    leveled_up: bool = False
    duplicate: bool = False
    error: str | None = None

    @classmethod
    def failure(cls, error: str, *, amount: int = 0, duplicate: bool = False) -> XPAwardResult:
        return cls(success=False, amount=amount, duplicate=duplicate, error=error)


async def award_xp(
    db: AsyncSession,
    user_id: str,
    amount: int,
    reason: str = "",
    *,
    idempotency_key: str | None = None,
) -> XPAwardResult:
    """Add `amount` XP and recompute the level in one transaction.

    1. Append to xp_ledger (claims the idempotency key, if any)
    2. points = points + amount (atomic UPDATE ... RETURNING)
    3. level = calculate_level(points)
    4. Commit, or roll everything back on failure
    """
    if amount <= 0:
        return XPAwardResult.failure(f"XP amount must be positive, got {amount}", amount=amount)

    try:
        recorded = await store.insert_ledger_entry(db, user_id, amount, reason, idempotency_key)
        if not recorded:
            await db.rollback()
            logger.info("Skipped duplicate XP award %s for user %s", idempotency_key, user_id)
            return XPAwardResult.failure("XP award already applied", amount=amount, duplicate=True)

        new_points = await store.increment_points(db, user_id, amount)
        new_level = calculate_level(new_points)
        await store.update_user_progress(db, user_id, level=new_level)
        await db.commit()
    except EngagementError as exc:
        await db.rollback()
        logger.warning("XP award of %d to user %s failed: %s", amount, user_id, exc)
        return XPAwardResult.failure(str(exc), amount=amount)

    old_level = calculate_level(new_points - amount)
    leveled_up = new_level > old_level

    logger.info("Awarded %d XP to user %s (%s), total %d", amount, user_id, reason or "unspecified", new_points)
    if leveled_up:
        logger.info("User %s leveled up from %d to %d", user_id, old_level, new_level)

    return XPAwardResult(
        success=True,
        amount=amount,
        new_points=new_points,
        old_level=old_level,
        new_level=new_level,
        leveled_up=leveled_up,
    )


async def get_xp_summary(db: AsyncSession, user_id: str) -> dict:
    """Points plus derived level information. Raises NotFoundError."""
    progress = await store.get_user_progress(db, user_id)
    return {"points": progress.points, **compute_level(progress.points)}


async def get_xp_history(db: AsyncSession, user_id: str, limit: int = 50) -> list[dict]:
    """Recent XP ledger entries, newest first."""
    entries = await store.get_xp_history(db, user_id, limit)
    return [
        {
            "amount": e.amount,
            "reason": e.reason,
            "created_at": e.created_at,
        }
        for e in entries
    ]
