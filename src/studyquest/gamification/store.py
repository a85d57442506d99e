"""Data store interface for the engagement core.

Every function takes the caller's AsyncSession and never commits: services
own the transaction boundary. SQLAlchemy failures are re-raised as
PersistenceError so services can report them as failed results.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from studyquest.db.models import (
    BadgeDefinition,
    ContentUpload,
    QuizAttempt,
    UserBadge,
    UserProgress,
    XPLedger,
)
from studyquest.gamification.exceptions import DuplicateBadgeError, NotFoundError, PersistenceError

_PROGRESS_FIELDS = frozenset({"points", "level", "streak", "longest_streak", "last_active_date"})


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        msg = f"{operation} failed: {exc.__class__.__name__}"
        raise PersistenceError(msg) from exc


def dialect_insert(db: AsyncSession, model: type) -> Any:  # noqa: ANN401
    """Dialect-specific INSERT so ON CONFLICT works on Postgres and SQLite."""
    if db.get_bind().dialect.name == "sqlite":
        return sqlite_insert(model)
    return pg_insert(model)


# ---------------------------------------------------------------------------
# User progress
# ---------------------------------------------------------------------------


async def create_user_progress(db: AsyncSession, user_id: str) -> bool:
    """Create the progress row at account creation. Returns False if it existed."""
    stmt = (
        dialect_insert(db, UserProgress)
        .values(user_id=user_id, points=0, level=1, streak=0, longest_streak=0)
        .on_conflict_do_nothing(index_elements=["user_id"])
        .returning(UserProgress.user_id)
    )
    with _store_errors("create_user_progress"):
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None


async def get_user_progress(db: AsyncSession, user_id: str) -> UserProgress:
    """Fetch a user's progress row, bypassing any stale identity-map copy."""
    stmt = (
        select(UserProgress)
        .where(UserProgress.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    with _store_errors("get_user_progress"):
        result = await db.execute(stmt)
        progress = result.scalar_one_or_none()
    if progress is None:
        raise NotFoundError(user_id)
    return progress


async def update_user_progress(db: AsyncSession, user_id: str, **fields: Any) -> None:  # noqa: ANN401
    """Partial update of points/level/streak/longest_streak/last_active_date."""
    unknown = set(fields) - _PROGRESS_FIELDS
    if unknown:
        msg = f"Unknown progress fields: {sorted(unknown)}"
        raise ValueError(msg)
    stmt = (
        update(UserProgress)
        .where(UserProgress.user_id == user_id)
        .values(**fields, updated_at=func.now())
        .execution_options(synchronize_session=False)
    )
    with _store_errors("update_user_progress"):
        result = await db.execute(stmt)
    if result.rowcount == 0:
        raise NotFoundError(user_id)


async def increment_points(db: AsyncSession, user_id: str, amount: int) -> int:
    """Atomically add `amount` to points and return the new total."""
    stmt = (
        update(UserProgress)
        .where(UserProgress.user_id == user_id)
        .values(points=UserProgress.points + amount, updated_at=func.now())
        .returning(UserProgress.points)
        .execution_options(synchronize_session=False)
    )
    with _store_errors("increment_points"):
        result = await db.execute(stmt)
        new_points = result.scalar_one_or_none()
    if new_points is None:
        raise NotFoundError(user_id)
    return new_points


async def compare_and_set_streak(
    db: AsyncSession,
    user_id: str,
    *,
    expected_streak: int,
    expected_date: date | None,
    streak: int,
    longest_streak: int,
    last_active_date: date,
) -> bool:
    """Write the streak only if nobody changed it since it was read."""
    date_guard = (
        UserProgress.last_active_date.is_(None)
        if expected_date is None
        else UserProgress.last_active_date == expected_date
    )
    stmt = (
        update(UserProgress)
        .where(
            UserProgress.user_id == user_id,
            UserProgress.streak == expected_streak,
            date_guard,
        )
        .values(
            streak=streak,
            longest_streak=longest_streak,
            last_active_date=last_active_date,
            updated_at=func.now(),
        )
        .execution_options(synchronize_session=False)
    )
    with _store_errors("compare_and_set_streak"):
        result = await db.execute(stmt)
    return result.rowcount == 1


# ---------------------------------------------------------------------------
# XP ledger
# ---------------------------------------------------------------------------


async def insert_ledger_entry(
    db: AsyncSession,
    user_id: str,
    amount: int,
    reason: str | None,
    idempotency_key: str | None = None,
) -> bool:
    """Append an XP ledger row. Returns False if the idempotency key was used."""
    values = {
        "user_id": user_id,
        "amount": amount,
        "reason": reason,
        "idempotency_key": idempotency_key,
    }
    with _store_errors("insert_ledger_entry"):
        if idempotency_key is None:
            db.add(XPLedger(**values))
            await db.flush()
            return True
        stmt = (
            dialect_insert(db, XPLedger)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["idempotency_key"])
            .returning(XPLedger.id)
        )
        result = await db.execute(stmt)
        return result.scalar_one_or_none() is not None


async def get_xp_history(db: AsyncSession, user_id: str, limit: int = 50) -> list[XPLedger]:
    """Newest ledger entries first."""
    stmt = (
        select(XPLedger)
        .where(XPLedger.user_id == user_id)
        .order_by(XPLedger.created_at.desc(), XPLedger.id.desc())
        .limit(limit)
    )
    with _store_errors("get_xp_history"):
        result = await db.execute(stmt)
        return list(result.scalars())


# ---------------------------------------------------------------------------
# Activity counts
# ---------------------------------------------------------------------------


async def count_uploads(db: AsyncSession, user_id: str) -> int:
    stmt = select(func.count()).select_from(ContentUpload).where(ContentUpload.user_id == user_id)
    with _store_errors("count_uploads"):
        return (await db.execute(stmt)).scalar_one()


async def count_quiz_attempts(db: AsyncSession, user_id: str, *, perfect_only: bool = False) -> int:
    """Quiz attempts for a user; `perfect_only` keeps 100% scores."""
    stmt = select(func.count()).select_from(QuizAttempt).where(QuizAttempt.user_id == user_id)
    if perfect_only:
        stmt = stmt.where(QuizAttempt.percentage == 100)
    with _store_errors("count_quiz_attempts"):
        return (await db.execute(stmt)).scalar_one()


# ---------------------------------------------------------------------------
# Badges
# ---------------------------------------------------------------------------


async def get_badge_definitions(db: AsyncSession) -> list[BadgeDefinition]:
    stmt = select(BadgeDefinition).order_by(BadgeDefinition.sort_order, BadgeDefinition.id)
    with _store_errors("get_badge_definitions"):
        return list((await db.execute(stmt)).scalars())


async def get_badge_definitions_by_ids(db: AsyncSession, badge_ids: list[str]) -> list[BadgeDefinition]:
    if not badge_ids:
        return []
    stmt = (
        select(BadgeDefinition)
        .where(BadgeDefinition.id.in_(badge_ids))
        .order_by(BadgeDefinition.sort_order)
    )
    with _store_errors("get_badge_definitions_by_ids"):
        return list((await db.execute(stmt)).scalars())


async def get_earned_badges(db: AsyncSession, user_id: str) -> dict[str, datetime]:
    """Earned badge ids mapped to when they were earned."""
    stmt = select(UserBadge.badge_id, UserBadge.earned_at).where(UserBadge.user_id == user_id)
    with _store_errors("get_earned_badges"):
        rows = (await db.execute(stmt)).all()
    return {row.badge_id: row.earned_at for row in rows}


async def insert_earned_badge(db: AsyncSession, user_id: str, badge_id: str) -> None:
    """Insert-if-absent on UNIQUE(user_id, badge_id).

    Raises DuplicateBadgeError when the pair already exists.
    """
    stmt = (
        dialect_insert(db, UserBadge)
        .values(user_id=user_id, badge_id=badge_id)
        .on_conflict_do_nothing(index_elements=["user_id", "badge_id"])
        .returning(UserBadge.id)
    )
    with _store_errors("insert_earned_badge"):
        inserted = (await db.execute(stmt)).scalar_one_or_none()
    if inserted is None:
        raise DuplicateBadgeError(user_id, badge_id)
