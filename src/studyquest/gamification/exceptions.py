"""Engagement error taxonomy.

Store functions raise these. Service operations catch them and report a
failed result instead, so nothing crosses the orchestrator boundary uncaught.
"""

from __future__ import annotations


class EngagementError(Exception):
    """Base class for engagement-core failures."""


class PersistenceError(EngagementError):
    """The data store could not be read or written."""


class NotFoundError(EngagementError):
    """A user has no progress row (it is created at account creation)."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"No progress record for user {user_id}")
        self.user_id = user_id


class DuplicateBadgeError(EngagementError):
    """The badge was already earned. Benign: collapses to 'already earned'."""

    def __init__(self, user_id: str, badge_id: str) -> None:
        super().__init__(f"Badge {badge_id} already earned by user {user_id}")
        self.user_id = user_id
        self.badge_id = badge_id
