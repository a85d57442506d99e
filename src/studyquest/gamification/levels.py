"""Level computation from cumulative XP.

Levels are fixed 500 XP buckets: level = points // 500 + 1.
"""

from __future__ import annotations

XP_PER_LEVEL = 500


def _check_points(points: int) -> None:
    if points < 0:
        msg = f"points must be non-negative, got {points}"
        raise ValueError(msg)


def calculate_level(points: int) -> int:
    """Level for a point total. Always >= 1."""
    _check_points(points)
    return points // XP_PER_LEVEL + 1


def calculate_level_progress(points: int) -> float:
    """Progress through the current level as a percentage in [0, 100)."""
    _check_points(points)
    return (points % XP_PER_LEVEL) / XP_PER_LEVEL * 100


def calculate_xp_to_next_level(points: int) -> int:
    """XP remaining until the next level boundary."""
    _check_points(points)
    return max(calculate_level(points) * XP_PER_LEVEL - points, 0)


def compute_level(points: int) -> dict:
    """Level summary used by the progress endpoints. Percentages round half up."""
    return {
        "level": calculate_level(points),
        "progress_percentage": int(calculate_level_progress(points) + 0.5),
        "xp_into_level": points % XP_PER_LEVEL,
        "xp_to_next_level": calculate_xp_to_next_level(points),
        "xp_per_level": XP_PER_LEVEL,
    }
