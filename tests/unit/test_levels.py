"""Level computation tests: fixed 500 XP buckets."""

import pytest

from studyquest.gamification.levels import (
    XP_PER_LEVEL,
    calculate_level,
    calculate_level_progress,
    calculate_xp_to_next_level,
    compute_level,
)


class TestCalculateLevel:
    @pytest.mark.parametrize(
        ("points", "level"),
        [(0, 1), (499, 1), (500, 2), (999, 2), (1000, 3), (4999, 10), (5000, 11)],
    )
    def test_boundaries(self, points, level):
        assert calculate_level(points) == level

    def test_monotonic(self):
        levels = [calculate_level(p) for p in range(0, 5001, 7)]
        assert levels == sorted(levels)

    def test_never_below_one(self):
        assert min(calculate_level(p) for p in range(0, 600)) == 1

    def test_negative_points_rejected(self):
        with pytest.raises(ValueError):
            calculate_level(-1)


class TestLevelProgress:
    def test_zero_at_boundary(self):
        assert calculate_level_progress(500) == 0

    def test_half_way(self):
        assert calculate_level_progress(750) == 50

    def test_always_in_range(self):
        for points in range(0, 2000, 13):
            assert 0 <= calculate_level_progress(points) < 100

    def test_xp_to_next_level(self):
        assert calculate_xp_to_next_level(0) == 500
        assert calculate_xp_to_next_level(480) == 20
        assert calculate_xp_to_next_level(500) == 500
        assert calculate_xp_to_next_level(999) == 1

    def test_negative_points_rejected(self):
        with pytest.raises(ValueError):
            calculate_level_progress(-10)
        with pytest.raises(ValueError):
            calculate_xp_to_next_level(-10)


class TestComputeLevel:
    def test_summary_shape(self):
        result = compute_level(530)
        assert result == {
            "level": 2,
            "progress_percentage": 6,
            "xp_into_level": 30,
            "xp_to_next_level": 470,
            "xp_per_level": XP_PER_LEVEL,
        }

    @pytest.mark.parametrize(("points", "percentage"), [(83, 17), (81, 16), (499, 100), (1, 0)])
    def test_percentage_is_whole_number(self, points, percentage):
        result = compute_level(points)
        assert result["progress_percentage"] == percentage
        assert isinstance(result["progress_percentage"], int)
