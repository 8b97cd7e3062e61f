import numpy as np
import pytest

from weavinator.core.scatter import DOWN, RIGHT, pseudo_random, scatter_direction


def test_pseudo_random_is_stable_and_in_range():
    values = [pseudo_random(c, r, s) for c in range(30) for r in range(30) for s in (0, 7, 123)]
    again = [pseudo_random(c, r, s) for c in range(30) for r in range(30) for s in (0, 7, 123)]
    assert values == again
    assert all(0.0 <= v < 1.0 for v in values)


def test_seed_changes_the_hash():
    a = [pseudo_random(c, r, 1) for c in range(10) for r in range(10)]
    b = [pseudo_random(c, r, 2) for c in range(10) for r in range(10)]
    assert a != b


def test_roughly_uniform():
    values = np.array([pseudo_random(c, r, 0) for c in range(100) for r in range(100)])
    assert 0.4 < (values < 0.5).mean() < 0.6


def test_no_jump_at_zero_intensity():
    assert scatter_direction(0.0, 0) is None
    assert scatter_direction(0.5, 0) is None


def test_full_intensity_always_jumps():
    for c in range(20):
        for r in range(20):
            assert scatter_direction(pseudo_random(c, r, 5), 100) in (RIGHT, DOWN)


@pytest.mark.parametrize(
    "value,intensity,expected",
    [
        (0.05, 100, RIGHT),
        (0.15, 100, DOWN),
        (0.25, 100, RIGHT),
        (0.29, 30, RIGHT),
        (0.3, 30, None),
        (0.9, 50, None),
    ],
)
def test_direction_rule(value, intensity, expected):
    assert scatter_direction(value, intensity) == expected
