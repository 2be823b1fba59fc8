import pytest

from logic.levels import (
    level_for_xp,
    title_for_level,
    xp_for_next_level,
    xp_progress_in_level,
    xp_progress_percent,
)


@pytest.mark.parametrize("xp,level", [(0, 1), (499, 1), (500, 2), (999, 2), (1000, 3)])
def test_level_boundaries(xp, level):
    assert level_for_xp(xp) == level


def test_level_is_monotonic():
    levels = [level_for_xp(xp) for xp in range(0, 5001, 7)]
    assert levels == sorted(levels)


def test_negative_xp_is_not_clamped():
    assert level_for_xp(-1) == 0


def test_titles():
    assert title_for_level(1) == "Prompt Curious"
    assert title_for_level(10) == "LLM Engineer"
    assert title_for_level(11) == "LLM Master"
    assert title_for_level(0) == "LLM Master"


def test_xp_helpers():
    assert xp_for_next_level(3) == 1500
    assert xp_progress_in_level(1250) == 250
    assert xp_progress_percent(1250) == 50
