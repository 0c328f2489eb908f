from __future__ import annotations

import pytest

from oligoscreen.windows import extract_window, iter_windows, window_positions


def test_positions_cover_template_inclusive() -> None:
    positions = window_positions(31, 10, 1)
    assert positions[0] == 0
    assert positions[-1] == 21
    assert len(positions) == 22


def test_positions_respect_resolution() -> None:
    assert window_positions(30, 10, 5) == [0, 5, 10, 15, 20]
    assert window_positions(30, 10, 7) == [0, 7, 14]


def test_short_template_yields_single_degenerate_position() -> None:
    assert window_positions(8, 10, 1) == [0]
    window = extract_window("ACGTACGT", 0, 10)
    assert window.truncated
    assert window.sequence == "ACGTACGT"


def test_exact_fit_has_one_full_window() -> None:
    windows = list(iter_windows("ACGTACGTAC", 10, 3))
    assert len(windows) == 1
    assert not windows[0].truncated


@pytest.mark.parametrize("length, step", [(0, 1), (5, 0)])
def test_invalid_window_arguments_raise(length: int, step: int) -> None:
    with pytest.raises(ValueError):
        window_positions(20, length, step)
