"""Oligo window enumeration over a template."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List


@dataclass(frozen=True)
class Window:
    length: int
    position: int
    sequence: str

    @property
    def truncated(self) -> bool:
        """True when the template ran out before ``length`` bases."""

        return len(self.sequence) < self.length


def window_positions(template_length: int, oligo_length: int, step: int) -> List[int]:
    """Return start offsets ``0, step, 2*step, ...`` up to ``template_length - oligo_length``.

    A template shorter than the oligo yields the single degenerate offset 0.
    """

    if oligo_length < 1:
        raise ValueError("oligo_length must be >= 1.")
    if step < 1:
        raise ValueError("step must be >= 1.")
    max_start = max(template_length - oligo_length, 0)
    return list(range(0, max_start + 1, step))


def extract_window(template: str, position: int, oligo_length: int) -> Window:
    return Window(length=oligo_length, position=position, sequence=template[position : position + oligo_length])


def iter_windows(template: str, oligo_length: int, step: int) -> Iterator[Window]:
    for position in window_positions(len(template), oligo_length, step):
        yield extract_window(template, position, oligo_length)


__all__ = ["Window", "extract_window", "iter_windows", "window_positions"]
