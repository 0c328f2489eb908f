"""Visualization helpers for oligoscreen (plots live here to isolate dependencies)."""
from __future__ import annotations

from . import heatmap  # noqa: F401
from .heatmap import plot_screening_heatmap, screening_matrix

__all__ = ["heatmap", "plot_screening_heatmap", "screening_matrix"]
