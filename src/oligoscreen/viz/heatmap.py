"""Length × position heatmaps of a screening run."""
from __future__ import annotations

from typing import Optional

import matplotlib
import matplotlib.pyplot as plt
import numpy as np

from ..exclusivity import effective_min_mismatches
from ..model import ScreeningResults
from ._utils import MISSING_COLOR, VizSpec, apply_rc, finalize, run_summary

MODES = ("variants", "exclusivity")


def screening_matrix(results: ScreeningResults, *, mode: str = "variants", ignore_closest: int = 0) -> np.ndarray:
    """Return a (lengths, template positions) float matrix, NaN where nothing was evaluated.

    ``variants`` mode holds the variants needed per window; ``exclusivity``
    mode holds the effective minimum mismatches, with off-target sets that
    never matched shown one above the largest observed value.
    """

    if mode not in MODES:
        raise ValueError(f"Unknown heatmap mode {mode!r}; expected one of {MODES}.")
    if mode == "exclusivity" and not results.differential_enabled:
        raise ValueError("Exclusivity heatmap requires a run with exclusivity sequences.")
    lengths = results.lengths()
    width = max(results.template_length, 1)
    matrix = np.full((len(lengths), width), np.nan, dtype=float)
    unmatched = []
    for row, length in enumerate(lengths):
        for pos in results.results_by_length[length].positions:
            if pos.analysis.skipped or pos.position >= width:
                continue
            if mode == "variants":
                matrix[row, pos.position] = pos.variants_needed
                continue
            if pos.exclusivity is None:
                continue
            min_mm = effective_min_mismatches(pos.exclusivity, ignore_closest)
            if min_mm is None:
                unmatched.append((row, pos.position))
            else:
                matrix[row, pos.position] = min_mm
    if unmatched:
        ceiling = np.nanmax(matrix) + 1 if np.isfinite(matrix).any() else results.params.pairwise.max_mismatches + 1
        for row, col in unmatched:
            matrix[row, col] = ceiling
    return matrix


def plot_screening_heatmap(
    results: ScreeningResults,
    *,
    mode: str = "variants",
    ignore_closest: int = 0,
    title: Optional[str] = None,
    save: Optional[str] = None,
    save_viz_spec: Optional[str] = None,
):
    """Render variants-needed (or off-target distance) for every evaluated window."""
    apply_rc()
    matrix = screening_matrix(results, mode=mode, ignore_closest=ignore_closest)
    lengths = results.lengths()
    fig_width = max(6.0, min(24.0, matrix.shape[1] / 25.0 + 2.0))
    fig_height = max(2.5, 0.35 * len(lengths) + 1.5)
    fig, ax = plt.subplots(figsize=(fig_width, fig_height))

    cmap = matplotlib.colormaps["RdYlGn_r" if mode == "variants" else "RdYlGn"].copy()
    cmap.set_bad(MISSING_COLOR)
    image = ax.imshow(np.ma.masked_invalid(matrix), aspect="auto", cmap=cmap, origin="lower")
    ax.set_yticks(range(len(lengths)))
    ax.set_yticklabels([str(length) for length in lengths])
    ax.set_ylabel("Oligo length (bp)")
    ax.set_xlabel("Template position")
    label = "Variants needed" if mode == "variants" else "Min mismatches to off-targets"
    fig.colorbar(image, ax=ax, label=label)
    ax.set_title(title or f"{results.template_name}: {label.lower()}")

    finite = matrix[np.isfinite(matrix)]
    spec = VizSpec(
        kind=f"screening_heatmap.{mode}",
        run=run_summary(results),
        meta={
            "lengths": len(lengths),
            "template_length": results.template_length,
            "ignore_closest": ignore_closest,
        },
        primitives={
            "evaluated_windows": int(finite.size),
            "min_value": float(finite.min()) if finite.size else None,
            "max_value": float(finite.max()) if finite.size else None,
        },
    )
    return finalize(fig, spec, save=save, save_viz_spec=save_viz_spec)


__all__ = ["MODES", "plot_screening_heatmap", "screening_matrix"]
