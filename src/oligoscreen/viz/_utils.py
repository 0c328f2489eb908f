"""Plot styling, run footers and export for oligoscreen figures."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from ..model import ScreeningResults

SCREEN_RC = {
    "figure.dpi": 120,
    "savefig.dpi": 150,
    "font.size": 9,
    "axes.titlesize": 10,
    "axes.grid": False,
    "axes.facecolor": "white",
    "image.interpolation": "nearest",
}

MISSING_COLOR = "#dddddd"

try:  # pragma: no cover - importlib metadata path only runs once
    OLIGOSCREEN_VERSION = metadata.version("oligoscreen")
except metadata.PackageNotFoundError:  # pragma: no cover - source tree
    OLIGOSCREEN_VERSION = "dev"


def apply_rc() -> None:
    plt.rcParams.update(SCREEN_RC)


@dataclass(frozen=True)
class VizSpec:
    """Machine-readable summary written next to an exported figure."""

    kind: str
    run: Dict[str, Any]
    meta: Dict[str, Any] = field(default_factory=dict)
    primitives: Dict[str, Any] = field(default_factory=dict)
    spec_version: str = "1.0"

    def to_json(self) -> str:
        return json.dumps(asdict(self), sort_keys=True, separators=(",", ":"))


def run_summary(results: ScreeningResults) -> Dict[str, Any]:
    params = results.params
    return {
        "template": results.template_name,
        "references": results.total_references,
        "method": params.method.kind,
        "coverage_threshold": params.coverage_threshold,
        "max_mismatches": params.pairwise.max_mismatches,
        "exclusivity_sequences": results.exclusivity_sequence_count,
    }


def _footer_text(spec: VizSpec) -> str:
    run = spec.run
    parts = [f"oligoscreen {OLIGOSCREEN_VERSION}", spec.kind]
    if run:
        parts.append(f"{run.get('template')} vs {run.get('references')} refs")
        parts.append(f"{run.get('method')} @ {run.get('coverage_threshold')}%")
        if run.get("exclusivity_sequences"):
            parts.append(f"{run['exclusivity_sequences']} off-targets")
    return " | ".join(parts)


def finalize(
    fig: plt.Figure,
    spec: VizSpec,
    save: Optional[str] = None,
    save_viz_spec: Optional[str] = None,
) -> Tuple[plt.Figure, Dict[str, Any]]:
    """Stamp the run footer, then write the image and/or spec JSON when asked."""
    fig.text(0.01, 0.005, _footer_text(spec), fontsize=7, color="#555555", ha="left", va="bottom")
    if save:
        Path(save).parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save, bbox_inches="tight", facecolor="white")
    if save_viz_spec:
        Path(save_viz_spec).write_text(spec.to_json(), encoding="utf-8")
    return fig, asdict(spec)
