"""
Screening run config helpers (YAML → structured config).
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .model import AnalysisParams

RUN_SPEC_KIND = "oligoscreen.screen.v1"

RUN_SPEC_TEMPLATE = """\
kind: oligoscreen.screen.v1
name: example_screen
description: "Conserved oligo screen."

inputs:
  template: path/to/template.fasta
  references: path/to/references.fasta
  exclusivity: []

params:
  method:
    kind: no_ambiguities
  min_oligo_length: 18
  max_oligo_length: 25
  resolution: 1
  coverage_threshold: 95.0
  exclude_n: true
  pairwise:
    match_score: 2
    mismatch_score: -1
    gap_open_penalty: -3
    gap_extend_penalty: -1
    max_mismatches: 3
  thread_count: auto
"""


class RunSpecError(ValueError):
    """Raised when a run config is invalid."""


def _resolve_path(base: Path, value: str) -> Path:
    path = Path(value.strip())
    if not path.is_absolute():
        path = (base / path).resolve()
    return path


@dataclass(frozen=True)
class RunInputs:
    template: Path
    references: Path
    exclusivity: Tuple[Path, ...] = ()


@dataclass(frozen=True)
class RunSpec:
    kind: str
    name: str
    description: Optional[str]
    inputs: RunInputs
    params: AnalysisParams


def load_run_spec(path: Path) -> RunSpec:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise RunSpecError(f"Run config '{cfg_path}' not found.")
    try:
        data = yaml.safe_load(cfg_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise RunSpecError(f"Run config '{cfg_path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise RunSpecError("Run config must be a YAML mapping.")
    kind = str(data.get("kind", "")).strip()
    if kind != RUN_SPEC_KIND:
        raise RunSpecError(f"Unknown run kind {kind!r}. Supported kind: '{RUN_SPEC_KIND}'.")
    return RunSpec(
        kind=kind,
        name=str(data.get("name") or "unnamed_screen"),
        description=str(data.get("description") or "").strip() or None,
        inputs=_parse_inputs(cfg_path, data),
        params=_parse_params(data.get("params", {})),
    )


def _parse_inputs(cfg_path: Path, data: Dict[str, Any]) -> RunInputs:
    inputs = data.get("inputs")
    if not isinstance(inputs, dict):
        raise RunSpecError("Run config requires an 'inputs' section.")
    resolved: Dict[str, Path] = {}
    for key in ("template", "references"):
        value = inputs.get(key)
        if not value:
            raise RunSpecError(f"Inputs section requires a '{key}' FASTA path.")
        path = _resolve_path(cfg_path.parent, str(value))
        if not path.exists():
            raise RunSpecError(f"{key.capitalize()} FASTA '{path}' not found.")
        resolved[key] = path

    raw_excl = inputs.get("exclusivity") or []
    if isinstance(raw_excl, str):
        raw_excl = [raw_excl]
    if not isinstance(raw_excl, list):
        raise RunSpecError("'inputs.exclusivity' must be a path or a list of paths.")
    exclusivity = tuple(_resolve_path(cfg_path.parent, str(item)) for item in raw_excl)
    return RunInputs(template=resolved["template"], references=resolved["references"], exclusivity=exclusivity)


def _parse_params(section: Any) -> AnalysisParams:
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise RunSpecError("'params' must be a mapping.")
    try:
        return AnalysisParams.from_dict(section)
    except (TypeError, ValueError) as exc:
        raise RunSpecError(f"Invalid params: {exc}") from exc


__all__ = ["RUN_SPEC_KIND", "RUN_SPEC_TEMPLATE", "RunInputs", "RunSpec", "RunSpecError", "load_run_spec"]
