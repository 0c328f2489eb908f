"""JSON persistence for screening results."""
from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

from .model import ScreeningResults

RESULTS_FORMAT = "oligoscreen.results"
RESULTS_FORMAT_VERSION = 1


class ResultsFormatError(ValueError):
    """Raised when a results payload cannot be read back."""


def sanitize_run_name(name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9_-]+", "_", name.strip())
    cleaned = cleaned.strip("_")
    return cleaned or "screening"


def results_filename(name: str, job_id: int | str) -> str:
    """Auto-save file name for a run, e.g. ``my_template_3.json``."""

    return f"{sanitize_run_name(name)}_{job_id}.json"


def results_to_payload(results: ScreeningResults) -> dict[str, Any]:
    return {
        "format": RESULTS_FORMAT,
        "version": RESULTS_FORMAT_VERSION,
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "results": results.to_dict(),
    }


def results_from_payload(payload: Mapping[str, Any]) -> ScreeningResults:
    if not isinstance(payload, Mapping):
        raise ResultsFormatError("Results payload must be a JSON object.")
    # bare ScreeningResults objects (no envelope) are accepted as well
    body = payload.get("results", payload)
    version = payload.get("version", RESULTS_FORMAT_VERSION)
    if isinstance(version, int) and version > RESULTS_FORMAT_VERSION:
        raise ResultsFormatError(
            f"Results format version {version} is newer than supported version {RESULTS_FORMAT_VERSION}."
        )
    try:
        return ScreeningResults.from_dict(body)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ResultsFormatError(f"Invalid screening results payload: {exc}") from exc


def results_to_json(results: ScreeningResults, *, indent: int | None = 2) -> str:
    return json.dumps(results_to_payload(results), indent=indent)


def results_from_json(text: str) -> ScreeningResults:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResultsFormatError(f"Results file is not valid JSON: {exc}") from exc
    return results_from_payload(payload)


def save_results(results: ScreeningResults, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(results_to_json(results) + "\n", encoding="utf-8")
    return path


def load_results(path: Path) -> ScreeningResults:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ResultsFormatError(f"Failed to read results from {path}: {exc}") from exc
    return results_from_json(text)


__all__ = [
    "RESULTS_FORMAT",
    "RESULTS_FORMAT_VERSION",
    "ResultsFormatError",
    "load_results",
    "results_filename",
    "results_from_json",
    "results_from_payload",
    "results_to_json",
    "results_to_payload",
    "sanitize_run_name",
    "save_results",
]
