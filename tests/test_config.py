from __future__ import annotations

import pytest

from oligoscreen.config import _THREADS_ENV, available_parallelism, resolve_thread_count
from oligoscreen.model import AnalysisParams, Incremental, PairwiseParams, ThreadCount, method_from_dict


def test_fixed_thread_count_wins_over_env(monkeypatch) -> None:
    monkeypatch.setenv(_THREADS_ENV, "7")
    assert resolve_thread_count(ThreadCount(3)) == 3


def test_env_overrides_auto(monkeypatch) -> None:
    monkeypatch.setenv(_THREADS_ENV, "5")
    assert resolve_thread_count(ThreadCount()) == 5


def test_invalid_env_falls_back_to_hardware(monkeypatch, caplog) -> None:
    monkeypatch.setenv(_THREADS_ENV, "lots")
    assert resolve_thread_count(ThreadCount()) == available_parallelism()
    assert _THREADS_ENV in caplog.text


def test_auto_uses_hardware_parallelism(monkeypatch) -> None:
    monkeypatch.delenv(_THREADS_ENV, raising=False)
    assert resolve_thread_count(ThreadCount()) == available_parallelism() >= 1


def test_thread_count_parsing() -> None:
    assert ThreadCount.parse("auto").is_auto
    assert ThreadCount.parse(None).is_auto
    assert ThreadCount.parse(" 4 ") == ThreadCount(4)
    assert ThreadCount(4).to_dict() == 4
    assert ThreadCount().to_dict() == "auto"
    with pytest.raises(ValueError):
        ThreadCount.parse("many")


def test_params_defaults() -> None:
    params = AnalysisParams()
    assert list(params.oligo_lengths) == list(range(18, 26))
    assert params.coverage_threshold == 95.0
    assert params.exclude_n is True
    assert params.pairwise == PairwiseParams(2, -1, -3, -1, 3)
    assert AnalysisParams.from_dict(params.to_dict()) == params


@pytest.mark.parametrize(
    "overrides",
    [
        {"min_oligo_length": 0},
        {"min_oligo_length": 20, "max_oligo_length": 19},
        {"resolution": 0},
        {"coverage_threshold": 0.0},
        {"coverage_threshold": 100.5},
    ],
)
def test_invalid_params_raise(overrides) -> None:
    with pytest.raises(ValueError):
        AnalysisParams(**overrides)


def test_invalid_pairwise_and_methods_raise() -> None:
    with pytest.raises(ValueError):
        PairwiseParams(mismatch_score=1)
    with pytest.raises(ValueError):
        PairwiseParams(max_mismatches=-1)
    with pytest.raises(ValueError):
        Incremental(target_pct=0)
    with pytest.raises(ValueError):
        method_from_dict({"kind": "clustered"})


def test_method_selector_round_trip() -> None:
    assert method_from_dict("incremental") == Incremental()
    assert method_from_dict({"kind": "Fixed-Ambiguities", "max_ambiguities": 3}).to_dict() == {
        "kind": "fixed_ambiguities",
        "max_ambiguities": 3,
    }
