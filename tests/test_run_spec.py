from __future__ import annotations

from pathlib import Path

import pytest

from oligoscreen.model import FixedAmbiguities, ThreadCount
from oligoscreen.run_spec import RUN_SPEC_KIND, RUN_SPEC_TEMPLATE, RunSpecError, load_run_spec


def _write_inputs(tmp_path: Path) -> None:
    (tmp_path / "template.fasta").write_text(">t\nACGTACGTACGT\n", encoding="utf-8")
    (tmp_path / "refs.fasta").write_text(">r1\nACGTACGTACGT\n>r2\nACGTTCGTACGT\n", encoding="utf-8")


def test_load_run_spec_resolves_paths_and_params(tmp_path: Path) -> None:
    _write_inputs(tmp_path)
    cfg = tmp_path / "run.yaml"
    cfg.write_text(
        f"""
kind: {RUN_SPEC_KIND}
name: demo
inputs:
  template: template.fasta
  references: refs.fasta
  exclusivity: offtarget.fasta
params:
  method:
    kind: fixed_ambiguities
    max_ambiguities: 2
  min_oligo_length: 6
  max_oligo_length: 8
  thread_count: 3
""",
        encoding="utf-8",
    )
    spec = load_run_spec(cfg)
    assert spec.name == "demo"
    assert spec.inputs.template == (tmp_path / "template.fasta").resolve()
    assert spec.inputs.exclusivity == ((tmp_path / "offtarget.fasta").resolve(),)
    assert spec.params.method == FixedAmbiguities(2)
    assert list(spec.params.oligo_lengths) == [6, 7, 8]
    assert spec.params.thread_count == ThreadCount(3)
    assert spec.params.coverage_threshold == 95.0
    assert spec.params.pairwise.max_mismatches == 3


def test_template_config_parses_once_paths_exist(tmp_path: Path) -> None:
    (tmp_path / "path" / "to").mkdir(parents=True)
    (tmp_path / "path/to/template.fasta").write_text(">t\nACGT\n", encoding="utf-8")
    (tmp_path / "path/to/references.fasta").write_text(">r\nACGT\n", encoding="utf-8")
    cfg = tmp_path / "run.yaml"
    cfg.write_text(RUN_SPEC_TEMPLATE, encoding="utf-8")
    spec = load_run_spec(cfg)
    assert spec.params.thread_count.is_auto
    assert spec.inputs.exclusivity == ()


@pytest.mark.parametrize(
    "body, message",
    [
        ("kind: other.v1\n", "Unknown run kind"),
        ("- just\n- a list\n", "mapping"),
        (f"kind: {RUN_SPEC_KIND}\n", "inputs"),
        (f"kind: {RUN_SPEC_KIND}\ninputs:\n  template: template.fasta\n", "references"),
        (f"kind: {RUN_SPEC_KIND}\ninputs:\n  template: nope.fasta\n  references: refs.fasta\n", "not found"),
        (
            f"kind: {RUN_SPEC_KIND}\ninputs:\n  template: template.fasta\n  references: refs.fasta\n"
            "params:\n  min_oligo_length: 30\n  max_oligo_length: 20\n",
            "Invalid params",
        ),
        (
            f"kind: {RUN_SPEC_KIND}\ninputs:\n  template: template.fasta\n  references: refs.fasta\n"
            "params:\n  method: sometimes\n",
            "Invalid params",
        ),
    ],
)
def test_invalid_run_specs(tmp_path: Path, body: str, message: str) -> None:
    _write_inputs(tmp_path)
    cfg = tmp_path / "run.yaml"
    cfg.write_text(body, encoding="utf-8")
    with pytest.raises(RunSpecError, match=message):
        load_run_spec(cfg)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(RunSpecError):
        load_run_spec(tmp_path / "absent.yaml")
