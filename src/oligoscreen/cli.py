"""oligoscreen command-line interface: screening, re-thresholding, reports and heatmaps."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__ as OLIGOSCREEN_VERSION
from .io import merge_exclusivity, read_references, read_template
from .model import (
    AnalysisParams,
    FixedAmbiguities,
    Incremental,
    NoAmbiguities,
    PairwiseParams,
    ProgressUpdate,
    ScreeningResults,
    ThreadCount,
)
from .progress import ProgressBus
from .report import build_report, render_markdown_report
from .results_io import load_results, results_filename, save_results
from .run_spec import RUN_SPEC_TEMPLATE, load_run_spec
from .screener import recalculate_coverage, run_screening

LOGGER = logging.getLogger(__name__)


def _method_from_args(args: argparse.Namespace):
    if args.method == "fixed":
        return FixedAmbiguities(args.max_ambiguities if args.max_ambiguities is not None else 1)
    if args.method == "incremental":
        return Incremental(target_pct=args.target_pct, max_ambiguities=args.max_ambiguities)
    return NoAmbiguities()


def _params_from_args(args: argparse.Namespace, base: Optional[AnalysisParams] = None) -> AnalysisParams:
    """Overlay explicit CLI flags on ``base`` (defaults when no config file)."""

    base = base or AnalysisParams()
    pairwise = base.pairwise
    pairwise_overrides = {
        key: getattr(args, key)
        for key in ("match_score", "mismatch_score", "gap_open_penalty", "gap_extend_penalty", "max_mismatches")
        if getattr(args, key) is not None
    }
    if pairwise_overrides:
        pairwise = PairwiseParams(**{**pairwise.to_dict(), **pairwise_overrides})
    return AnalysisParams(
        method=_method_from_args(args) if args.method else base.method,
        min_oligo_length=args.min_length if args.min_length is not None else base.min_oligo_length,
        max_oligo_length=args.max_length if args.max_length is not None else base.max_oligo_length,
        resolution=args.resolution if args.resolution is not None else base.resolution,
        coverage_threshold=args.coverage if args.coverage is not None else base.coverage_threshold,
        exclude_n=base.exclude_n if args.exclude_n is None else args.exclude_n,
        pairwise=pairwise,
        thread_count=ThreadCount.parse(args.threads) if args.threads is not None else base.thread_count,
    )


def _print_progress(event: ProgressUpdate) -> None:
    print(f"[progress] {event.message}", file=sys.stderr)


def _write_or_print(text: str, path: Optional[Path], label: str) -> None:
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        print(f"{label} saved to {path}.")
    else:
        print(text, end="" if text.endswith("\n") else "\n")


def command_screen(args: argparse.Namespace) -> None:
    run_name = None
    if args.config:
        spec = load_run_spec(args.config)
        template_path, references_path = spec.inputs.template, spec.inputs.references
        exclusivity_paths = list(spec.inputs.exclusivity)
        params = _params_from_args(args, spec.params)
        run_name = spec.name
    else:
        if not args.template or not args.references:
            raise ValueError("screen requires --template and --references (or --config).")
        template_path, references_path = args.template, args.references
        exclusivity_paths = list(args.exclusivity or [])
        params = _params_from_args(args)

    template = read_template(template_path)
    references = read_references(references_path)
    exclusivity = merge_exclusivity(exclusivity_paths) if exclusivity_paths else None
    LOGGER.debug(
        "screen template=%s references=%d exclusivity=%s params=%s",
        template.name,
        len(references),
        None if exclusivity is None else len(exclusivity),
        params.to_dict(),
    )
    if exclusivity_paths and exclusivity is None:
        print("No usable exclusivity sequences; differential analysis disabled.", file=sys.stderr)

    bus = ProgressBus()
    if not args.quiet:
        bus.subscribe(_print_progress)
    results = run_screening(template, references, params, exclusivity=exclusivity, progress=bus)

    out_path = args.json
    if out_path is None and args.out_dir is not None:
        out_path = args.out_dir / results_filename(run_name or template.name, args.job_id)
    if out_path is not None:
        save_results(results, out_path)
        print(f"Screening results saved to {out_path}.")
    report = build_report(results, top=args.top)
    print(render_markdown_report(report), end="")


def command_rethreshold(args: argparse.Namespace) -> None:
    results = load_results(args.results)
    updated = recalculate_coverage(results, args.threshold)
    target = args.json or args.results
    save_results(updated, target)
    print(f"Coverage threshold set to {args.threshold:.1f}%; results saved to {target}.")


def command_summary(args: argparse.Namespace) -> None:
    results = load_results(args.results)
    report = build_report(
        results,
        top=args.top,
        ignore_closest=args.ignore_closest,
        reverse_comp=args.reverse_complement,
        codon_spacing=args.codon_spacing,
    )
    if args.format == "json":
        _write_or_print(json.dumps(report, indent=2) + "\n", args.output, "Summary JSON")
    else:
        _write_or_print(render_markdown_report(report), args.output, "Summary")


def command_heatmap(args: argparse.Namespace) -> None:
    from .viz import plot_screening_heatmap

    results: ScreeningResults = load_results(args.results)
    plot_screening_heatmap(
        results,
        mode=args.mode,
        ignore_closest=args.ignore_closest,
        save=str(args.save),
        save_viz_spec=str(args.save_viz_spec) if args.save_viz_spec else None,
    )
    print(f"Heatmap saved to {args.save}.")


def command_init_config(args: argparse.Namespace) -> None:
    if args.output.exists() and not args.force:
        raise ValueError(f"{args.output} already exists (use --force to overwrite).")
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_text(RUN_SPEC_TEMPLATE, encoding="utf-8")
    print(f"Run config template written to {args.output}.")


def _add_param_flags(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("analysis parameters (override config values)")
    group.add_argument("--method", choices=["none", "fixed", "incremental"], help="Variant clustering method.")
    group.add_argument("--max-ambiguities", type=int, help="Ambiguity budget for fixed/incremental methods.")
    group.add_argument("--target-pct", type=int, default=90, help="Incremental: coverage per step (default: 90).")
    group.add_argument("--min-length", type=int, help="Minimum oligo length (default: 18).")
    group.add_argument("--max-length", type=int, help="Maximum oligo length (default: 25).")
    group.add_argument("--resolution", type=int, help="Step between window positions (default: 1).")
    group.add_argument("--coverage", type=float, help="Coverage threshold in percent (default: 95).")
    group.add_argument(
        "--exclude-n",
        dest="exclude_n",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Never widen a position to N (default: on).",
    )
    group.add_argument("--match-score", dest="match_score", type=int)
    group.add_argument("--mismatch-score", dest="mismatch_score", type=int)
    group.add_argument("--gap-open", dest="gap_open_penalty", type=int)
    group.add_argument("--gap-extend", dest="gap_extend_penalty", type=int)
    group.add_argument("--max-mismatches", dest="max_mismatches", type=int, help="Above this, a sequence is a no-match.")
    group.add_argument("--threads", help="Worker threads: 'auto' or an integer.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="oligoscreen", description=__doc__)
    parser.add_argument("--version", action="version", version=f"%(prog)s {OLIGOSCREEN_VERSION}")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    screen = sub.add_parser("screen", help="Screen a template for conserved oligos.")
    screen.add_argument("--config", type=Path, help="YAML run config (kind oligoscreen.screen.v1).")
    screen.add_argument("--template", type=Path, help="Template FASTA (first record is used).")
    screen.add_argument("--references", type=Path, help="Reference FASTA.")
    screen.add_argument("--exclusivity", type=Path, nargs="+", help="Off-target FASTA file(s).")
    screen.add_argument("--json", type=Path, help="Write results JSON here.")
    screen.add_argument("--out-dir", type=Path, help="Auto-save results into this folder.")
    screen.add_argument("--job-id", default="1", help="Job id used in auto-saved file names (default: 1).")
    screen.add_argument("--top", type=int, default=5, help="Best positions listed per length (default: 5).")
    screen.add_argument("--quiet", action="store_true", help="Suppress progress lines.")
    _add_param_flags(screen)
    screen.set_defaults(func=command_screen)

    rethreshold = sub.add_parser("rethreshold", help="Recompute variants needed for a new coverage threshold.")
    rethreshold.add_argument("results", type=Path, help="Screening results JSON.")
    rethreshold.add_argument("--threshold", type=float, required=True, help="Coverage threshold in percent.")
    rethreshold.add_argument("--json", type=Path, help="Output path (default: overwrite input).")
    rethreshold.set_defaults(func=command_rethreshold)

    summary = sub.add_parser("summary", help="Summarize a screening results file.")
    summary.add_argument("results", type=Path, help="Screening results JSON.")
    summary.add_argument("--top", type=int, default=5, help="Best positions listed per length (default: 5).")
    summary.add_argument("--ignore-closest", type=int, default=0, help="Off-targets ignored when ranking specificity.")
    summary.add_argument("--reverse-complement", action="store_true", help="Show oligos and variants reverse-complemented.")
    summary.add_argument("--codon-spacing", action="store_true", help="Group bases in triplets.")
    summary.add_argument("--format", choices=["markdown", "json"], default="markdown")
    summary.add_argument("--output", type=Path, help="Write the summary here instead of stdout.")
    summary.set_defaults(func=command_summary)

    heatmap = sub.add_parser("heatmap", help="Render a length x position heatmap.")
    heatmap.add_argument("results", type=Path, help="Screening results JSON.")
    heatmap.add_argument("--save", type=Path, required=True, help="Output image path.")
    heatmap.add_argument("--mode", choices=["variants", "exclusivity"], default="variants")
    heatmap.add_argument("--ignore-closest", type=int, default=0, help="Off-targets ignored in exclusivity mode.")
    heatmap.add_argument("--save-viz-spec", type=Path, help="Optional JSON summary of the plot.")
    heatmap.set_defaults(func=command_heatmap)

    init_config = sub.add_parser("init-config", help="Write a run config template.")
    init_config.add_argument("--output", type=Path, default=Path("oligoscreen.yaml"))
    init_config.add_argument("--force", action="store_true")
    init_config.set_defaults(func=command_init_config)

    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except ValueError as exc:
        parser.error(str(exc))


if __name__ == "__main__":  # pragma: no cover - manual invocation path
    main()
