"""Summaries of screening results for CLI output and markdown reports."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .exclusivity import effective_min_mismatches
from .io import format_sequence_for_display
from .model import PositionResult, ScreeningResults

# ranks "no off-target matched at all" above any finite mismatch count
_UNMATCHED_RANK = 10**9


def _specificity(pos: PositionResult, ignore_closest: int) -> Optional[int]:
    if pos.exclusivity is None:
        return None
    return effective_min_mismatches(pos.exclusivity, ignore_closest)


def _rank_key(pos: PositionResult, ignore_closest: int):
    min_mm = _specificity(pos, ignore_closest)
    if pos.exclusivity is not None and min_mm is None:
        min_mm = _UNMATCHED_RANK
    return (pos.variants_needed, -pos.analysis.coverage_at_threshold, -(min_mm or 0), pos.position)


def best_positions(
    results: ScreeningResults,
    length: int,
    *,
    top: int = 5,
    ignore_closest: int = 0,
) -> List[PositionResult]:
    """Non-skipped positions of one length, best first.

    Fewest variants needed wins, then higher coverage, then larger distance
    to the off-target set, then the earlier position.
    """

    length_result = results.results_by_length.get(length)
    if length_result is None:
        return []
    candidates = [pos for pos in length_result.positions if not pos.analysis.skipped]
    candidates.sort(key=lambda pos: _rank_key(pos, ignore_closest))
    return candidates[:top]


def build_report(
    results: ScreeningResults,
    *,
    top: int = 5,
    ignore_closest: int = 0,
    reverse_comp: bool = False,
    codon_spacing: bool = False,
) -> Dict[str, Any]:
    lengths: List[Dict[str, Any]] = []
    for length in results.lengths():
        positions = results.results_by_length[length].positions
        skipped = sum(1 for pos in positions if pos.analysis.skipped)
        best = []
        for pos in best_positions(results, length, top=top, ignore_closest=ignore_closest):
            window = results.template_sequence[pos.position : pos.position + length]
            best.append(
                {
                    "position": pos.position,
                    "oligo": format_sequence_for_display(
                        window, reverse_comp=reverse_comp, codon_spacing=codon_spacing
                    ),
                    "variants_needed": pos.variants_needed,
                    "coverage": pos.analysis.coverage_at_threshold,
                    "matched": pos.analysis.sequences_analyzed,
                    "no_match": pos.analysis.no_match_count,
                    "min_mismatches": _specificity(pos, ignore_closest),
                    "variants": [
                        {
                            "sequence": format_sequence_for_display(
                                variant.sequence, reverse_comp=reverse_comp, codon_spacing=codon_spacing
                            ),
                            "count": variant.count,
                            "percentage": variant.percentage,
                        }
                        for variant in pos.analysis.variants[: pos.variants_needed]
                    ],
                }
            )
        lengths.append({"oligo_length": length, "positions": len(positions), "skipped": skipped, "best": best})
    return {
        "template": {"name": results.template_name, "length": results.template_length},
        "references": results.total_references,
        "differential": results.differential_enabled,
        "exclusivity_sequences": results.exclusivity_sequence_count,
        "coverage_threshold": results.params.coverage_threshold,
        "method": results.params.method.to_dict(),
        "ignore_closest": ignore_closest,
        "lengths": lengths,
    }


def render_markdown_report(report: Mapping[str, Any]) -> str:
    template = report["template"]
    lines = [
        f"# Oligo screen: {template['name']} ({template['length']} bp)",
        f"References: {report['references']}",
        f"Method: {report['method']['kind']}  Coverage threshold: {report['coverage_threshold']:.1f}%",
    ]
    if report.get("differential"):
        lines.append(
            f"Exclusivity sequences: {report['exclusivity_sequences']} (ignoring {report['ignore_closest']} closest)"
        )
    for entry in report["lengths"]:
        lines.extend(
            [
                "",
                f"## Length {entry['oligo_length']} bp",
                f"Positions: {entry['positions']}  Skipped: {entry['skipped']}",
            ]
        )
        if not entry["best"]:
            lines.append("No usable positions.")
            continue
        for best in entry["best"]:
            specificity = ""
            if report.get("differential"):
                min_mm = best["min_mismatches"]
                specificity = f"  min mismatches: {'no match' if min_mm is None else min_mm}"
            lines.append(
                f"- pos {best['position']}: {best['oligo']}  variants {best['variants_needed']}"
                f"  coverage {best['coverage']:.1f}%  matched {best['matched']}/{best['matched'] + best['no_match']}"
                f"{specificity}"
            )
            for variant in best["variants"]:
                lines.append(f"    {variant['sequence']}  {variant['count']} ({variant['percentage']:.1f}%)")
    return "\n".join(lines) + "\n"


__all__ = ["best_positions", "build_report", "render_markdown_report"]
