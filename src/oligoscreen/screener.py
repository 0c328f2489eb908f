"""
Screening orchestration.

Sweeps every oligo length in ``[min_oligo_length, max_oligo_length]`` one at
a time and evaluates all window positions of a length in parallel on a
bounded thread pool. Each worker thread lazily builds one
:class:`~oligoscreen.pairwise.PairwiseMatcher` per length and reuses it for
every position it is handed. Position results are independent and only
merged (sorted by position) after the whole length has finished.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from time import perf_counter
from typing import Callable, Dict, List, Optional, Sequence

from .analyzer import analyze_sequences, rescale_to_total, skipped_result, threshold_prefix
from .config import resolve_thread_count
from .exclusivity import build_exclusivity_result
from .model import (
    AnalysisParams,
    ExclusivityResult,
    LengthResult,
    PositionResult,
    ProgressUpdate,
    ReferenceSet,
    ScreeningResults,
    TemplateSequence,
    WindowAnalysisResult,
)
from .pairwise import PairwiseMatcher
from .progress import CompletionCounter, ProgressSink, should_emit
from .windows import extract_window, window_positions

LOGGER = logging.getLogger(__name__)

TEMPLATE_TOO_SHORT_REASON = "Template shorter than oligo length"

MatcherFactory = Callable[[], PairwiseMatcher]


class WorkerMatchers:
    """One matcher per worker thread, built on first use from ``factory``."""

    def __init__(self, factory: MatcherFactory):
        self._factory = factory
        self._local = threading.local()
        self._lock = threading.Lock()
        self.created = 0

    def get(self) -> PairwiseMatcher:
        matcher = getattr(self._local, "matcher", None)
        if matcher is None:
            matcher = self._factory()
            self._local.matcher = matcher
            with self._lock:
                self.created += 1
        return matcher


def create_pool(num_threads: int) -> ThreadPoolExecutor:
    try:
        return ThreadPoolExecutor(max_workers=num_threads, thread_name_prefix="oligoscreen")
    except ValueError as exc:
        LOGGER.warning("Cannot build a pool with %s workers (%s); falling back to the default pool.", num_threads, exc)
        return ThreadPoolExecutor(thread_name_prefix="oligoscreen")


def analyze_window(
    template: str,
    references: Sequence[str],
    params: AnalysisParams,
    position: int,
    length: int,
    matcher: PairwiseMatcher,
) -> WindowAnalysisResult:
    """Align one template window against every reference and cluster the matches."""

    total = len(references)
    window = extract_window(template, position, length)
    if window.truncated:
        return skipped_result(total, total, TEMPLATE_TOO_SHORT_REASON)

    matched, no_match = matcher.collect_matches(window.sequence, references)
    if not matched:
        return skipped_result(total, no_match)

    result = analyze_sequences(matched, params.method, params.exclude_n, params.coverage_threshold)
    result = replace(result, total_sequences=total, sequences_analyzed=len(matched), no_match_count=no_match)
    if total > len(matched):
        result = rescale_to_total(result, total, params.coverage_threshold)
    return result


def analyze_exclusivity(
    template: str,
    sequences: Sequence[str],
    names: Sequence[str],
    position: int,
    length: int,
    matcher: PairwiseMatcher,
) -> ExclusivityResult:
    """Histogram of mismatches between one template window and the off-target set."""

    window = extract_window(template, position, length)
    if window.truncated:
        return build_exclusivity_result([None] * len(sequences), names)
    counts = matcher.collect_mismatch_counts(window.sequence, sequences)
    return build_exclusivity_result(counts, names)


def _analyze_length(
    pool: ThreadPoolExecutor,
    template: str,
    references: Sequence[str],
    exclusivity: Optional[ReferenceSet],
    params: AnalysisParams,
    oligo_length: int,
    length_idx: int,
    total_lengths: int,
    progress: Optional[ProgressSink],
) -> LengthResult:
    positions = window_positions(len(template), oligo_length, params.resolution)
    total_positions = len(positions)
    counter = CompletionCounter()
    matchers = WorkerMatchers(lambda: PairwiseMatcher(oligo_length, params.pairwise))
    excl_sequences = list(exclusivity.sequences) if exclusivity is not None else None
    excl_names = list(exclusivity.names) if exclusivity is not None else None

    def _work(position: int) -> PositionResult:
        matcher = matchers.get()
        analysis = analyze_window(template, references, params, position, oligo_length, matcher)
        excl = None
        if excl_sequences is not None:
            excl = analyze_exclusivity(template, excl_sequences, excl_names, position, oligo_length, matcher)
        completed = counter.increment()
        if progress is not None and should_emit(completed, total_positions):
            progress.publish(
                ProgressUpdate(
                    current_length=oligo_length,
                    current_position=position,
                    total_positions=total_positions,
                    lengths_completed=length_idx,
                    total_lengths=total_lengths,
                    message=f"Length {length_idx + 1}/{total_lengths}: Position {completed}/{total_positions}",
                )
            )
        return PositionResult(position=position, analysis=analysis, exclusivity=excl)

    started = perf_counter()
    futures = [pool.submit(_work, position) for position in positions]
    results: List[PositionResult] = [future.result() for future in as_completed(futures)]
    results.sort(key=lambda item: item.position)
    LOGGER.debug(
        "length=%d positions=%d matchers=%d elapsed_ms=%.1f",
        oligo_length,
        total_positions,
        matchers.created,
        (perf_counter() - started) * 1e3,
    )
    return LengthResult(oligo_length=oligo_length, positions=tuple(results))


def run_screening(
    template: TemplateSequence,
    references: ReferenceSet,
    params: AnalysisParams,
    exclusivity: Optional[ReferenceSet] = None,
    progress: Optional[ProgressSink] = None,
) -> ScreeningResults:
    """Run the full (length x position) sweep and return the aggregated results."""

    num_threads = resolve_thread_count(params.thread_count)
    template_seq = template.sequence.upper()
    ref_sequences = [seq.upper() for seq in references.sequences]
    if exclusivity is not None:
        exclusivity = ReferenceSet(exclusivity.names, tuple(seq.upper() for seq in exclusivity.sequences))
    lengths = list(params.oligo_lengths)
    LOGGER.debug(
        "run_screening template=%s length=%d references=%d exclusivity=%s lengths=%s threads=%d",
        template.name,
        len(template_seq),
        len(ref_sequences),
        None if exclusivity is None else len(exclusivity),
        f"{lengths[0]}-{lengths[-1]}",
        num_threads,
    )

    by_length: Dict[int, LengthResult] = {}
    with create_pool(num_threads) as pool:
        for length_idx, oligo_length in enumerate(lengths):
            by_length[oligo_length] = _analyze_length(
                pool,
                template_seq,
                ref_sequences,
                exclusivity,
                params,
                oligo_length,
                length_idx,
                len(lengths),
                progress,
            )

    return ScreeningResults(
        params=params,
        template_name=template.name,
        template_sequence=template_seq,
        total_references=len(ref_sequences),
        differential_enabled=exclusivity is not None,
        exclusivity_sequence_count=None if exclusivity is None else len(exclusivity),
        results_by_length=by_length,
    )


def recalculate_coverage(results: ScreeningResults, threshold: float) -> ScreeningResults:
    """Re-derive the covering prefix of every stored position for a new threshold.

    No alignment is repeated; skipped positions are carried over untouched.
    """

    params = replace(results.params, coverage_threshold=threshold)
    by_length: Dict[int, LengthResult] = {}
    for length, length_result in results.results_by_length.items():
        positions = []
        for pos in length_result.positions:
            if pos.analysis.skipped:
                positions.append(pos)
                continue
            needed, coverage = threshold_prefix(pos.analysis.variants, threshold)
            analysis = replace(pos.analysis, variants_for_threshold=needed, coverage_at_threshold=coverage)
            positions.append(replace(pos, analysis=analysis))
        by_length[length] = replace(length_result, positions=tuple(positions))
    return replace(results, params=params, results_by_length=by_length)


__all__ = [
    "TEMPLATE_TOO_SHORT_REASON",
    "WorkerMatchers",
    "analyze_exclusivity",
    "analyze_window",
    "create_pool",
    "recalculate_coverage",
    "run_screening",
]
