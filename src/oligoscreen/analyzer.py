"""
Variant consensus for the sequences matched at one template window.

Matched windows are grouped into variants according to the analysis method:

* ``NoAmbiguities`` keeps every distinct sequence as its own variant.
* ``FixedAmbiguities(n)`` lets a variant absorb other sequences by widening
  differing positions into IUPAC codes, as long as the variant keeps at most
  ``n`` ambiguous positions.
* ``Incremental(pct, max)`` builds one variant at a time that covers ``pct``
  percent of the sequences not yet assigned, within an optional ambiguity
  budget.

Sequences are handled as uint8 bitmask rows (see
:mod:`oligoscreen.engine.encoding`) so that compatibility checks against all
existing variants run as one numpy expression.
"""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .engine.encoding import (
    POPCOUNT,
    ambiguity_count,
    ambiguity_counts,
    decode_masks,
    encode_sequence,
    widening_allowed,
)
from .model import (
    AnalysisMethod,
    FixedAmbiguities,
    Incremental,
    NoAmbiguities,
    Variant,
    WindowAnalysisResult,
)

LOGGER = logging.getLogger(__name__)

NO_MATCH_REASON = "No valid matches found in any reference sequence"

_EPS = 1e-9


@dataclass
class _Cluster:
    masks: np.ndarray
    count: int
    text: str

    def absorb(self, masks: np.ndarray, count: int) -> None:
        self.masks = self.masks | masks
        self.count += count
        self.text = decode_masks(self.masks)


def threshold_prefix(variants: Sequence[Variant], threshold: float) -> Tuple[int, float]:
    """Smallest prefix whose cumulative percentage reaches ``threshold``.

    Returns ``(k, cumulative_pct)``; when the threshold is unreachable ``k`` is
    ``len(variants)`` and the coverage is the full cumulative sum. The
    comparison allows a 1e-9 tolerance so that percentages summing to the
    threshold up to float rounding (e.g. three variants of 33.33..% against
    100%) still count as reaching it.
    """

    cumulative = 0.0
    for idx, variant in enumerate(variants):
        cumulative += variant.percentage
        if cumulative + _EPS >= threshold:
            return idx + 1, cumulative
    return len(variants), cumulative


def rescale_to_total(result: WindowAnalysisResult, total: int, threshold: float) -> WindowAnalysisResult:
    """Re-express variant percentages against ``total`` references.

    Unmatched references then lower the achievable coverage, and the
    minimal covering prefix is walked again with the rescaled numbers.
    """

    if result.skipped or total <= 0:
        return result
    variants = tuple(replace(v, percentage=v.count / total * 100.0) for v in result.variants)
    needed, coverage = threshold_prefix(variants, threshold)
    return replace(result, variants=variants, variants_for_threshold=needed, coverage_at_threshold=coverage)


def skipped_result(total: int, no_match_count: int, reason: str = NO_MATCH_REASON) -> WindowAnalysisResult:
    return WindowAnalysisResult(
        total_sequences=total,
        sequences_analyzed=0,
        no_match_count=no_match_count,
        skipped=True,
        skip_reason=reason,
    )


def _exact_groups(sequences: Sequence[str]) -> List[_Cluster]:
    counts = Counter(sequences)
    ordered = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [_Cluster(encode_sequence(seq), count, seq) for seq, count in ordered]


def _best_target(
    clusters: Sequence[_Cluster],
    masks: np.ndarray,
    max_ambiguities: int,
    exclude_n: bool,
) -> Optional[int]:
    """Index of the largest cluster that can absorb ``masks`` within budget."""

    if not clusters:
        return None
    current = np.vstack([cluster.masks for cluster in clusters])
    union = current | masks
    allowed = widening_allowed(current, union, exclude_n=exclude_n).all(axis=1)
    unchanged = (union == current).all(axis=1)
    allowed &= unchanged | (ambiguity_counts(union) <= max_ambiguities)
    if not allowed.any():
        return None
    counts = np.array([cluster.count for cluster in clusters])
    counts = np.where(allowed, counts, -1)
    # argmax returns the first maximum: earliest cluster wins ties
    return int(np.argmax(counts))


def _settle(clusters: List[_Cluster], max_ambiguities: int, exclude_n: bool) -> List[_Cluster]:
    """Merge smaller clusters into larger ones until nothing can move."""

    while True:
        ordered = sorted(clusters, key=lambda c: (-c.count, c.text))
        for j in range(1, len(ordered)):
            target = _best_target(ordered[:j], ordered[j].masks, max_ambiguities, exclude_n)
            if target is not None:
                ordered[target].absorb(ordered[j].masks, ordered[j].count)
                del ordered[j]
                break
        else:
            return ordered
        clusters = ordered


def _fixed_ambiguities(groups: List[_Cluster], max_ambiguities: int, exclude_n: bool) -> List[_Cluster]:
    clusters: List[_Cluster] = []
    for group in groups:
        target = _best_target(clusters, group.masks, max_ambiguities, exclude_n)
        if target is None:
            clusters.append(_Cluster(group.masks.copy(), group.count, group.text))
        else:
            clusters[target].absorb(group.masks, group.count)
    return _settle(clusters, max_ambiguities, exclude_n)


def _incremental(
    groups: List[_Cluster],
    target_pct: int,
    max_ambiguities: Optional[int],
    exclude_n: bool,
) -> List[_Cluster]:
    clusters: List[_Cluster] = []
    remaining = list(groups)
    while remaining:
        remaining_total = sum(group.count for group in remaining)
        seed, pool = remaining[0], remaining[1:]
        cluster = _Cluster(seed.masks.copy(), seed.count, seed.text)

        while pool and cluster.count * 100 < target_pct * remaining_total:
            matrix = np.vstack([group.masks for group in pool])
            union = matrix | cluster.masks
            allowed = widening_allowed(cluster.masks, union, exclude_n=exclude_n).all(axis=1)
            amb = ambiguity_counts(union)
            if max_ambiguities is not None:
                unchanged = (union == cluster.masks).all(axis=1)
                allowed &= unchanged | (amb <= max_ambiguities)
            if not allowed.any():
                break
            added_amb = amb - ambiguity_count(cluster.masks)
            added_bits = POPCOUNT[union].sum(axis=1).astype(np.int64) - int(POPCOUNT[cluster.masks].sum())
            cost = np.where(allowed, added_amb * (union.shape[1] * 8 + 1) + added_bits, np.iinfo(np.int64).max)
            # pool is ordered by (-count, sequence), so argmin keeps that tie-break
            pick = int(np.argmin(cost))
            chosen = pool.pop(pick)
            cluster.absorb(chosen.masks, chosen.count)

        leftovers: List[_Cluster] = []
        for group in pool:
            if ((group.masks | cluster.masks) == cluster.masks).all():
                cluster.absorb(group.masks, group.count)
            else:
                leftovers.append(group)
        clusters.append(cluster)
        remaining = leftovers
    return clusters


def consensus_variants(
    sequences: Sequence[str],
    method: AnalysisMethod,
    exclude_n: bool,
) -> List[Tuple[str, int]]:
    """Return ``(sequence, count)`` pairs ordered by descending count, then sequence."""

    if not isinstance(method, NoAmbiguities) and len({len(seq) for seq in sequences}) > 1:
        raise ValueError("Ambiguity merging needs equal-length sequences.")
    groups = _exact_groups(sequences)
    if isinstance(method, FixedAmbiguities):
        clusters = _fixed_ambiguities(groups, method.max_ambiguities, exclude_n)
    elif isinstance(method, Incremental):
        clusters = _incremental(groups, method.target_pct, method.max_ambiguities, exclude_n)
    elif isinstance(method, NoAmbiguities):
        clusters = groups
    else:
        raise TypeError(f"Unsupported analysis method: {method!r}")
    ordered = sorted(((cluster.text, cluster.count) for cluster in clusters), key=lambda item: (-item[1], item[0]))
    return ordered


def analyze_sequences(
    sequences: Sequence[str],
    method: AnalysisMethod,
    exclude_n: bool,
    coverage_threshold: float,
) -> WindowAnalysisResult:
    """Cluster matched windows into variants; percentages relative to the matched set."""

    total = len(sequences)
    if total == 0:
        return skipped_result(0, 0)
    pairs = consensus_variants([seq.upper() for seq in sequences], method, exclude_n)
    variants = tuple(Variant(sequence=seq, count=count, percentage=count / total * 100.0) for seq, count in pairs)
    needed, coverage = threshold_prefix(variants, coverage_threshold)
    LOGGER.debug(
        "analyze_sequences method=%s sequences=%d variants=%d needed=%d",
        method.kind,
        total,
        len(variants),
        needed,
    )
    return WindowAnalysisResult(
        total_sequences=total,
        sequences_analyzed=total,
        no_match_count=0,
        skipped=False,
        skip_reason=None,
        variants=variants,
        variants_for_threshold=needed,
        coverage_at_threshold=coverage,
    )


__all__ = [
    "NO_MATCH_REASON",
    "analyze_sequences",
    "consensus_variants",
    "rescale_to_total",
    "skipped_result",
    "threshold_prefix",
]
