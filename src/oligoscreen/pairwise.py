"""
Pairwise oligo-vs-sequence matching.

A :class:`PairwiseMatcher` wraps one Biopython ``PairwiseAligner`` plus a
projection scratch buffer. It is built once per worker thread and reused for
every (oligo, sequence) pair that worker sees; instances must never be shared
between threads.

The alignment is semi-global: the whole oligo is aligned, while the
reference may overhang on either side for free.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from Bio import Align

from .model import PairwiseParams

GAP_SYMBOL = "-"


@dataclass(frozen=True)
class PairwiseHit:
    """Best alignment of an oligo against one sequence.

    ``matched`` is projected onto oligo coordinates: one symbol per oligo
    position, ``-`` where the sequence has a deletion.
    """

    matched: str
    mismatches: int
    score: float
    start: int
    end: int


def create_aligner(params: PairwiseParams) -> Align.PairwiseAligner:
    """Configure a semi-global aligner for the given scoring scheme.

    A gap of length k costs ``gap_open + k * gap_extend``.
    """

    aligner = Align.PairwiseAligner()
    aligner.mode = "global"
    aligner.match_score = params.match_score
    aligner.mismatch_score = params.mismatch_score
    aligner.open_gap_score = params.gap_open_penalty + params.gap_extend_penalty
    aligner.extend_gap_score = params.gap_extend_penalty
    # reference overhang around the oligo is free
    aligner.end_deletion_score = 0.0
    return aligner


class PairwiseMatcher:
    """Construct-once, call-many oligo matcher owned by a single worker."""

    def __init__(self, query_length: int, params: PairwiseParams):
        if query_length < 1:
            raise ValueError("query_length must be >= 1.")
        self.query_length = query_length
        self.params = params
        self._aligner = create_aligner(params)
        self._projection: List[str] = [GAP_SYMBOL] * query_length

    def align(self, query: str, candidate: str) -> PairwiseHit:
        """Align ``query`` against ``candidate`` regardless of the mismatch limit."""

        m = len(query)
        if m > self.query_length:
            raise ValueError(f"Query of length {m} exceeds matcher capacity {self.query_length}.")
        projection = self._projection
        for idx in range(m):
            projection[idx] = GAP_SYMBOL
        if not candidate:
            return PairwiseHit(GAP_SYMBOL * m, m, 0.0, 0, 0)

        alignment = self._aligner.align(candidate, query)[0]
        ref_blocks, query_blocks = alignment.aligned
        mismatches = 0
        aligned_bases = 0
        prev_ref_end: Optional[int] = None
        start = end = 0
        for (rs, re), (qs, _qe) in zip(ref_blocks, query_blocks):
            rs, re, qs = int(rs), int(re), int(qs)
            if prev_ref_end is None:
                start = rs
            else:
                # reference bases inserted between aligned blocks
                mismatches += rs - prev_ref_end
            for offset in range(re - rs):
                base = candidate[rs + offset]
                projection[qs + offset] = base
                if base != query[qs + offset]:
                    mismatches += 1
            aligned_bases += re - rs
            prev_ref_end = re
            end = re
        # oligo bases deleted in, or hanging past, the reference
        mismatches += m - aligned_bases
        return PairwiseHit(
            matched="".join(projection[:m]),
            mismatches=mismatches,
            score=float(alignment.score),
            start=start,
            end=end,
        )

    def match(self, query: str, candidate: str) -> Optional[PairwiseHit]:
        """Return the hit, or None when it exceeds ``max_mismatches``."""

        hit = self.align(query, candidate)
        if hit.mismatches > self.params.max_mismatches:
            return None
        return hit

    def collect_matches(self, query: str, candidates: Sequence[str]) -> Tuple[List[str], int]:
        """Matched substrings for every accepted candidate plus the no-match count."""

        matched: List[str] = []
        no_match = 0
        for candidate in candidates:
            hit = self.match(query, candidate)
            if hit is None:
                no_match += 1
            else:
                matched.append(hit.matched)
        return matched, no_match

    def collect_mismatch_counts(self, query: str, candidates: Sequence[str]) -> List[Optional[int]]:
        """Per-candidate mismatch counts, None marking a no-match."""

        counts: List[Optional[int]] = []
        for candidate in candidates:
            hit = self.match(query, candidate)
            counts.append(None if hit is None else hit.mismatches)
        return counts


__all__ = ["GAP_SYMBOL", "PairwiseHit", "PairwiseMatcher", "create_aligner"]
