"""Mismatch histograms against an off-target (exclusivity) set."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from .model import NO_MATCH_SENTINEL, ExclusivityResult, MismatchBucket


def build_exclusivity_result(
    mismatch_counts: Sequence[Optional[int]],
    names: Sequence[str],
) -> ExclusivityResult:
    """Bucket off-target sequences by mismatch count.

    Buckets are ascending by mismatch count; sequences that did not match
    within the limit are pooled in a trailing bucket keyed by
    ``NO_MATCH_SENTINEL``. Each bucket remembers the first name seen.
    """

    if len(mismatch_counts) != len(names):
        raise ValueError("mismatch_counts and names must have equal length.")
    buckets: Dict[int, Tuple[int, str]] = {}
    no_match_count = 0
    no_match_example = ""
    for name, mismatches in zip(names, mismatch_counts):
        if mismatches is None:
            if no_match_count == 0:
                no_match_example = name
            no_match_count += 1
            continue
        count, example = buckets.get(mismatches, (0, name))
        buckets[mismatches] = (count + 1, example)

    histogram: List[MismatchBucket] = [
        MismatchBucket(mismatches=key, count=count, example_name=example)
        for key, (count, example) in sorted(buckets.items())
    ]
    if no_match_count:
        histogram.append(MismatchBucket(NO_MATCH_SENTINEL, no_match_count, no_match_example))

    return ExclusivityResult(
        total_sequences=len(mismatch_counts),
        no_match_count=no_match_count,
        mismatch_histogram=tuple(histogram),
        min_mismatches=min(buckets) if buckets else None,
    )


def effective_min_mismatches(result: ExclusivityResult, ignore_count: int = 0) -> Optional[int]:
    """Minimum mismatches after ignoring the ``ignore_count`` closest off-targets.

    Lets a handful of known cross-reactive sequences be tolerated. Returns
    None once every matched sequence has been ignored.
    """

    if ignore_count <= 0:
        return result.min_mismatches
    remaining = ignore_count
    for bucket in result.mismatch_histogram:
        if bucket.is_no_match:
            continue
        if bucket.count <= remaining:
            remaining -= bucket.count
        else:
            return bucket.mismatches
    return None


__all__ = ["build_exclusivity_result", "effective_min_mismatches"]
