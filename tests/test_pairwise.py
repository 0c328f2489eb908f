from __future__ import annotations

import pytest

from oligoscreen.model import PairwiseParams
from oligoscreen.pairwise import PairwiseMatcher, create_aligner

OLIGO = "GTACGTCATG"


@pytest.fixture
def matcher() -> PairwiseMatcher:
    return PairwiseMatcher(len(OLIGO), PairwiseParams())


def test_aligner_scoring_follows_params() -> None:
    aligner = create_aligner(PairwiseParams(match_score=3, mismatch_score=-2, gap_open_penalty=-5, gap_extend_penalty=-2))
    assert aligner.match_score == 3
    assert aligner.mismatch_score == -2
    # nine matches and one deleted oligo base: 9 * 3 + (-5 + 1 * -2)
    assert aligner.score("AAGTACTCATGAA", OLIGO) == pytest.approx(20.0)
    # reference overhang on both sides is free
    assert aligner.score("CCCC" + OLIGO + "CCCC", OLIGO) == pytest.approx(30.0)


def test_exact_substring_has_no_mismatches(matcher: PairwiseMatcher) -> None:
    hit = matcher.match(OLIGO, "TATGGTACGTCATGTTC")
    assert hit is not None
    assert hit.matched == OLIGO
    assert hit.mismatches == 0
    assert hit.end - hit.start == len(OLIGO)
    assert hit.score == pytest.approx(20.0)


def test_substitution_is_reported_in_matched_window(matcher: PairwiseMatcher) -> None:
    hit = matcher.match(OLIGO, "AAAGTACTTCATGAAA")
    assert hit is not None
    assert hit.matched == "GTACTTCATG"
    assert hit.mismatches == 1


def test_reference_deletion_projects_gap(matcher: PairwiseMatcher) -> None:
    hit = matcher.match(OLIGO, "AAGTACTCATGAA")
    assert hit is not None
    assert hit.matched == "GTAC-TCATG"
    assert len(hit.matched) == len(OLIGO)
    assert hit.mismatches == 1


def test_reference_insertion_counts_as_mismatch(matcher: PairwiseMatcher) -> None:
    hit = matcher.match(OLIGO, "AAGTACGATCATGAA")
    assert hit is not None
    assert hit.matched == OLIGO
    assert hit.mismatches == 1


def test_mismatch_limit_turns_hit_into_no_match() -> None:
    strict = PairwiseMatcher(len(OLIGO), PairwiseParams(max_mismatches=0))
    assert strict.match(OLIGO, "AAAGTACTTCATGAAA") is None
    assert strict.align(OLIGO, "AAAGTACTTCATGAAA").mismatches == 1


def test_empty_candidate_never_matches(matcher: PairwiseMatcher) -> None:
    hit = matcher.align(OLIGO, "")
    assert hit.matched == "-" * len(OLIGO)
    assert hit.mismatches == len(OLIGO)
    assert matcher.match(OLIGO, "") is None


def test_matcher_is_reusable_across_calls(matcher: PairwiseMatcher) -> None:
    candidates = ["AAGTACTCATGAA", "TATGGTACGTCATGTTC", "CCCCCCCCCCCCCC"]
    matched, no_match = matcher.collect_matches(OLIGO, candidates)
    assert matched == ["GTAC-TCATG", OLIGO]
    assert no_match == 1
    assert matcher.collect_mismatch_counts(OLIGO, candidates) == [1, 0, None]


def test_query_longer_than_capacity_is_rejected(matcher: PairwiseMatcher) -> None:
    with pytest.raises(ValueError):
        matcher.align(OLIGO + "A", "ACGT")
