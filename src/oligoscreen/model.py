"""Screening data models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, Mapping, Optional, Sequence, Tuple, Union

# Histogram key for exclusivity sequences that never aligned within max_mismatches.
NO_MATCH_SENTINEL = 4294967295


@dataclass(frozen=True)
class TemplateSequence:
    """Named template the oligo windows are cut from."""

    name: str
    sequence: str

    def __len__(self) -> int:
        return len(self.sequence)


@dataclass(frozen=True)
class ReferenceSet:
    """Ordered, order-correlated names and sequences (references or off-targets)."""

    names: Tuple[str, ...] = ()
    sequences: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "names", tuple(self.names))
        object.__setattr__(self, "sequences", tuple(self.sequences))
        if len(self.names) != len(self.sequences):
            raise ValueError(
                f"ReferenceSet needs one name per sequence ({len(self.names)} names, {len(self.sequences)} sequences)."
            )

    def __len__(self) -> int:
        return len(self.sequences)

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        return iter(zip(self.names, self.sequences))

    @property
    def max_length(self) -> int:
        return max((len(seq) for seq in self.sequences), default=0)

    def extend(self, other: "ReferenceSet") -> "ReferenceSet":
        return ReferenceSet(self.names + other.names, self.sequences + other.sequences)


# --- analysis method selector ------------------------------------------------


@dataclass(frozen=True)
class NoAmbiguities:
    """Every distinct matched sequence is its own variant."""

    kind: ClassVar[str] = "no_ambiguities"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}


@dataclass(frozen=True)
class FixedAmbiguities:
    """Variants may carry up to ``max_ambiguities`` IUPAC-coded positions."""

    max_ambiguities: int = 1
    kind: ClassVar[str] = "fixed_ambiguities"

    def __post_init__(self) -> None:
        if self.max_ambiguities < 0:
            raise ValueError("max_ambiguities must be >= 0.")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "max_ambiguities": self.max_ambiguities}


@dataclass(frozen=True)
class Incremental:
    """Each variant covers ``target_pct`` percent of the still-unassigned sequences."""

    target_pct: int = 90
    max_ambiguities: Optional[int] = None
    kind: ClassVar[str] = "incremental"

    def __post_init__(self) -> None:
        if not 1 <= self.target_pct <= 100:
            raise ValueError("target_pct must be within 1..100.")
        if self.max_ambiguities is not None and self.max_ambiguities < 0:
            raise ValueError("max_ambiguities must be >= 0 when set.")

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "target_pct": self.target_pct, "max_ambiguities": self.max_ambiguities}


AnalysisMethod = Union[NoAmbiguities, FixedAmbiguities, Incremental]

_METHODS = {cls.kind: cls for cls in (NoAmbiguities, FixedAmbiguities, Incremental)}


def method_from_dict(payload: Mapping[str, Any] | str) -> AnalysisMethod:
    if isinstance(payload, str):
        payload = {"kind": payload}
    kind = str(payload.get("kind", "")).strip().lower().replace("-", "_")
    try:
        cls = _METHODS[kind]
    except KeyError as exc:
        raise ValueError(f"Unknown analysis method: {kind!r}. Expected one of {sorted(_METHODS)}.") from exc
    if cls is FixedAmbiguities:
        return FixedAmbiguities(int(payload.get("max_ambiguities", 1)))
    if cls is Incremental:
        max_amb = payload.get("max_ambiguities")
        return Incremental(
            target_pct=int(payload.get("target_pct", 90)),
            max_ambiguities=None if max_amb is None else int(max_amb),
        )
    return NoAmbiguities()


# --- parameters ----------------------------------------------------------------


@dataclass(frozen=True)
class PairwiseParams:
    match_score: int = 2
    mismatch_score: int = -1
    gap_open_penalty: int = -3
    gap_extend_penalty: int = -1
    max_mismatches: int = 3

    def __post_init__(self) -> None:
        if self.match_score < 0:
            raise ValueError("match_score must be >= 0.")
        if self.mismatch_score > 0:
            raise ValueError("mismatch_score must be <= 0.")
        if self.gap_open_penalty > 0 or self.gap_extend_penalty > 0:
            raise ValueError("Gap penalties must be <= 0.")
        if self.max_mismatches < 0:
            raise ValueError("max_mismatches must be >= 0.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "match_score": self.match_score,
            "mismatch_score": self.mismatch_score,
            "gap_open_penalty": self.gap_open_penalty,
            "gap_extend_penalty": self.gap_extend_penalty,
            "max_mismatches": self.max_mismatches,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PairwiseParams":
        defaults = cls()
        return cls(**{key: int(payload.get(key, getattr(defaults, key))) for key in defaults.to_dict()})


@dataclass(frozen=True)
class ThreadCount:
    """Worker-count policy: ``fixed=None`` means detected hardware parallelism."""

    fixed: Optional[int] = None

    @property
    def is_auto(self) -> bool:
        return self.fixed is None

    def to_dict(self) -> Union[str, int]:
        return "auto" if self.fixed is None else self.fixed

    @classmethod
    def parse(cls, value: Union[str, int, None]) -> "ThreadCount":
        if value is None:
            return cls()
        if isinstance(value, str):
            token = value.strip().lower()
            if token in {"", "auto"}:
                return cls()
            return cls(int(token))
        return cls(int(value))


@dataclass(frozen=True)
class AnalysisParams:
    method: AnalysisMethod = field(default_factory=NoAmbiguities)
    min_oligo_length: int = 18
    max_oligo_length: int = 25
    resolution: int = 1
    coverage_threshold: float = 95.0
    exclude_n: bool = True
    pairwise: PairwiseParams = field(default_factory=PairwiseParams)
    thread_count: ThreadCount = field(default_factory=ThreadCount)

    def __post_init__(self) -> None:
        if self.min_oligo_length < 1:
            raise ValueError("min_oligo_length must be >= 1.")
        if self.min_oligo_length > self.max_oligo_length:
            raise ValueError(
                f"min_oligo_length ({self.min_oligo_length}) must not exceed max_oligo_length ({self.max_oligo_length})."
            )
        if self.resolution < 1:
            raise ValueError("resolution must be >= 1.")
        if not 0.0 < self.coverage_threshold <= 100.0:
            raise ValueError("coverage_threshold must be within (0, 100].")

    @property
    def oligo_lengths(self) -> range:
        return range(self.min_oligo_length, self.max_oligo_length + 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method.to_dict(),
            "min_oligo_length": self.min_oligo_length,
            "max_oligo_length": self.max_oligo_length,
            "resolution": self.resolution,
            "coverage_threshold": self.coverage_threshold,
            "exclude_n": self.exclude_n,
            "pairwise": self.pairwise.to_dict(),
            "thread_count": self.thread_count.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AnalysisParams":
        defaults = cls()
        return cls(
            method=method_from_dict(payload.get("method") or defaults.method.to_dict()),
            min_oligo_length=int(payload.get("min_oligo_length", defaults.min_oligo_length)),
            max_oligo_length=int(payload.get("max_oligo_length", defaults.max_oligo_length)),
            resolution=int(payload.get("resolution", defaults.resolution)),
            coverage_threshold=float(payload.get("coverage_threshold", defaults.coverage_threshold)),
            exclude_n=bool(payload.get("exclude_n", defaults.exclude_n)),
            pairwise=PairwiseParams.from_dict(payload.get("pairwise") or {}),
            thread_count=ThreadCount.parse(payload.get("thread_count")),
        )


# --- results ---------------------------------------------------------------------


@dataclass(frozen=True)
class Variant:
    sequence: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"sequence": self.sequence, "count": self.count, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Variant":
        return cls(str(payload["sequence"]), int(payload["count"]), float(payload["percentage"]))


@dataclass(frozen=True)
class WindowAnalysisResult:
    total_sequences: int = 0
    sequences_analyzed: int = 0
    no_match_count: int = 0
    skipped: bool = False
    skip_reason: Optional[str] = None
    variants: Tuple[Variant, ...] = ()
    variants_for_threshold: int = 0
    coverage_at_threshold: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_sequences": self.total_sequences,
            "sequences_analyzed": self.sequences_analyzed,
            "no_match_count": self.no_match_count,
            "skipped": self.skipped,
            "skip_reason": self.skip_reason,
            "variants": [variant.to_dict() for variant in self.variants],
            "variants_for_threshold": self.variants_for_threshold,
            "coverage_at_threshold": self.coverage_at_threshold,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "WindowAnalysisResult":
        reason = payload.get("skip_reason")
        return cls(
            total_sequences=int(payload["total_sequences"]),
            sequences_analyzed=int(payload.get("sequences_analyzed", 0)),
            no_match_count=int(payload.get("no_match_count", 0)),
            skipped=bool(payload.get("skipped", False)),
            skip_reason=None if reason is None else str(reason),
            variants=tuple(Variant.from_dict(item) for item in payload.get("variants", [])),
            variants_for_threshold=int(payload.get("variants_for_threshold", 0)),
            coverage_at_threshold=float(payload.get("coverage_at_threshold", 0.0)),
        )


@dataclass(frozen=True)
class MismatchBucket:
    mismatches: int
    count: int
    example_name: str

    @property
    def is_no_match(self) -> bool:
        return self.mismatches == NO_MATCH_SENTINEL

    def to_dict(self) -> Dict[str, Any]:
        return {"mismatches": self.mismatches, "count": self.count, "example_name": self.example_name}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "MismatchBucket":
        return cls(int(payload["mismatches"]), int(payload["count"]), str(payload.get("example_name", "")))


@dataclass(frozen=True)
class ExclusivityResult:
    total_sequences: int
    no_match_count: int
    mismatch_histogram: Tuple[MismatchBucket, ...] = ()
    min_mismatches: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_sequences": self.total_sequences,
            "no_match_count": self.no_match_count,
            "mismatch_histogram": [bucket.to_dict() for bucket in self.mismatch_histogram],
            "min_mismatches": self.min_mismatches,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExclusivityResult":
        min_mm = payload.get("min_mismatches")
        return cls(
            total_sequences=int(payload["total_sequences"]),
            no_match_count=int(payload.get("no_match_count", 0)),
            mismatch_histogram=tuple(MismatchBucket.from_dict(item) for item in payload.get("mismatch_histogram", [])),
            min_mismatches=None if min_mm is None else int(min_mm),
        )


@dataclass(frozen=True)
class PositionResult:
    position: int
    analysis: WindowAnalysisResult
    exclusivity: Optional[ExclusivityResult] = None

    @property
    def variants_needed(self) -> int:
        return self.analysis.variants_for_threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position": self.position,
            "variants_needed": self.variants_needed,
            "analysis": self.analysis.to_dict(),
            "exclusivity": None if self.exclusivity is None else self.exclusivity.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PositionResult":
        excl = payload.get("exclusivity")
        return cls(
            position=int(payload["position"]),
            analysis=WindowAnalysisResult.from_dict(payload["analysis"]),
            exclusivity=None if excl is None else ExclusivityResult.from_dict(excl),
        )


@dataclass(frozen=True)
class LengthResult:
    oligo_length: int
    positions: Tuple[PositionResult, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"oligo_length": self.oligo_length, "positions": [pos.to_dict() for pos in self.positions]}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LengthResult":
        return cls(
            oligo_length=int(payload["oligo_length"]),
            positions=tuple(PositionResult.from_dict(item) for item in payload.get("positions", [])),
        )


@dataclass(frozen=True)
class ScreeningResults:
    params: AnalysisParams
    template_name: str
    template_sequence: str
    total_references: int
    differential_enabled: bool = False
    exclusivity_sequence_count: Optional[int] = None
    results_by_length: Dict[int, LengthResult] = field(default_factory=dict)

    @property
    def template_length(self) -> int:
        return len(self.template_sequence)

    def lengths(self) -> Sequence[int]:
        return sorted(self.results_by_length)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "params": self.params.to_dict(),
            "template_name": self.template_name,
            "template_length": self.template_length,
            "template_sequence": self.template_sequence,
            "total_references": self.total_references,
            "differential_enabled": self.differential_enabled,
            "exclusivity_sequence_count": self.exclusivity_sequence_count,
            "results_by_length": {
                str(length): self.results_by_length[length].to_dict() for length in self.lengths()
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ScreeningResults":
        excl_count = payload.get("exclusivity_sequence_count")
        by_length = payload.get("results_by_length") or {}
        return cls(
            params=AnalysisParams.from_dict(payload.get("params") or {}),
            template_name=str(payload.get("template_name", "")),
            template_sequence=str(payload["template_sequence"]),
            total_references=int(payload["total_references"]),
            differential_enabled=bool(payload.get("differential_enabled", False)),
            exclusivity_sequence_count=None if excl_count is None else int(excl_count),
            results_by_length={int(key): LengthResult.from_dict(value) for key, value in by_length.items()},
        )


@dataclass(frozen=True)
class ProgressUpdate:
    current_length: int
    current_position: int
    total_positions: int
    lengths_completed: int
    total_lengths: int
    message: str


__all__ = [
    "NO_MATCH_SENTINEL",
    "AnalysisMethod",
    "AnalysisParams",
    "ExclusivityResult",
    "FixedAmbiguities",
    "Incremental",
    "LengthResult",
    "MismatchBucket",
    "NoAmbiguities",
    "PairwiseParams",
    "PositionResult",
    "ProgressUpdate",
    "ReferenceSet",
    "ScreeningResults",
    "TemplateSequence",
    "ThreadCount",
    "Variant",
    "WindowAnalysisResult",
    "method_from_dict",
]
