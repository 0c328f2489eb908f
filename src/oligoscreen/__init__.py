"""oligoscreen core package."""

from importlib import metadata

from .analyzer import analyze_sequences, consensus_variants, threshold_prefix
from .exclusivity import build_exclusivity_result, effective_min_mismatches
from .model import (
    NO_MATCH_SENTINEL,
    AnalysisParams,
    ExclusivityResult,
    FixedAmbiguities,
    Incremental,
    LengthResult,
    MismatchBucket,
    NoAmbiguities,
    PairwiseParams,
    PositionResult,
    ProgressUpdate,
    ReferenceSet,
    ScreeningResults,
    TemplateSequence,
    ThreadCount,
    Variant,
    WindowAnalysisResult,
)
from .pairwise import PairwiseHit, PairwiseMatcher
from .progress import ProgressBus
from .screener import recalculate_coverage, run_screening

try:  # pragma: no cover - metadata only at runtime
    __version__ = metadata.version("oligoscreen")
except metadata.PackageNotFoundError:  # pragma: no cover - source tree / editable installs
    __version__ = "0.0.0"

__all__ = [
    "NO_MATCH_SENTINEL",
    "AnalysisParams",
    "ExclusivityResult",
    "FixedAmbiguities",
    "Incremental",
    "LengthResult",
    "MismatchBucket",
    "NoAmbiguities",
    "PairwiseHit",
    "PairwiseMatcher",
    "PairwiseParams",
    "PositionResult",
    "ProgressBus",
    "ProgressUpdate",
    "ReferenceSet",
    "ScreeningResults",
    "TemplateSequence",
    "ThreadCount",
    "Variant",
    "WindowAnalysisResult",
    "analyze_sequences",
    "build_exclusivity_result",
    "consensus_variants",
    "effective_min_mismatches",
    "recalculate_coverage",
    "run_screening",
    "threshold_prefix",
    "__version__",
]
