"""
Candidate filtering, ranking and selection.

Ranking is a total order: total score descending, then quality (unknown
quality counts as the scorer's default), then core references, then input
order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from refsearch.config import loaders
from refsearch.core.exceptions import ValidationError
from refsearch.core.shot_types import Crop, Lens, ShotMode
from refsearch.services.scene_analysis import SceneAnalysis
from refsearch.services.scoring import ScoredCandidate, round_score

NO_IMAGES_ERROR = "no images available"
BELOW_THRESHOLD_ERROR = "no candidate images met the minimum quality threshold"

_HIGH_QUALITY_THRESHOLD = 85

_LENS_USE = {
    Lens.MM_35: "action/body",
    Lens.MM_50: "conversation",
    Lens.MM_85: "emotional",
}

_CROP_DESCRIPTIONS = {
    Crop.CU: "close-up intimacy",
    Crop.MCU: "medium close-up balance",
    Crop.THREE_Q: "three-quarter body context",
    Crop.FULL: "full body coverage",
    Crop.HANDS: "detailed hand work",
}


@dataclass(frozen=True)
class SelectionOptions:
    min_quality_score: float = 70.0
    max_results: int = 5
    include_alternatives: bool = True

    def __post_init__(self) -> None:
        if not 0 <= self.min_quality_score <= 100:
            raise ValidationError("min_quality_score must be between 0 and 100")
        if self.max_results < 1:
            raise ValidationError("max_results must be at least 1")


@dataclass(frozen=True)
class SearchMetrics:
    total_images_evaluated: int = 0
    average_score: float = 0.0
    selection_confidence: float = 0.0


@dataclass
class SelectionResult:
    success: bool
    selected: ScoredCandidate | None = None
    alternatives: list[ScoredCandidate] | None = None
    ranked: list[ScoredCandidate] = field(default_factory=list)
    metrics: SearchMetrics = field(default_factory=SearchMetrics)
    error: str | None = None


def _tiebreak_quality(scored: ScoredCandidate, default: float) -> float:
    quality = scored.candidate.quality_score
    return default if quality is None else float(quality)


def rank_candidates(scored: Sequence[ScoredCandidate]) -> list[ScoredCandidate]:
    """Sort scored candidates best first; deterministic for equal inputs."""
    default = loaders.load_scoring_config_v1().missing_quality_default
    indexed = list(enumerate(scored))
    indexed.sort(
        key=lambda pair: (
            -pair[1].total_score,
            -_tiebreak_quality(pair[1], default),
            not pair[1].candidate.is_core_reference,
            pair[0],
        )
    )
    return [item for _, item in indexed]


def passes_quality_threshold(scored: ScoredCandidate, min_quality_score: float) -> bool:
    quality = scored.candidate.quality_score
    return quality is None or quality >= min_quality_score


def _selection_confidence(ranked: list[ScoredCandidate]) -> float:
    if not ranked:
        return 0.0
    if len(ranked) == 1:
        return 1.0
    saturation = loaders.load_scoring_config_v1().confidence_gap_saturation
    gap = ranked[0].total_score - ranked[1].total_score
    return max(0.0, min(1.0, gap / saturation))


def select_candidates(
    scored: Sequence[ScoredCandidate],
    options: SelectionOptions | None = None,
) -> SelectionResult:
    """Filter, rank and pick the best candidate.

    Failure to select is reported on the result, never raised.
    """
    options = options or SelectionOptions()
    totals = [s.total_score for s in scored]
    average = sum(totals) / len(totals) if totals else 0.0

    if not scored:
        return SelectionResult(
            success=False,
            metrics=SearchMetrics(total_images_evaluated=0, average_score=0.0),
            error=NO_IMAGES_ERROR,
        )

    survivors = [s for s in scored if passes_quality_threshold(s, options.min_quality_score)]
    if not survivors:
        return SelectionResult(
            success=False,
            metrics=SearchMetrics(total_images_evaluated=len(scored), average_score=average),
            error=BELOW_THRESHOLD_ERROR,
        )

    ranked = rank_candidates(survivors)
    alternatives = ranked[1 : options.max_results] if options.include_alternatives else None
    return SelectionResult(
        success=True,
        selected=ranked[0],
        alternatives=alternatives,
        ranked=ranked,
        metrics=SearchMetrics(
            total_images_evaluated=len(scored),
            average_score=average,
            selection_confidence=_selection_confidence(ranked),
        ),
    )


def explain_selection(scored: ScoredCandidate, analysis: SceneAnalysis) -> str:
    """Human-readable justification for the selected image."""
    config = loaders.load_scoring_config_v1()
    reasons: list[str] = []
    shot = scored.shot
    scene = analysis.scene_type.value

    compatibility = config.scene_compatibility.get(analysis.scene_type)
    if compatibility is not None and shot.mode in compatibility.full:
        reasons.append(f"Perfect match for {scene} scenes")
    elif compatibility is not None and shot.mode in compatibility.partial:
        reasons.append(f"Good fit for {scene} scenes")

    if shot.lens.known and shot.lens in analysis.required_shots.preferred_lens:
        reasons.append(f"{shot.lens.value}mm lens ideal for {_LENS_USE[shot.lens]} work")

    if shot.crop.known and shot.crop in analysis.required_shots.preferred_crop:
        reasons.append(f"{shot.crop.value.upper()} crop provides {_CROP_DESCRIPTIONS[shot.crop]}")

    quality = scored.candidate.quality_score
    if quality is not None and quality > _HIGH_QUALITY_THRESHOLD:
        reasons.append(f"High quality score ({round_score(quality)}/100)")

    if shot.mode is ShotMode.UNKNOWN:
        reasons.append("Shot type could not be determined")

    reasons.append(f"Overall compatibility score: {round_score(scored.total_score)}/100")
    return ". ".join(reasons) + "."
