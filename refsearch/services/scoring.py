"""
Multi-factor candidate scoring.

Each factor yields a fraction in [0, 1] that is multiplied by its configured
weight. Weights sum to 100, so the total of the contributions is already on a
0-100 scale.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Sequence

from refsearch.config import loaders
from refsearch.config.loaders import ScoringConfigV1, ScoringWeights
from refsearch.core.shot_types import ShotSpec
from refsearch.services.candidates import CharacterImage
from refsearch.services.scene_analysis import SceneAnalysis
from refsearch.services.shot_parsing import resolve_candidate_shot


@dataclass(frozen=True)
class FactorScores:
    """Weighted contribution of each factor to the total score."""

    scene_type_match: float = 0.0
    lens_preference: float = 0.0
    crop_preference: float = 0.0
    angle_preference: float = 0.0
    emotional_tone: float = 0.0
    composition_match: float = 0.0
    quality_score: float = 0.0

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CharacterImage
    total_score: float
    factors: FactorScores
    reasoning: str
    shot: ShotSpec


def round_score(value: float) -> int:
    """Round half up, the way scores are displayed."""
    return int(math.floor(value + 0.5))


def rank_fraction(value, preferences: Sequence, config: ScoringConfigV1) -> float:
    """Position ``i`` in the preference list earns ``max(floor, 1 - i * decay)``."""
    if value is None or not getattr(value, "known", True):
        return 0.0
    try:
        index = list(preferences).index(value)
    except ValueError:
        return 0.0
    return max(config.rank_floor, 1.0 - index * config.rank_decay)


def scene_type_fraction(shot: ShotSpec, analysis: SceneAnalysis, config: ScoringConfigV1) -> float:
    if not shot.mode.known:
        return 0.0
    compatibility = config.scene_compatibility.get(analysis.scene_type)
    if compatibility is None:
        return 0.0
    if shot.mode in compatibility.full:
        return 1.0
    if shot.mode in compatibility.partial:
        return config.partial_scene_credit
    return 0.0


def emotional_tone_fraction(
    candidate: CharacterImage,
    shot: ShotSpec,
    analysis: SceneAnalysis,
    config: ScoringConfigV1,
) -> float:
    expression = (shot.expression or "").strip().lower()
    text = " ".join([expression, *(tag.lower() for tag in candidate.tags)])
    keywords = config.tone_expressions.get(analysis.emotional_tone, [])
    if any(keyword.lower() in text for keyword in keywords):
        return 1.0
    if not expression or expression in {e.lower() for e in config.neutral_expressions}:
        return config.neutral_expression_credit
    return 0.0


def composition_fraction(candidate: CharacterImage, shot: ShotSpec, analysis: SceneAnalysis) -> float:
    preferred = analysis.required_shots.preferred_crop
    if candidate.is_core_reference and preferred and shot.crop == preferred[0]:
        return 1.0
    return 0.0


def quality_fraction(candidate: CharacterImage, config: ScoringConfigV1) -> float:
    quality = candidate.quality_score
    if quality is None:
        quality = config.missing_quality_default
    return max(0.0, min(1.0, float(quality) / 100.0))


def format_candidate_reasoning(shot: ShotSpec, total: float) -> str:
    lens = f"{shot.lens.value}mm" if shot.lens.known else "unknown lens"
    crop = shot.crop.value.upper()
    return f"{lens} {crop} shot ({shot.angle.value}) - Score: {round_score(total)}/100"


def score_candidate(
    candidate: CharacterImage,
    analysis: SceneAnalysis,
    weights: ScoringWeights | None = None,
    *,
    config: ScoringConfigV1 | None = None,
) -> ScoredCandidate:
    """Score one candidate against a scene analysis.

    Unknown shot facts earn zero for the factors that depend on them; they
    never raise.
    """
    config = config or loaders.load_scoring_config_v1()
    weights = weights or config.weights
    shot = resolve_candidate_shot(candidate)
    required = analysis.required_shots

    factors = FactorScores(
        scene_type_match=weights.scene_type_match * scene_type_fraction(shot, analysis, config),
        lens_preference=weights.lens_preference * rank_fraction(shot.lens, required.preferred_lens, config),
        crop_preference=weights.crop_preference * rank_fraction(shot.crop, required.preferred_crop, config),
        angle_preference=weights.angle_preference
        * rank_fraction(shot.angle, required.preferred_angles, config),
        emotional_tone=weights.emotional_tone * emotional_tone_fraction(candidate, shot, analysis, config),
        composition_match=weights.composition_match * composition_fraction(candidate, shot, analysis),
        quality_score=weights.quality_score * quality_fraction(candidate, config),
    )
    total = max(0.0, min(100.0, factors.total))
    return ScoredCandidate(
        candidate=candidate,
        total_score=total,
        factors=factors,
        reasoning=format_candidate_reasoning(shot, total),
        shot=shot,
    )


def score_candidates(
    candidates: Sequence[CharacterImage],
    analysis: SceneAnalysis,
    weights: ScoringWeights | None = None,
    *,
    max_workers: int = 1,
) -> list[ScoredCandidate]:
    """Score a batch; results keep the input order regardless of ``max_workers``."""
    config = loaders.load_scoring_config_v1()
    if max_workers <= 1 or len(candidates) <= 1:
        return [score_candidate(c, analysis, weights, config=config) for c in candidates]

    with ThreadPoolExecutor(max_workers=min(max_workers, len(candidates))) as executor:
        return list(
            executor.map(lambda c: score_candidate(c, analysis, weights, config=config), candidates)
        )
