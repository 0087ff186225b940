"""
Scene analysis.

Turns a free-text scene description into structured camera and composition
preferences. Classification is lexicon based: every label scores the number
of its trigger words found in the lower-cased description, the highest score
wins and ties fall back to the configured priority order. Confidence is the
share of description words that matched a scene or tone trigger.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from refsearch.config import loaders
from refsearch.core import metrics
from refsearch.core.exceptions import ValidationError
from refsearch.core.shot_types import Angle, Crop, EmotionalTone, Lens, SceneType

logger = logging.getLogger(__name__)

_LEVEL_MIN = 0
_LEVEL_MAX = 10
_WORD_TOKENS = re.compile(r"[a-z0-9]+(?:'[a-z]+)?")

_LENS_RATIONALE = {
    SceneType.DIALOGUE: "Recommending 50mm and 85mm lenses for natural conversation perspective",
    SceneType.ACTION: "Recommending 35mm lens and wider shots for dynamic movement capture",
    SceneType.EMOTIONAL: "Recommending 85mm lens and close-ups for emotional intimacy",
    SceneType.ESTABLISHING: "Recommending 35mm lens and full body shots for context establishment",
    SceneType.TRANSITION: "Recommending varied angles and medium shots for movement continuity",
}


@dataclass(frozen=True)
class RequiredShots:
    preferred_lens: tuple[Lens, ...]
    preferred_crop: tuple[Crop, ...]
    preferred_angles: tuple[Angle, ...]


@dataclass(frozen=True)
class CameraPreferences:
    intimacy_level: int
    dynamism_level: int
    emotional_intensity: int


@dataclass(frozen=True)
class CompositionNeeds:
    eye_contact: bool = False
    profile_work: bool = False
    full_body_needed: bool = False
    hands_important: bool = False


@dataclass(frozen=True)
class SceneAnalysis:
    scene_type: SceneType
    emotional_tone: EmotionalTone
    confidence: float
    keywords: tuple[str, ...]
    required_shots: RequiredShots
    camera_preferences: CameraPreferences
    composition_needs: CompositionNeeds = field(default_factory=CompositionNeeds)
    reasoning: str = ""


def _clamp_level(value: int) -> int:
    return max(_LEVEL_MIN, min(_LEVEL_MAX, int(value)))


def _matched_words(text: str, words: list[str]) -> list[str]:
    return [word for word in words if word.lower() in text]


def _pick_label(counts: dict, priority: list):
    """Highest count wins; ties go to whichever label appears first in ``priority``."""
    best = None
    best_count = 0
    for label in priority:
        count = counts.get(label, 0)
        if count > best_count:
            best, best_count = label, count
    return best


def _ordered_keywords(text: str, words: set[str]) -> tuple[str, ...]:
    positioned = sorted((text.find(word.lower()), word) for word in words)
    seen: set[str] = set()
    ordered: list[str] = []
    for _, word in positioned:
        if word not in seen:
            seen.add(word)
            ordered.append(word)
    return tuple(ordered)


def _append_unique(base: list, extra: list) -> list:
    result = list(base)
    for item in extra:
        if item not in result:
            result.append(item)
    return result


def validate_emotional_intensity(emotional_intensity: object) -> int | None:
    if emotional_intensity is None:
        return None
    if isinstance(emotional_intensity, bool) or not isinstance(emotional_intensity, (int, float)):
        raise ValidationError("emotional_intensity must be a number between 1 and 10")
    if emotional_intensity != int(emotional_intensity):
        raise ValidationError("emotional_intensity must be a whole number between 1 and 10")
    if not 1 <= emotional_intensity <= 10:
        raise ValidationError("emotional_intensity must be between 1 and 10")
    return int(emotional_intensity)


def _build_reasoning(
    scene_type: SceneType,
    tone: EmotionalTone,
    keywords: tuple[str, ...],
    overridden: bool,
) -> str:
    reasons = [
        f"Scene type: {scene_type.value}" + (" (provided)" if overridden else " (detected)"),
        f"Emotional tone: {tone.value}",
    ]
    if keywords:
        reasons.append(f"Key indicators: {', '.join(keywords[:5])}")
    reasons.append(_LENS_RATIONALE[scene_type])
    return ". ".join(reasons) + "."


def analyze_scene(
    description: str,
    scene_type: SceneType | str | None = None,
    emotional_intensity: int | None = None,
) -> SceneAnalysis:
    """
    Analyze a scene description.

    Args:
        description: Free-text scene description (must not be blank)
        scene_type: Optional override that bypasses classification
        emotional_intensity: Optional 1-10 hint used as-is for the camera level

    Returns:
        SceneAnalysis with preferences ordered most-preferred first

    Raises:
        ValidationError: blank description, unknown scene type or out-of-range hint
    """
    if description is None or not str(description).strip():
        raise ValidationError("scene description is required")
    intensity_hint = validate_emotional_intensity(emotional_intensity)

    override: SceneType | None = None
    if scene_type is not None and str(getattr(scene_type, "value", scene_type)).strip():
        try:
            override = SceneType(str(getattr(scene_type, "value", scene_type)).strip().lower())
        except ValueError as exc:
            raise ValidationError(f"unknown scene type: {scene_type}") from exc

    lexicon = loaders.load_scene_lexicon_v1()
    profiles = loaders.load_scene_shot_profiles_v1()
    text = str(description).lower()

    scene_matches = {label: _matched_words(text, words) for label, words in lexicon.scene_types.items()}
    tone_matches = {label: _matched_words(text, words) for label, words in lexicon.tones.items()}
    composition_matches = {group: _matched_words(text, words) for group, words in lexicon.composition.items()}

    detected = _pick_label({k: len(v) for k, v in scene_matches.items()}, lexicon.scene_type_priority)
    resolved_type = override or detected or SceneType.DIALOGUE
    tone = _pick_label({k: len(v) for k, v in tone_matches.items()}, lexicon.tone_priority)
    tone = tone or EmotionalTone.NEUTRAL

    classification_words = {w for words in scene_matches.values() for w in words}
    classification_words |= {w for words in tone_matches.values() for w in words}
    if override is not None:
        confidence = 1.0
    else:
        # Share of the description words that hit a scene or tone trigger.
        tokens = _WORD_TOKENS.findall(text)
        confidence = min(1.0, len(classification_words) / len(tokens)) if tokens else 0.0

    all_words = classification_words | {w for words in composition_matches.values() for w in words}
    keywords = _ordered_keywords(text, all_words)

    profile = profiles.profiles[resolved_type]
    lens = list(profile.preferred_lens)
    crop = list(profile.preferred_crop)
    angles = list(profile.preferred_angles)
    for group, refinement in profiles.refinements.items():
        if composition_matches.get(group):
            lens = _append_unique(lens, refinement.preferred_lens)
            crop = _append_unique(crop, refinement.preferred_crop)
            angles = _append_unique(angles, refinement.preferred_angles)

    delta = profiles.tone_adjustments.get(tone)
    intimacy = profile.intimacy_level + (delta.intimacy_level if delta else 0)
    dynamism = profile.dynamism_level + (delta.dynamism_level if delta else 0)
    if intensity_hint is not None:
        intensity = intensity_hint
    else:
        intensity = profile.emotional_intensity + (delta.emotional_intensity if delta else 0)

    composition = CompositionNeeds(
        eye_contact=resolved_type == SceneType.DIALOGUE or bool(composition_matches.get("eye_contact")),
        profile_work=tone == EmotionalTone.CONTEMPLATIVE or bool(composition_matches.get("profile")),
        full_body_needed=resolved_type in (SceneType.ACTION, SceneType.ESTABLISHING)
        or bool(composition_matches.get("full_body")),
        hands_important=bool(composition_matches.get("hands")),
    )

    analysis = SceneAnalysis(
        scene_type=resolved_type,
        emotional_tone=tone,
        confidence=round(confidence, 4),
        keywords=keywords,
        required_shots=RequiredShots(
            preferred_lens=tuple(lens),
            preferred_crop=tuple(crop),
            preferred_angles=tuple(angles),
        ),
        camera_preferences=CameraPreferences(
            intimacy_level=_clamp_level(intimacy),
            dynamism_level=_clamp_level(dynamism),
            emotional_intensity=_clamp_level(intensity),
        ),
        composition_needs=composition,
        reasoning=_build_reasoning(resolved_type, tone, keywords, override is not None),
    )

    metrics.record_scene_analysis(analysis.scene_type.value, analysis.emotional_tone.value)
    logger.info(
        "scene_analyzed",
        extra={
            "scene_type": analysis.scene_type.value,
            "emotional_tone": analysis.emotional_tone.value,
            "confidence": analysis.confidence,
            "keyword_count": len(keywords),
        },
    )
    return analysis
