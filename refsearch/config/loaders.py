from __future__ import annotations

import json
import math
from functools import lru_cache
from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from refsearch.core.exceptions import ConfigurationError
from refsearch.core.shot_types import Angle, Crop, EmotionalTone, Lens, Pack, SceneType, ShotMode


class ShotTemplate(BaseModel):
    slug: str = Field(min_length=1)
    shot_name: str = Field(min_length=1)
    lens_mm: Lens
    mode: ShotMode
    angle: Angle
    crop: Crop
    expression: str = Field(min_length=1)
    pose: str = Field(min_length=1)
    reference_weight: float = Field(ge=0.0, le=1.0)
    pack: Pack
    description: str = ""
    usage_notes: str = ""
    tags: list[str] = Field(default_factory=list)
    scene_types: list[SceneType] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("lens_mm", "mode", "angle", "crop", "pack")
    @classmethod
    def _reject_unknown(cls, value):
        if not value.known:
            raise ValueError("catalog entries must use a known value")
        return value


class ShotCatalogV1(BaseModel):
    version: str
    templates: list[ShotTemplate] = Field(min_length=1)

    @model_validator(mode="after")
    def _unique_slugs(self) -> "ShotCatalogV1":
        seen: set[str] = set()
        for template in self.templates:
            if template.slug in seen:
                raise ValueError(f"duplicate template slug: {template.slug}")
            seen.add(template.slug)
        return self


class SceneLexiconV1(BaseModel):
    version: str
    scene_type_priority: list[SceneType]
    tone_priority: list[EmotionalTone]
    scene_types: dict[SceneType, list[str]]
    tones: dict[EmotionalTone, list[str]]
    composition: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _priorities_cover_lexicons(self) -> "SceneLexiconV1":
        if set(self.scene_type_priority) != set(SceneType):
            raise ValueError("scene_type_priority must list every scene type exactly once")
        if len(self.scene_type_priority) != len(SceneType):
            raise ValueError("scene_type_priority must not repeat scene types")
        if set(self.scene_types) != set(SceneType):
            raise ValueError("scene_types lexicon must cover every scene type")
        if set(self.tones) != set(self.tone_priority) or EmotionalTone.NEUTRAL in self.tones:
            raise ValueError("tone lexicon and tone_priority must match and exclude neutral")
        return self

    @model_validator(mode="after")
    def _no_nested_triggers(self) -> "SceneLexiconV1":
        # Matching is by substring, so a trigger inside another trigger double counts.
        triggers: list[tuple[str, str]] = []
        for group in (self.scene_types, self.tones):
            for label, words in group.items():
                triggers.extend((word.lower(), label.value) for word in words)
        for i, (word, label) in enumerate(triggers):
            for j, (other, other_label) in enumerate(triggers):
                if i != j and word in other:
                    raise ValueError(
                        f"trigger '{word}' ({label}) is contained in trigger '{other}' ({other_label})"
                    )
        return self


class CameraLevelDelta(BaseModel):
    intimacy_level: int = 0
    dynamism_level: int = 0
    emotional_intensity: int = 0


class SceneShotProfile(BaseModel):
    preferred_lens: list[Lens] = Field(min_length=1)
    preferred_crop: list[Crop] = Field(min_length=1)
    preferred_angles: list[Angle] = Field(min_length=1)
    intimacy_level: int = Field(ge=0, le=10)
    dynamism_level: int = Field(ge=0, le=10)
    emotional_intensity: int = Field(ge=0, le=10)


class ShotRefinement(BaseModel):
    preferred_lens: list[Lens] = Field(default_factory=list)
    preferred_crop: list[Crop] = Field(default_factory=list)
    preferred_angles: list[Angle] = Field(default_factory=list)


class SceneShotProfilesV1(BaseModel):
    version: str
    profiles: dict[SceneType, SceneShotProfile]
    tone_adjustments: dict[EmotionalTone, CameraLevelDelta] = Field(default_factory=dict)
    refinements: dict[str, ShotRefinement] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _every_scene_type_has_profile(self) -> "SceneShotProfilesV1":
        missing = [t.value for t in SceneType if t not in self.profiles]
        if missing:
            raise ValueError(f"missing shot profiles for: {', '.join(missing)}")
        return self


class ScoringWeights(BaseModel):
    """Factor weights; must sum to 100 so the total stays on a 0-100 scale."""

    scene_type_match: float = Field(ge=0.0)
    lens_preference: float = Field(ge=0.0)
    crop_preference: float = Field(ge=0.0)
    angle_preference: float = Field(ge=0.0)
    emotional_tone: float = Field(ge=0.0)
    composition_match: float = Field(ge=0.0)
    quality_score: float = Field(ge=0.0)

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()

    @model_validator(mode="after")
    def _sum_to_hundred(self) -> "ScoringWeights":
        if not math.isclose(self.total, 100.0, abs_tol=1e-6):
            raise ValueError(f"scoring weights must sum to 100, got {self.total}")
        return self


class SceneCompatibility(BaseModel):
    full: list[ShotMode] = Field(default_factory=list)
    partial: list[ShotMode] = Field(default_factory=list)


class ScoringConfigV1(BaseModel):
    version: str
    weights: ScoringWeights
    rank_decay: float = Field(ge=0.0, le=1.0)
    rank_floor: float = Field(ge=0.0, le=1.0)
    partial_scene_credit: float = Field(ge=0.0, le=1.0)
    neutral_expression_credit: float = Field(ge=0.0, le=1.0)
    missing_quality_default: float = Field(ge=0.0, le=100.0)
    confidence_gap_saturation: float = Field(gt=0.0)
    scene_compatibility: dict[SceneType, SceneCompatibility]
    tone_expressions: dict[EmotionalTone, list[str]]
    neutral_expressions: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class ShotAliasesV1(BaseModel):
    version: str
    angle: dict[Angle, list[str]]
    crop: dict[Crop, list[str]]
    lens: dict[str, list[str]]
    mode: dict[ShotMode, list[str]]
    crop_modes: dict[Crop, ShotMode] = Field(default_factory=dict)
    lens_modes: dict[str, ShotMode] = Field(default_factory=dict)


# Global config version counter (incremented on cache clear)
_config_version = 0
_CONFIG_DIR = Path(__file__).parent

_ModelT = TypeVar("_ModelT", bound=BaseModel)


def clear_config_cache():
    """Clear all cached config data. Call this to force config reload."""
    global _config_version
    _config_version += 1
    load_reference_shots_v1.cache_clear()
    load_scene_lexicon_v1.cache_clear()
    load_scene_shot_profiles_v1.cache_clear()
    load_scoring_config_v1.cache_clear()
    load_shot_aliases_v1.cache_clear()


def get_config_version() -> int:
    """Get current config version (incremented on each cache clear)."""
    return _config_version


def _load_model(filename: str, model: type[_ModelT]) -> _ModelT:
    path = _CONFIG_DIR / filename
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Could not read config {filename}: {exc}") from exc
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid config {filename}: {exc}") from exc


def get_shot_templates() -> list[ShotTemplate]:
    return list(load_reference_shots_v1().templates)


def get_shot_template(slug: str) -> ShotTemplate:
    for template in load_reference_shots_v1().templates:
        if template.slug == slug:
            return template
    raise KeyError(f"Unknown shot template: {slug}")


def find_shot_template(slug: str | None) -> ShotTemplate | None:
    """Case-insensitive slug lookup that returns None instead of raising."""
    if not slug:
        return None
    wanted = slug.strip().lower().replace("-", "_")
    for template in load_reference_shots_v1().templates:
        if template.slug == wanted:
            return template
    return None


def list_shot_templates(
    pack: Pack | str | None = None,
    lens: Lens | int | None = None,
    mode: ShotMode | str | None = None,
) -> list[ShotTemplate]:
    """Filter the catalog, sorted by pack, lens then shot name."""
    templates = load_reference_shots_v1().templates
    if pack is not None:
        wanted_pack = Pack.parse(pack)
        templates = [t for t in templates if t.pack == wanted_pack]
    if lens is not None:
        wanted_lens = Lens.parse(lens)
        templates = [t for t in templates if t.lens_mm == wanted_lens]
    if mode is not None:
        wanted_mode = ShotMode.parse(mode)
        templates = [t for t in templates if t.mode == wanted_mode]
    return sorted(templates, key=lambda t: (t.pack.value, t.lens_mm.value, t.shot_name))


# ============================================================================
# Config Loaders
# ============================================================================


@lru_cache(maxsize=1)
def load_reference_shots_v1() -> ShotCatalogV1:
    """Load the reference shot template catalog."""
    return _load_model("reference_shots_v1.json", ShotCatalogV1)


@lru_cache(maxsize=1)
def load_scene_lexicon_v1() -> SceneLexiconV1:
    """Load scene type / tone keyword lexicons."""
    return _load_model("scene_lexicon_v1.json", SceneLexiconV1)


@lru_cache(maxsize=1)
def load_scene_shot_profiles_v1() -> SceneShotProfilesV1:
    """Load the scene type -> required shots lookup table."""
    return _load_model("scene_shot_profiles_v1.json", SceneShotProfilesV1)


@lru_cache(maxsize=1)
def load_scoring_config_v1() -> ScoringConfigV1:
    """Load scoring weights and factor tables."""
    return _load_model("scoring_weights_v1.json", ScoringConfigV1)


@lru_cache(maxsize=1)
def load_shot_aliases_v1() -> ShotAliasesV1:
    """Load legacy shot_type alias tables."""
    return _load_model("shot_aliases_v1.json", ShotAliasesV1)


def load_all_configs() -> None:
    """Load every config file so validation errors surface immediately."""
    load_reference_shots_v1()
    load_scene_lexicon_v1()
    load_scene_shot_profiles_v1()
    load_scoring_config_v1()
    load_shot_aliases_v1()
