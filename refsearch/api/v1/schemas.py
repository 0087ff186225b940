from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from refsearch.core.shot_types import Angle, Crop, EmotionalTone, Lens, Pack, SceneType, ShotMode


class CamelModel(BaseModel):
    """Wire models use camelCase; Python code uses snake_case names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class SceneReferenceRequest(CamelModel):
    # Missing or blank descriptions and out-of-range hints are rejected by the service with 400.
    scene_description: str | None = None
    scene_type: SceneType | None = None
    emotional_intensity: int | None = None
    include_alternatives: bool = True
    min_quality_score: float | None = None
    max_results: int | None = None
    detailed_analysis: bool = True


class RequiredShotsRead(CamelModel):
    preferred_lens: list[Lens]
    preferred_crop: list[Crop]
    preferred_angles: list[Angle]


class CameraPreferencesRead(CamelModel):
    intimacy_level: int
    dynamism_level: int
    emotional_intensity: int


class CompositionNeedsRead(CamelModel):
    eye_contact: bool
    profile_work: bool
    full_body_needed: bool
    hands_important: bool


class SceneAnalysisRead(CamelModel):
    scene_type: SceneType
    emotional_tone: EmotionalTone
    confidence: float
    keywords: list[str]
    required_shots: RequiredShotsRead
    camera_preferences: CameraPreferencesRead
    composition_needs: CompositionNeedsRead
    reasoning: str


class SelectedImageRead(CamelModel):
    image_url: str
    media_id: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)


class AlternativeImageRead(CamelModel):
    image_url: str
    media_id: str
    score: int
    reasoning: str


class SearchMetricsRead(CamelModel):
    total_images_evaluated: int
    average_score: float
    selection_confidence: float
    processing_time_ms: float


class SceneReferenceResponse(CamelModel):
    success: bool
    selected_image: SelectedImageRead | None = None
    reasoning: str | None = None
    alternatives: list[AlternativeImageRead] | None = None
    scene_analysis: SceneAnalysisRead | None = None
    search_metrics: SearchMetricsRead | None = None
    error: str | None = None


class SearchOptionsRead(CamelModel):
    min_quality_score: float
    max_results: int
    include_alternatives: bool = True
    detailed_analysis: bool = True


class SearchCapabilitiesRead(CamelModel):
    character_id: str
    available_references: int
    core_references: int
    scene_types: list[SceneType]
    emotional_tones: list[EmotionalTone]
    scoring_factors: dict[str, float]
    defaults: SearchOptionsRead


class ShotTemplateRead(CamelModel):
    slug: str
    shot_name: str
    lens_mm: Lens
    mode: ShotMode
    angle: Angle
    crop: Crop
    expression: str
    pose: str
    reference_weight: float
    pack: Pack
    description: str
    usage_notes: str
    tags: list[str]
    scene_types: list[SceneType]


class ShotCatalogRead(CamelModel):
    total: int
    core_count: int
    addon_count: int
    templates: list[ShotTemplateRead]
    groups: dict[str, list[ShotTemplateRead]] | None = None


class ConfigStatusRead(CamelModel):
    version: int
    catalog_version: str
    template_count: int
    scoring_weights: dict[str, float]


class ConfigReloadResponse(CamelModel):
    success: bool
    version: int
    message: str
