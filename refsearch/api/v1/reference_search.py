from fastapi import APIRouter
from pydantic.alias_generators import to_camel

from refsearch.api.deps import ImageSourceDep
from refsearch.api.v1.schemas import (
    SceneReferenceRequest,
    SceneReferenceResponse,
    SearchCapabilitiesRead,
    SearchOptionsRead,
)
from refsearch.config import loaders
from refsearch.core.settings import settings
from refsearch.core.shot_types import EmotionalTone, SceneType
from refsearch.services.candidates import collect_candidates
from refsearch.services.reference_search import SceneReferenceQuery, find_reference_for_scene


router = APIRouter(tags=["reference-search"])


@router.post(
    "/characters/{character_id}/find-reference-for-scene",
    response_model=SceneReferenceResponse,
    response_model_exclude_none=True,
)
def find_reference(character_id: str, payload: SceneReferenceRequest, source=ImageSourceDep):
    """Pick the best reference image of a character for a scene description."""
    query = SceneReferenceQuery(
        scene_description=payload.scene_description,
        scene_type=payload.scene_type,
        emotional_intensity=payload.emotional_intensity,
        include_alternatives=payload.include_alternatives,
        min_quality_score=(
            payload.min_quality_score
            if payload.min_quality_score is not None
            else settings.default_min_quality_score
        ),
        max_results=payload.max_results if payload.max_results is not None else settings.default_max_results,
        detailed_analysis=payload.detailed_analysis,
    )
    result = find_reference_for_scene(
        source,
        character_id,
        query,
        max_workers=settings.scoring_max_workers,
    )
    return SceneReferenceResponse.model_validate(result)


@router.get(
    "/characters/{character_id}/find-reference-for-scene",
    response_model=SearchCapabilitiesRead,
)
def get_search_capabilities(character_id: str, source=ImageSourceDep):
    """Describe what the scene search can do for this character."""
    candidates = collect_candidates(source, character_id)
    weights = loaders.load_scoring_config_v1().weights
    return SearchCapabilitiesRead(
        character_id=character_id,
        available_references=len(candidates),
        core_references=sum(1 for c in candidates if c.is_core_reference),
        scene_types=list(SceneType),
        emotional_tones=list(EmotionalTone),
        scoring_factors={to_camel(name): weight for name, weight in weights.as_dict().items()},
        defaults=SearchOptionsRead(
            min_quality_score=settings.default_min_quality_score,
            max_results=settings.default_max_results,
        ),
    )
