"""
Scene reference search.

Composes the full search: validate the query, collect the character's
candidates, analyze the scene, score, rank and assemble the response.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from refsearch.core import metrics
from refsearch.core.exceptions import AppError, InternalError, ValidationError
from refsearch.core.request_context import log_context
from refsearch.core.shot_types import SceneType
from refsearch.services.candidates import CharacterImageSource, collect_candidates
from refsearch.services.scene_analysis import SceneAnalysis, analyze_scene, validate_emotional_intensity
from refsearch.services.scoring import round_score, score_candidates
from refsearch.services.selection import SearchMetrics, SelectionOptions, explain_selection, select_candidates

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SceneReferenceQuery:
    scene_description: str | None
    scene_type: SceneType | str | None = None
    emotional_intensity: int | None = None
    include_alternatives: bool = True
    min_quality_score: float = 70.0
    max_results: int = 5
    detailed_analysis: bool = True


@dataclass(frozen=True)
class SelectedImage:
    image_url: str
    media_id: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AlternativeImage:
    image_url: str
    media_id: str
    score: int
    reasoning: str


@dataclass(frozen=True)
class ReportedMetrics(SearchMetrics):
    processing_time_ms: float = 0.0


@dataclass
class SceneReferenceResult:
    success: bool
    selected_image: SelectedImage | None = None
    reasoning: str | None = None
    alternatives: list[AlternativeImage] | None = None
    scene_analysis: SceneAnalysis | None = None
    search_metrics: ReportedMetrics | None = None
    error: str | None = None


def _validate_query(character_id: str, query: SceneReferenceQuery) -> SelectionOptions:
    if character_id is None or not str(character_id).strip():
        raise ValidationError("character_id is required")
    if query.scene_description is None or not str(query.scene_description).strip():
        raise ValidationError("scene description is required")
    validate_emotional_intensity(query.emotional_intensity)
    return SelectionOptions(
        min_quality_score=query.min_quality_score,
        max_results=query.max_results,
        include_alternatives=query.include_alternatives,
    )


def _shot_metadata(scored) -> dict[str, Any]:
    shot = scored.shot
    metadata = dict(scored.candidate.metadata)
    metadata.update(
        {
            "shot_type": scored.candidate.shot_type,
            "lens_mm": shot.lens.value if shot.lens.known else None,
            "crop": shot.crop.value if shot.crop.known else None,
            "angle": shot.angle.value if shot.angle.known else None,
            "mode": shot.mode.value if shot.mode.known else None,
            "expression": shot.expression,
            "reference_shot": shot.template_slug,
            "is_core_reference": scored.candidate.is_core_reference,
            "quality_score": scored.candidate.quality_score,
            "consistency_score": scored.candidate.consistency_score,
            "factor_scores": scored.factors.as_dict(),
        }
    )
    return {key: value for key, value in metadata.items() if value is not None}


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 3)


def find_reference_for_scene(
    source: CharacterImageSource,
    character_id: str,
    query: SceneReferenceQuery,
    *,
    max_workers: int = 1,
) -> SceneReferenceResult:
    """
    Find the best reference image of a character for a scene.

    Args:
        source: Character image store
        character_id: Character to search
        query: Scene description, hints and selection options
        max_workers: Thread pool size for candidate scoring (1 = inline)

    Returns:
        SceneReferenceResult; "no match" outcomes come back with success=False

    Raises:
        ValidationError: blank character id or description, invalid hints
        EntityNotFoundError: unknown character
        InternalError: unexpected failure during analysis or scoring
    """
    started = time.perf_counter()
    with metrics.track_search(), log_context(character_id=character_id):
        options = _validate_query(character_id, query)

        with log_context(stage="collect"):
            candidates = collect_candidates(source, character_id)

        try:
            with log_context(stage="analyze"):
                analysis = analyze_scene(
                    query.scene_description,
                    scene_type=query.scene_type,
                    emotional_intensity=query.emotional_intensity,
                )
            with log_context(stage="score"):
                scored = score_candidates(candidates, analysis, max_workers=max_workers)
            with log_context(stage="select"):
                selection = select_candidates(scored, options)
                reasoning = explain_selection(selection.selected, analysis) if selection.selected else None
        except AppError:
            raise
        except Exception as exc:
            logger.exception("reference_search_failed", extra={"candidate_count": len(candidates)})
            metrics.record_search_outcome("error", len(candidates))
            raise InternalError("Reference search failed", detail=str(exc)) from exc

        search_metrics = ReportedMetrics(
            total_images_evaluated=selection.metrics.total_images_evaluated,
            average_score=round(selection.metrics.average_score, 2),
            selection_confidence=round(selection.metrics.selection_confidence, 4),
            processing_time_ms=_elapsed_ms(started),
        )
        scene_analysis = analysis if query.detailed_analysis else None

        if not selection.success:
            metrics.record_search_outcome("no_match", len(scored))
            logger.info(
                "reference_not_found",
                extra={"reason": selection.error, "total_images_evaluated": len(scored)},
            )
            return SceneReferenceResult(
                success=False,
                scene_analysis=scene_analysis,
                search_metrics=search_metrics,
                error=selection.error,
            )

        best = selection.selected
        alternatives = None
        if selection.alternatives is not None:
            alternatives = [
                AlternativeImage(
                    image_url=alt.candidate.image_url,
                    media_id=alt.candidate.media_id,
                    score=round_score(alt.total_score),
                    reasoning=alt.reasoning,
                )
                for alt in selection.alternatives
            ]

        metrics.record_search_outcome("selected", len(scored))
        logger.info(
            "reference_selected",
            extra={
                "media_id": best.candidate.media_id,
                "score": round(best.total_score, 2),
                "scene_type": analysis.scene_type.value,
                "total_images_evaluated": len(scored),
            },
        )
        return SceneReferenceResult(
            success=True,
            selected_image=SelectedImage(
                image_url=best.candidate.image_url,
                media_id=best.candidate.media_id,
                score=round(best.total_score, 2),
                metadata=_shot_metadata(best),
            ),
            reasoning=reasoning,
            alternatives=alternatives,
            scene_analysis=scene_analysis,
            search_metrics=search_metrics,
        )
