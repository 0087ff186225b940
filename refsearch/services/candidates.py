"""
Candidate collection.

A character's candidate pool is its master reference image followed by its
gallery entries in gallery order. Persistence belongs to the character
subsystem; this module only reads it through ``CharacterImageSource``.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from refsearch.core.exceptions import EntityNotFoundError, ValidationError
from refsearch.db.models import Character, CharacterGalleryImage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CharacterImage:
    """One candidate reference image with its pre-computed scores."""

    media_id: str
    image_url: str
    shot_type: str | None = None
    is_core_reference: bool = False
    is_master: bool = False
    quality_score: float | None = None  # 0-100
    consistency_score: float | None = None  # 0-100, similarity to master
    lens_mm: int | None = None
    crop: str | None = None
    angle: str | None = None
    expression: str | None = None
    mode: str | None = None
    tags: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict, hash=False, compare=False)


class CharacterImageSource(Protocol):
    def get_character_images(self, character_id: str) -> list[CharacterImage]:
        """Return master reference first, then gallery entries; raise EntityNotFoundError."""
        ...


def _parse_character_id(character_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(character_id))
    except ValueError as exc:
        raise EntityNotFoundError("Character", character_id) from exc


def _master_image(character: Character) -> CharacterImage | None:
    if not character.master_image_url:
        return None
    metadata = dict(character.master_metadata or {})
    return CharacterImage(
        media_id=character.master_media_id or f"{character.character_id}_master",
        image_url=character.master_image_url,
        shot_type=metadata.get("shot_type", "master_reference"),
        is_core_reference=True,
        is_master=True,
        quality_score=character.master_quality_score,
        consistency_score=character.master_consistency_score,
        lens_mm=metadata.get("lens_mm"),
        crop=metadata.get("crop"),
        angle=metadata.get("angle"),
        expression=metadata.get("expression"),
        mode=metadata.get("mode"),
        tags=tuple(str(tag) for tag in metadata.get("tags", ())),
        metadata={"source": "master_reference", **metadata},
    )


def _gallery_image(row: CharacterGalleryImage) -> CharacterImage:
    return CharacterImage(
        media_id=row.media_id or str(row.image_id),
        image_url=row.image_url or "",
        shot_type=row.shot_type,
        is_core_reference=row.is_core_reference,
        quality_score=row.quality_score,
        consistency_score=row.consistency_score,
        lens_mm=row.lens_mm,
        crop=row.crop,
        angle=row.angle,
        expression=row.expression,
        mode=row.mode,
        tags=tuple(str(tag) for tag in (row.tags or ())),
        metadata={"source": "gallery", "position": row.position, **(row.metadata_ or {})},
    )


class SqlCharacterImageSource:
    """Reads characters and their galleries from the relational store."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_character_images(self, character_id: str) -> list[CharacterImage]:
        character = self.db.get(Character, _parse_character_id(character_id))
        if character is None:
            raise EntityNotFoundError("Character", character_id)

        images: list[CharacterImage] = []
        master = _master_image(character)
        if master is not None:
            images.append(master)

        rows = self.db.execute(
            select(CharacterGalleryImage)
            .where(CharacterGalleryImage.character_id == character.character_id)
            .order_by(CharacterGalleryImage.position, CharacterGalleryImage.created_at)
        ).scalars()
        images.extend(_gallery_image(row) for row in rows)
        return images


def collect_candidates(source: CharacterImageSource, character_id: str) -> list[CharacterImage]:
    """Gather the candidate pool for a character.

    Entries without an image URL are skipped; a gallery entry repeating the
    master reference's media id is dropped. Unknown characters propagate
    EntityNotFoundError from the source.
    """
    if character_id is None or not str(character_id).strip():
        raise ValidationError("character_id is required")

    images = source.get_character_images(str(character_id).strip())

    candidates: list[CharacterImage] = []
    master_media_id: str | None = None
    for image in images:
        if not image.image_url:
            logger.debug("Skipping image without URL: %s", image.media_id)
            continue
        if image.is_master:
            master_media_id = image.media_id
        elif master_media_id is not None and image.media_id == master_media_id:
            continue
        candidates.append(image)
    return candidates
