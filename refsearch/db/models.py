from __future__ import annotations

import uuid

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql.sqltypes import Uuid

from refsearch.db.base import Base


class Character(Base):
    """Character record owned by the character-management subsystem.

    The master reference columns describe the first-generated image that
    defines the character's appearance; it is always the first candidate.
    """

    __tablename__ = "characters"

    character_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    master_media_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    master_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    master_quality_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    master_consistency_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    master_metadata: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())

    gallery: Mapped[list["CharacterGalleryImage"]] = relationship(
        back_populates="character",
        cascade="all, delete-orphan",
        order_by="CharacterGalleryImage.position",
    )


class CharacterGalleryImage(Base):
    __tablename__ = "character_gallery_images"

    image_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    character_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("characters.character_id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    media_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    shot_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    is_core_reference: Mapped[bool] = mapped_column(nullable=False, default=False)
    quality_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    consistency_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Structured shot facts; when absent they are parsed from shot_type.
    lens_mm: Mapped[int | None] = mapped_column(Integer, nullable=True)
    crop: Mapped[str | None] = mapped_column(String(32), nullable=True)
    angle: Mapped[str | None] = mapped_column(String(32), nullable=True)
    expression: Mapped[str | None] = mapped_column(String(64), nullable=True)
    mode: Mapped[str | None] = mapped_column(String(32), nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    created_at: Mapped[object] = mapped_column(DateTime(timezone=True), server_default=func.now())

    character: Mapped[Character] = relationship(back_populates="gallery")
