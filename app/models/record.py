"""SQLAlchemy model for classroom records (photo, audio, video or note)."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, String, Text, Uuid
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from app.models.base import Base, utc_now


class ClassroomRecord(Base):
    __tablename__ = "registros"

    id = Column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        nullable=False,
    )
    kind = Column("tipo", String(20), nullable=False)
    media_url = Column("url_arquivo", Text, nullable=True)
    description = Column("descricao", Text, nullable=True)
    voice_transcript = Column("transcricao_voz", Text, nullable=True)
    # Postgres keeps the tags as text[]; other dialects fall back to JSON.
    taxonomy_codes = Column(
        "tags_bncc",
        JSON().with_variant(ARRAY(Text), "postgresql"),
        nullable=True,
    )
    ai_metadata = Column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
    )
    share_with_family = Column("compartilhar_familia", Boolean, nullable=False, default=False)
    is_evidence = Column("is_evidencia", Boolean, nullable=False, default=False)
    recorded_at = Column(
        "data_registro",
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )


__all__ = ["ClassroomRecord"]
