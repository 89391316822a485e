"""SQLAlchemy model for students (the class roster)."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Column, DateTime, String, Text, Uuid

from app.models.base import Base, utc_now


class Student(Base):
    __tablename__ = "alunos"

    id = Column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        nullable=False,
    )
    class_id = Column(
        "turma_id",
        Uuid(as_uuid=False),
        nullable=False,
        index=True,
    )
    name = Column("nome", String(255), nullable=False)
    notes = Column("observacoes", Text, nullable=True)
    active = Column("ativo", Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


__all__ = ["Student"]
