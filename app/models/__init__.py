"""SQLAlchemy models for the classroom records store."""

from .base import Base
from .record import ClassroomRecord  # noqa: F401
from .student import Student  # noqa: F401

__all__ = [
    "Base",
    "ClassroomRecord",
    "Student",
]
