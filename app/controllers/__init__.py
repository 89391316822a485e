"""FastAPI routers acting as controllers in the MVC architecture."""

from . import media

__all__ = ["media"]
