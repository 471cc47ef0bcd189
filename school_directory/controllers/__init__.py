"""FastAPI routers acting as controllers in the MVC architecture."""

from . import images, schools

__all__ = ["images", "schools"]
