"""API routers."""

from .cases import router as cases_router
from .files import router as files_router

__all__ = ["cases_router", "files_router"]
