"""
API routers for the reachat backend
"""

from .pipeline import router as pipeline_router

__all__ = ["pipeline_router"]
