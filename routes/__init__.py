"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.imports import router as imports_router
from routes.transfers import router as transfers_router

__all__ = [
    "imports_router",
    "transfers_router",
]
