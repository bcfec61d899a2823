"""
API routes for the subscription filter service.

This module provides the JSON:API routers for filters and constraints.
"""

from .constraints import router as constraints_router
from .deps import close_services, get_services
from .filters import router as filters_router

__all__ = [
    "constraints_router",
    "filters_router",
    "get_services",
    "close_services",
]
