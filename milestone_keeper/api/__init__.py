"""API module for Milestone Keeper."""

from milestone_keeper.api.routes import router
from milestone_keeper.api.models import (
    HealthResponse,
    ProcessRequest,
    ProcessResponse,
    TemplateResponse
)

__all__ = [
    "router",
    "HealthResponse",
    "ProcessRequest",
    "ProcessResponse",
    "TemplateResponse"
]
