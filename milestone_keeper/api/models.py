"""
Pydantic Models for the Milestone Keeper API.
Defines request and response schemas.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from milestone_keeper.processing.models import MilestoneSpec, RemoteMilestone


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field("healthy", description="Service status")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp")


class ProcessRequest(BaseModel):
    """Request model for a processing run."""
    owner: Optional[str] = Field(None, description="Repository owner, defaults to GITHUB_REPOSITORY")
    repo: Optional[str] = Field(None, description="Repository name, defaults to GITHUB_REPOSITORY")
    debug_only: Optional[bool] = Field(None, description="Compute and report without mutating the tracker")
    now: Optional[datetime] = Field(None, description="Reference instant, defaults to the current time")


class ProcessResponse(BaseModel):
    """Response model for a processing run."""
    repository: str = Field(..., description="owner/repo that was processed")
    debug_only: bool = Field(..., description="Whether mutating calls were suppressed")
    operations_left: int = Field(..., description="Unused fetch operations")
    budget_exhausted: bool = Field(False, description="Run stopped at the operation budget")
    milestones_to_add: List[MilestoneSpec] = Field(default=[], description="Milestones created (or planned in debug mode)")
    closed_milestones: List[RemoteMilestone] = Field(default=[], description="Milestones closed (or planned in debug mode)")


class TemplateResponse(BaseModel):
    """A recurring milestone template and its next eligible due date."""
    id: str
    title: str
    first_due_date: str
    cycle_weeks: int
    next_due_on: Optional[str] = Field(None, description="Next due date eligible for creation, if any")
