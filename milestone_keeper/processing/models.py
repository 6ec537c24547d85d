"""
Milestone data models shared by the processor, the GitHub client and the API.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteMilestone(BaseModel):
    """A milestone as the tracker reports it. Unknown fields are ignored."""
    model_config = ConfigDict(extra="ignore")

    number: int = Field(..., description="Tracker milestone number")
    title: str = Field(..., description="Milestone title")
    state: Literal["open", "closed"] = Field("open", description="Milestone state")
    open_issues: int = Field(0, description="Open issues and pull requests")
    closed_issues: int = Field(0, description="Closed issues and pull requests")
    due_on: Optional[datetime] = Field(None, description="Due date, if set")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_validator("open_issues", "closed_issues", mode="before")
    @classmethod
    def _missing_count_is_zero(cls, value):
        return 0 if value is None else value

    @field_validator("due_on", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def total_issues(self) -> int:
        return self.open_issues + self.closed_issues


class MilestoneSpec(BaseModel):
    """Payload for a milestone the processor wants created."""
    title: str = Field(..., description="Milestone title")
    description: str = Field(..., description="Milestone description")
    due_on: Optional[str] = Field(None, description="ISO-8601 UTC due date")


class ProcessResult(BaseModel):
    """Outcome of one processing run."""
    operations_left: int = Field(..., description="Unused fetch operations")
    milestones_to_add: List[MilestoneSpec] = Field(default_factory=list)
    closed_milestones: List[RemoteMilestone] = Field(default_factory=list)
    budget_exhausted: bool = Field(False, description="Run stopped at the operation budget")
