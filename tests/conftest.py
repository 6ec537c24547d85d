"""
Pytest configuration and fixtures for test suite.
"""
from datetime import datetime, timezone
from typing import List

import pytest
from fastapi.testclient import TestClient

from milestone_keeper.processing.models import RemoteMilestone
from milestone_keeper.processing.templates import MilestoneTemplate


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class FakeTracker:
    """In-memory stand-in for the GitHub client that records every call."""

    def __init__(self, milestones=None, per_page=100):
        self.milestones: List[RemoteMilestone] = list(milestones or [])
        self.per_page = per_page
        self.pages_requested = []
        self.created = []
        self.updated = []

    async def list_milestones_for_repo(self, owner, repo, page, per_page=100, state="open"):
        self.pages_requested.append(page)
        listed = [m for m in self.milestones if state == "all" or m.state == state]
        start = (page - 1) * self.per_page
        return listed[start:start + self.per_page]

    async def update_milestone(self, owner, repo, number, state="closed"):
        self.updated.append((owner, repo, number, state))
        for idx, milestone in enumerate(self.milestones):
            if milestone.number == number:
                self.milestones[idx] = milestone.model_copy(update={"state": state})

    async def create_milestone(self, owner, repo, title, description, due_on=None):
        self.created.append((owner, repo, title, description, due_on))
        milestone = RemoteMilestone.model_validate({
            "number": len(self.milestones) + 1,
            "title": title,
            "state": "open",
            "open_issues": 0,
            "closed_issues": 0,
            "due_on": due_on,
        })
        self.milestones.append(milestone)
        return milestone


@pytest.fixture
def client():
    """FastAPI test client."""
    from app import app
    return TestClient(app)


@pytest.fixture
def fake_tracker():
    return FakeTracker()


@pytest.fixture
def make_milestone():
    """Factory for tracker milestones."""
    counter = {"number": 0}

    def _make(title="Release", state="open", open_issues=0, closed_issues=0, due_on=None, number=None):
        counter["number"] += 1
        return RemoteMilestone(
            number=number if number is not None else counter["number"],
            title=title,
            state=state,
            open_issues=open_issues,
            closed_issues=closed_issues,
            due_on=due_on,
            updated_at=utc(2020, 1, 1),
        )

    return _make


@pytest.fixture
def single_template():
    """Registry with one template anchored on 2020-01-01."""
    template = MilestoneTemplate("apple", "Apple", "🍎", utc(2020, 1, 1))
    return {template.id: template}
