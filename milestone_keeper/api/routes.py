"""
API Routes for Milestone Keeper.
Implements health, template listing and milestone processing endpoints.
"""

import logging
from typing import List
from datetime import datetime, timezone
from fastapi import APIRouter

from milestone_keeper.api.models import (
    HealthResponse,
    ProcessRequest,
    ProcessResponse,
    TemplateResponse
)
from milestone_keeper.processing.milestone_processor import format_due_on
from milestone_keeper.processing.recurrence import get_upcoming_due_date
from milestone_keeper.processing.runner import run_milestones
from milestone_keeper.processing.templates import GLOBAL_MILESTONES
from milestone_keeper.utils.config import (
    get_github_settings,
    load_config,
    require_token,
    resolve_repository
)
from milestone_keeper.utils.kafka import create_event_logger

logger = logging.getLogger(__name__)
router = APIRouter()


def get_app_version() -> str:
    config = load_config()
    return config.get('api', {}).get('version', '1.0.0')


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=get_app_version(),
        timestamp=datetime.now(timezone.utc).isoformat()
    )


@router.get("/milestones/templates", response_model=List[TemplateResponse], tags=["Milestones"])
async def list_templates():
    """List recurring milestone templates with their next eligible due date."""
    now = datetime.now(timezone.utc)
    templates = []
    for template in GLOBAL_MILESTONES.values():
        due_date = get_upcoming_due_date(template, now)
        templates.append(TemplateResponse(
            id=template.id,
            title=template.title,
            first_due_date=format_due_on(template.first_due_date),
            cycle_weeks=template.cycle_weeks,
            next_due_on=format_due_on(due_date) if due_date else None
        ))
    return templates


@router.post("/milestones/process", response_model=ProcessResponse, tags=["Milestones"])
async def process_milestones(request: ProcessRequest):
    """
    Close finished milestones and create missing recurring ones.
    With debug_only, nothing is changed on GitHub and the response is a dry-run report.
    """
    # ConfigurationError and GitHubAPIError are translated by the app's exception handlers
    settings = get_github_settings()
    require_token(settings)
    owner, repo = resolve_repository(request.owner, request.repo, settings)

    debug_only = settings.debug_only if request.debug_only is None else request.debug_only
    now = _as_utc(request.now) if request.now else None
    logger.info(f"Processing milestones for {owner}/{repo} (debug_only={debug_only})")

    event_logger = create_event_logger()
    try:
        result = await run_milestones(
            owner,
            repo,
            settings,
            debug_only=debug_only,
            now=now,
            event_logger=event_logger
        )
    finally:
        event_logger.close()

    return ProcessResponse(
        repository=f"{owner}/{repo}",
        debug_only=debug_only,
        operations_left=result.operations_left,
        budget_exhausted=result.budget_exhausted,
        milestones_to_add=result.milestones_to_add,
        closed_milestones=result.closed_milestones
    )
