"""
Run helper shared by the API and the command line entry point.
"""

import logging
from datetime import datetime
from typing import Optional

from milestone_keeper.github.client import GitHubClient
from milestone_keeper.processing.milestone_processor import MilestoneProcessor, ProcessorOptions
from milestone_keeper.processing.models import ProcessResult
from milestone_keeper.utils.config import GitHubSettings
from milestone_keeper.utils.kafka import KafkaEventLogger

logger = logging.getLogger(__name__)


async def run_milestones(
    owner: str,
    repo: str,
    settings: GitHubSettings,
    debug_only: bool = False,
    now: Optional[datetime] = None,
    event_logger: Optional[KafkaEventLogger] = None
) -> ProcessResult:
    """
    Process the milestones of one repository against the live GitHub API.

    GitHubAPIError is logged, published and re-raised.
    """
    repository = f"{owner}/{repo}"
    if event_logger:
        event_logger.log_event(f"Processing milestones for {repository}")

    try:
        async with GitHubClient.from_settings(settings) as client:
            processor = MilestoneProcessor(
                ProcessorOptions(owner=owner, repo=repo, debug_only=debug_only),
                client=client,
                now=now,
            )
            result = await processor.process_milestones()
    except Exception as e:
        logger.error(f"Milestone run for {repository} failed: {e}")
        if event_logger:
            event_logger.log_error(f"Milestone run for {repository} failed", str(e))
        raise

    if result.budget_exhausted:
        logger.warning(f"Operation budget exhausted for {repository}; results are partial")
    if event_logger:
        event_logger.log_run_result(repository, result, debug_only=debug_only)
    return result
