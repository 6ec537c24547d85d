"""
Milestone Processor.

One run walks every milestone on the tracker page by page, closes the ones
whose work is finished, then creates the upcoming instance of each recurring
milestone that is missing.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, List, Optional, Set

from milestone_keeper.processing.models import MilestoneSpec, ProcessResult, RemoteMilestone
from milestone_keeper.processing.recurrence import get_upcoming_due_date
from milestone_keeper.processing.templates import (
    GLOBAL_MILESTONES,
    MilestoneTemplate,
    build_title_index,
    get_milestone_title,
)

logger = logging.getLogger(__name__)

OPERATIONS_PER_RUN = 100
MIN_ISSUES_IN_MILESTONE = 3
MILESTONES_PER_PAGE = 100
MILESTONE_DESCRIPTION = (
    "Generated by [Memorable Milestones](https://github.com/instantish/memorable-milestones)"
)

GetMilestones = Callable[[int], Awaitable[List[RemoteMilestone]]]


@dataclass
class ProcessorOptions:
    owner: str
    repo: str
    debug_only: bool = False


@dataclass
class ProcessorState:
    """Bookkeeping for a single run."""
    operations_left: int = OPERATIONS_PER_RUN
    current_template_ids: Set[str] = field(default_factory=set)
    milestones_to_add: List[MilestoneSpec] = field(default_factory=list)
    closed_milestones: List[RemoteMilestone] = field(default_factory=list)
    budget_exhausted: bool = False

    def to_result(self) -> ProcessResult:
        return ProcessResult(
            operations_left=self.operations_left,
            milestones_to_add=list(self.milestones_to_add),
            closed_milestones=list(self.closed_milestones),
            budget_exhausted=self.budget_exhausted,
        )


def format_due_on(due_date: datetime) -> str:
    return due_date.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_milestone(template: MilestoneTemplate, due_date: Optional[datetime] = None) -> MilestoneSpec:
    return MilestoneSpec(
        title=get_milestone_title(template),
        description=MILESTONE_DESCRIPTION,
        due_on=format_due_on(due_date) if due_date else None,
    )


def should_close(milestone: RemoteMilestone) -> bool:
    """An open milestone closes once it has enough issues and none are open."""
    if milestone.state == "closed":
        return False

    if milestone.total_issues < MIN_ISSUES_IN_MILESTONE:
        logger.info(
            f"Skipping closing {milestone.title} because it has less than "
            f"{MIN_ISSUES_IN_MILESTONE} issues"
        )
        return False
    if milestone.open_issues > 0:
        logger.info(f"Skipping closing {milestone.title} because it has open issues/prs")
        return False
    return True


class MilestoneProcessor:
    """Closes finished milestones and creates missing recurring ones."""

    def __init__(
        self,
        options: ProcessorOptions,
        client=None,
        get_milestones: Optional[GetMilestones] = None,
        now: Optional[datetime] = None,
        templates: Optional[Dict[str, MilestoneTemplate]] = None
    ):
        """
        Initialize the processor.

        Args:
            options: Target repository and debug flag
            client: Tracker client exposing list_milestones_for_repo,
                update_milestone and create_milestone coroutines
            get_milestones: Optional page fetcher replacing the client's listing
            now: Reference instant, defaults to the current UTC time
            templates: Template registry, defaults to GLOBAL_MILESTONES
        """
        if client is None and get_milestones is None:
            raise ValueError("Either a client or a get_milestones function is required")

        self.options = options
        self.client = client
        self.templates = templates if templates is not None else GLOBAL_MILESTONES
        self.now = now or datetime.now(timezone.utc)
        if self.now.tzinfo is None:
            self.now = self.now.replace(tzinfo=timezone.utc)
        self._title_to_template_id = build_title_index(self.templates)
        self._get_milestones = get_milestones or self._fetch_milestones

        logger.info(f"Checking milestones at {self.now.isoformat()}")
        if self.options.debug_only:
            logger.warning(
                "Executing in debug mode. Debug output will be written but no milestones will be processed."
            )

    async def process_milestones(self) -> ProcessResult:
        """Run one full pass: scan, close, reconcile, create."""
        state = ProcessorState()

        if not await self._scan(state):
            return state.to_result()

        self._assert_milestones(state)
        await self._create_milestones(state)

        logger.info("No more milestones found to process. Exiting.")
        return state.to_result()

    async def _scan(self, state: ProcessorState) -> bool:
        """Walk every page. Returns False if the operation budget ran out first."""
        page = 1
        while True:
            if state.operations_left <= 0:
                logger.warning("Reached max number of operations to process. Exiting.")
                state.budget_exhausted = True
                return False

            milestones = await self._get_milestones(page)
            state.operations_left -= 1

            if not milestones:
                return True

            for milestone in milestones:
                self._add_milestone(milestone, state)
                await self._process_milestone_if_needs_closing(milestone, state)
            page += 1

    async def _fetch_milestones(self, page: int) -> List[RemoteMilestone]:
        return await self.client.list_milestones_for_repo(
            self.options.owner,
            self.options.repo,
            page=page,
            per_page=MILESTONES_PER_PAGE,
            state="open",
        )

    def _add_milestone(self, milestone: RemoteMilestone, state: ProcessorState) -> None:
        """Record the template a current (undated or future) milestone stands for."""
        if milestone.due_on is not None and milestone.due_on <= self.now:
            # Past milestones don't count, so their next instance gets created
            return

        template_id = self._title_to_template_id.get(milestone.title)
        logger.debug(f"Checking global milestone: {template_id}")
        if template_id:
            state.current_template_ids.add(template_id)

    async def _process_milestone_if_needs_closing(
        self,
        milestone: RemoteMilestone,
        state: ProcessorState
    ) -> None:
        if milestone.state == "closed":
            return

        logger.info(
            f"Found milestone: milestone #{milestone.number} - {milestone.title} "
            f"last updated {milestone.updated_at}"
        )
        if not should_close(milestone):
            return
        # Closed in the same pass; there is no way to tag a milestone for a later one
        await self._close_milestone(milestone, state)

    async def _close_milestone(self, milestone: RemoteMilestone, state: ProcessorState) -> None:
        logger.info(f"Closing milestone #{milestone.number} - {milestone.title}")
        state.closed_milestones.append(milestone)

        if self.options.debug_only:
            return

        await self.client.update_milestone(
            self.options.owner,
            self.options.repo,
            milestone.number,
            state="closed",
        )

    def _assert_milestones(self, state: ProcessorState) -> None:
        """Queue the upcoming instance of every template not currently represented."""
        logger.info("Asserting milestones")
        templates_left = [
            template for template_id, template in self.templates.items()
            if template_id not in state.current_template_ids
        ]
        logger.info(f"Global milestones left: {', '.join(t.id for t in templates_left)}")

        for template in templates_left:
            due_date = get_upcoming_due_date(template, self.now)
            if due_date is None:
                continue
            milestone_to_add = build_milestone(template, due_date)
            logger.info(f"Milestone to add: {milestone_to_add.title}")
            state.milestones_to_add.append(milestone_to_add)

        logger.info(f"# milestones to add: {len(state.milestones_to_add)}")

    async def _create_milestones(self, state: ProcessorState) -> None:
        if self.options.debug_only:
            return

        for milestone in state.milestones_to_add:
            await self.client.create_milestone(
                self.options.owner,
                self.options.repo,
                title=milestone.title,
                description=milestone.description,
                due_on=milestone.due_on,
            )
