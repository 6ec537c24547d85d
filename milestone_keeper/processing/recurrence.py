"""
Recurrence engine: finds the next due date of a template that is close
enough to create a milestone for.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from milestone_keeper.processing.templates import MilestoneTemplate

logger = logging.getLogger(__name__)

SHORTEST_SPRINT_LENGTH_IN_DAYS = 2
NUMBER_OF_WEEKS_OUT_TO_MAKE_MILESTONES = 8
DAYS_IN_WEEK = 7
MAX_OCCURRENCES_TO_CHECK = 100


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end``, truncated toward zero."""
    return int((end - start) / timedelta(days=1))


def get_occurrence(template: MilestoneTemplate, index: int) -> datetime:
    if index == 0:
        return template.first_due_date
    return template.first_due_date + timedelta(weeks=index * template.cycle_weeks)


def get_upcoming_due_date(template: MilestoneTemplate, now: datetime) -> Optional[datetime]:
    """
    Get the nearest due date of ``template`` that is eligible for creation.

    An occurrence is eligible when it is more than the shortest sprint away
    and less than NUMBER_OF_WEEKS_OUT_TO_MAKE_MILESTONES weeks away.

    Args:
        template: Recurring milestone template
        now: Reference instant (timezone aware)

    Returns:
        The eligible due date, or None if no occurrence is in the window yet
    """
    window_end = NUMBER_OF_WEEKS_OUT_TO_MAKE_MILESTONES * DAYS_IN_WEEK
    search_end = (template.cycle_weeks + NUMBER_OF_WEEKS_OUT_TO_MAKE_MILESTONES) * DAYS_IN_WEEK

    for index in range(MAX_OCCURRENCES_TO_CHECK):
        due_date = get_occurrence(template, index)
        days_until = days_between(now, due_date)

        if SHORTEST_SPRINT_LENGTH_IN_DAYS < days_until < window_end:
            return due_date
        if days_until > search_end:
            # Later occurrences are only further away
            return None

    logger.debug(f"No due date for {template.id} within {MAX_OCCURRENCES_TO_CHECK} cycles")
    return None
