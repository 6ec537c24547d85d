"""
Recurring milestone templates.

Every template recurs on a fixed 16 week cycle counted from its first due
date. The registry is ordered, and creation follows that order.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict

NUMBER_OF_WEEKS_IN_CYCLE = 16


@dataclass(frozen=True)
class MilestoneTemplate:
    """A named milestone that recurs every cycle from an anchor due date."""
    id: str
    name: str
    emoji: str
    first_due_date: datetime
    cycle_weeks: int = NUMBER_OF_WEEKS_IN_CYCLE

    @property
    def title(self) -> str:
        return get_milestone_title(self)


def get_milestone_title(template: MilestoneTemplate) -> str:
    """Title used on the tracker: emoji, two spaces, name."""
    return f"{template.emoji}  {template.name}"


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


# Staggered two weeks apart so one milestone falls due every other week.
_TEMPLATES = [
    MilestoneTemplate("avocado", "Avocado", "🥑", _utc(2020, 1, 7)),
    MilestoneTemplate("banana", "Banana", "🍌", _utc(2020, 1, 21)),
    MilestoneTemplate("cherry", "Cherry", "🍒", _utc(2020, 2, 4)),
    MilestoneTemplate("dragon_fruit", "Dragon Fruit", "🐉", _utc(2020, 2, 18)),
    MilestoneTemplate("eggplant", "Eggplant", "🍆", _utc(2020, 3, 3)),
    MilestoneTemplate("fortune_cookie", "Fortune Cookie", "🥠", _utc(2020, 3, 17)),
    MilestoneTemplate("grape", "Grape", "🍇", _utc(2020, 3, 31)),
    MilestoneTemplate("honeydew", "Honeydew", "🍈", _utc(2020, 4, 14)),
]

GLOBAL_MILESTONES: Dict[str, MilestoneTemplate] = {
    template.id: template for template in _TEMPLATES
}


def build_title_index(templates: Dict[str, MilestoneTemplate]) -> Dict[str, str]:
    """Map each template's exact title to its id."""
    return {get_milestone_title(template): template_id for template_id, template in templates.items()}
