"""
Sprint list filtering by state and yearly naming pattern
"""

import re
from typing import Iterable, List, Optional, Collection

from .models import BasicSprint

CLOSED_STATE = "CLOSED"

# Sprints named outside the yearly pattern that still belong in the report
ALWAYS_INCLUDED_SPRINTS = frozenset({"STR Sprint W51-W02(2021-2022)"})


def sprint_name_pattern(year: str):
    """Pattern for '<TEAM> Sprint <year>-W<NN>-W<NN>' style names"""
    return re.compile(
        r"(?:[A-Z]{2,3})\s+Sprint\s+(" + re.escape(str(year)) + r")[-\s]?W?(\d{2})-W?(\d{2})"
    )


def filter_closed_sprints(
    sprints: Iterable[BasicSprint],
    year: str,
    extra_names: Optional[Collection[str]] = None,
) -> List[BasicSprint]:
    """Closed sprints of the given year, in board order"""
    pattern = sprint_name_pattern(year)
    extra = ALWAYS_INCLUDED_SPRINTS if extra_names is None else extra_names

    selected = []
    for sprint in sprints:
        if sprint.state != CLOSED_STATE:
            continue
        if not pattern.search(sprint.name) and sprint.name not in extra:
            continue
        selected.append(sprint)
    return selected
