"""
Data models for Jira Metrics sync
"""

from dataclasses import dataclass, field
from typing import Optional, List, FrozenSet

# Jira custom field holding the engineering discipline of an issue
DISCIPLINE_FIELD_ID = "customfield_12142"
STORY_POINTS_FIELD_ID = "customfield_10005"

SHEET_HEADERS = [
    "Sprint",
    "Discipline",
    "Ticket Number",
    "Title",
    "Link",
    "Commited",
    "Dropped",
    "Added",
    "Adjusted",
    "Carried Over",
    "Completed",
]


def _stat_value(statistic: Optional[dict]) -> int:
    """Read an estimate statistic as whole points (missing value is 0)"""
    if not statistic:
        return 0
    value = (statistic.get('statFieldValue') or {}).get('value')
    if value is None:
        return 0
    return int(value)


@dataclass(frozen=True)
class ReportIssue:
    """An issue as it appears inside a sprint report"""
    key: str
    summary: str
    estimate: int = 0  # original estimation
    current_estimate: int = 0  # estimation at sprint close

    @classmethod
    def from_api_response(cls, data: dict) -> 'ReportIssue':
        """Create ReportIssue from a sprint report issue entry"""
        return cls(
            key=data.get('key', ''),
            summary=data.get('summary', ''),
            estimate=_stat_value(data.get('estimateStatistic')),
            current_estimate=_stat_value(data.get('currentEstimateStatistic')),
        )


@dataclass
class BasicSprint:
    """Sprint entry from the board sprint list"""
    id: int
    name: str
    state: str
    sequence: int = 0
    goal: str = ""

    @classmethod
    def from_api_response(cls, data: dict) -> 'BasicSprint':
        return cls(
            id=data.get('id', 0),
            name=data.get('name', ''),
            state=data.get('state', ''),
            sequence=data.get('sequence', 0),
            goal=data.get('goal') or '',
        )


@dataclass
class SprintReport:
    """Sprint report: three issue buckets plus the keys added mid-sprint"""
    sprint_id: int
    sprint_name: str
    completed: List[ReportIssue] = field(default_factory=list)
    not_completed: List[ReportIssue] = field(default_factory=list)
    removed: List[ReportIssue] = field(default_factory=list)
    added_during_sprint: FrozenSet[str] = frozenset()
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: dict) -> 'SprintReport':
        """Create SprintReport from the greenhopper sprint report response"""
        contents = data.get('contents') or {}
        sprint = data.get('sprint') or {}

        def issues(bucket: str) -> List[ReportIssue]:
            return [ReportIssue.from_api_response(i) for i in contents.get(bucket) or []]

        # Jira sends a {key: true} map, only presence matters
        added_keys = contents.get('issueKeysAddedDuringSprint') or {}

        return cls(
            sprint_id=sprint.get('id', 0),
            sprint_name=sprint.get('name', ''),
            completed=issues('completedIssues'),
            not_completed=issues('issuesNotCompletedInCurrentSprint'),
            removed=issues('puntedIssues'),
            added_during_sprint=frozenset(added_keys),
            start_date=sprint.get('isoStartDate') or sprint.get('startDate'),
            end_date=sprint.get('isoEndDate') or sprint.get('endDate'),
        )

    @property
    def total_issues(self) -> int:
        return len(self.completed) + len(self.not_completed) + len(self.removed)


@dataclass
class IssueDetails:
    """Full issue details, as far as discipline resolution needs them"""
    key: str
    summary: str
    components: List[str] = field(default_factory=list)
    discipline: str = ""  # empty when the custom field is unset
    issue_type: Optional[str] = None
    story_points: Optional[float] = None

    @classmethod
    def from_api_response(cls, data: dict, discipline_field: str = DISCIPLINE_FIELD_ID) -> 'IssueDetails':
        """Create IssueDetails from Jira REST issue response"""
        fields = data.get('fields') or {}

        discipline_data = fields.get(discipline_field)
        if isinstance(discipline_data, dict):
            discipline_data = discipline_data.get('value')
        discipline = discipline_data if isinstance(discipline_data, str) else ''

        components = [
            c['name'] for c in fields.get('components') or []
            if isinstance(c, dict) and isinstance(c.get('name'), str) and c['name']
        ]
        issue_type = (fields.get('issuetype') or {}).get('name')

        return cls(
            key=data.get('key', ''),
            summary=fields.get('summary', ''),
            components=components,
            discipline=discipline.strip(),
            issue_type=issue_type,
            story_points=fields.get(STORY_POINTS_FIELD_ID),
        )


@dataclass
class SheetRow:
    """One spreadsheet row per sprint report issue"""
    sprint: str
    discipline: str
    ticket_number: str
    title: str
    link: str
    commited: int = 0
    dropped: int = 0
    added: int = 0
    adjusted: int = 0
    carried_over: int = 0
    completed: int = 0

    def to_values(self) -> list:
        """Row values in SHEET_HEADERS column order"""
        return [
            self.sprint,
            self.discipline,
            self.ticket_number,
            self.title,
            self.link,
            self.commited,
            self.dropped,
            self.added,
            self.adjusted,
            self.carried_over,
            self.completed,
        ]
