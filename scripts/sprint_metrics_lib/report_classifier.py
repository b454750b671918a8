"""
Sprint report classifier: turns a sprint report into flat spreadsheet rows
"""

import re
import posixpath
import logging
from typing import List
from urllib.parse import urlsplit, urlunsplit

from .disciplines import DisciplineResolver
from .models import ReportIssue, SprintReport, SheetRow

logger = logging.getLogger(__name__)

ISSUE_COMPLETED = "completed"
ISSUE_NOT_COMPLETED = "notCompleted"
ISSUE_REMOVED = "removed"

ISSUE_BROWSE_PATH = "/browse/"

SPRINT_NAME_PATTERN = re.compile(r"(?:[A-Z]{2,3})\s+Sprint\s+(\d{4})-?W?(\d{2})-?W?(\d{2})")


def simplify_sprint_name(name: str) -> str:
    """Change 'IMR Sprint 2021-W05-06' style names to '2021-W05-06'"""
    match = SPRINT_NAME_PATTERN.search(name or "")
    if not match:
        return name
    year, first_week, last_week = match.groups()
    return f"{year}-W{first_week}-{last_week}"


class ReportClassifier:
    """Builds one SheetRow per issue of a sprint report"""

    def __init__(self, resolver: DisciplineResolver, endpoint_prefix: str):
        self.resolver = resolver
        self.endpoint_prefix = endpoint_prefix

    def process_report(self, report: SprintReport) -> List[SheetRow]:
        """Rows for completed, then not-completed, then removed issues"""
        buckets = [
            (ISSUE_COMPLETED, report.completed),
            (ISSUE_NOT_COMPLETED, report.not_completed),
            (ISSUE_REMOVED, report.removed),
        ]

        rows = []
        for category, issues in buckets:
            for issue in issues:
                added = issue.key in report.added_during_sprint
                rows.append(self.generate_row(issue, added, report.sprint_name, category))

        logger.info(f"Processed {len(rows)} issues for {report.sprint_name}")
        return rows

    def generate_row(self, issue: ReportIssue, added: bool, sprint_name: str, category: str) -> SheetRow:
        """Derive the point fields of one issue from its category and added flag"""
        row = SheetRow(
            sprint=simplify_sprint_name(sprint_name),
            discipline="",
            ticket_number=issue.key,
            title=issue.summary,
            link=self.generate_jira_link(issue.key, issue.summary),
        )

        # Added after the sprint started
        if added:
            row.added = issue.estimate
        else:
            row.commited = issue.estimate

        if category == ISSUE_COMPLETED:
            row.completed = issue.estimate
        elif category == ISSUE_NOT_COMPLETED:
            # re-estimated value at sprint close
            row.carried_over = issue.current_estimate
        elif category == ISSUE_REMOVED:
            row.dropped = issue.estimate

        row.adjusted = row.commited - row.dropped + row.added

        row.discipline = self.resolver.resolve(issue).label

        return row

    def generate_jira_link(self, issue_key: str, issue_title: str) -> str:
        """Spreadsheet HYPERLINK formula pointing at the issue browse page"""
        scheme, netloc, path, query, fragment = urlsplit(self.endpoint_prefix)
        browse_path = posixpath.join(path or "/", ISSUE_BROWSE_PATH.lstrip("/"), issue_key)
        url = urlunsplit((scheme, netloc, browse_path, query, fragment))

        title = (issue_title or "").replace('"', "'").strip()
        return f'=HYPERLINK("{url}","{title}")'
