"""
Sprint sync: Jira sprint report -> spreadsheet rows
"""

import logging
from typing import List, Optional, Dict, Any

import requests

from .api_client import JiraClient, APIError
from .disciplines import DisciplineResolver
from .models import BasicSprint, SheetRow
from .report_classifier import ReportClassifier, simplify_sprint_name
from .sheets_client import SpreadsheetWriter, SpreadsheetError, rows_to_values

logger = logging.getLogger(__name__)


class SyncError(Exception):
    """A sprint could not be synced"""
    pass


class SprintSync:
    """Syncs closed sprints from Jira into the metrics spreadsheet"""

    def __init__(self, jira_client: JiraClient, writer: Optional[SpreadsheetWriter], settings: Dict[str, Any],
                 resolver: Optional[DisciplineResolver] = None):
        self.jira_client = jira_client
        self.writer = writer
        self.settings = settings
        # One resolver per run, so disciplines are cached across sprints
        self.resolver = resolver or DisciplineResolver(jira_client)
        self.classifier = ReportClassifier(self.resolver, settings['jira_endpoint_prefix'])
        self.synced: List[BasicSprint] = []

    @property
    def dry_run(self) -> bool:
        return self.writer is None

    def build_rows(self, project: str, sprint: BasicSprint) -> List[SheetRow]:
        """Fetch the sprint report and classify its issues"""
        report = self.jira_client.get_sprint_report(project, sprint.id)
        print(f"Processing report for {sprint.name}...")
        return self.classifier.process_report(report)

    def sync_sprint(self, project: str, sprint: BasicSprint) -> List[SheetRow]:
        """Sync a single sprint to the spreadsheet"""
        try:
            rows = self.build_rows(project, sprint)
        except (APIError, requests.exceptions.RequestException) as e:
            raise SyncError(f"Error getting sprint report for {sprint.name}: {e}") from e

        sprint_row = [sprint.name, str(sprint.id), simplify_sprint_name(sprint.name)]

        if self.dry_run:
            for row in rows:
                print("  " + " | ".join(str(v) for v in row.to_values()))
            print(f"  [DRY RUN] {len(rows)} rows not written")
            self.synced.append(sprint)
            return rows

        try:
            print(f"Writing issues for {sprint.name} in Google Sheets...")
            self.writer.append(self.settings['tickets_range'], rows_to_values(rows))

            print(f"Adding Sprint {sprint.name} to list in Google Sheets...")
            self.writer.append(self.settings['sprints_range'], [sprint_row])
        except SpreadsheetError as e:
            raise SyncError(f"Error writing {sprint.name} to Google Sheets: {e}") from e

        self.synced.append(sprint)
        return rows

    def sync_all(self, project: str, sprints: List[BasicSprint]) -> int:
        """Sync sprints in order, stopping at the first failure. Returns row count."""
        total = 0
        for sprint in sprints:
            try:
                total += len(self.sync_sprint(project, sprint))
            except SyncError as e:
                raise SyncError(f"Error syncing Sprint {sprint.name}: {e}") from e
        return total

    def reset_formats(self) -> None:
        """Reset the format of both sheets below their header row"""
        if self.dry_run:
            return

        try:
            print("Resetting format for issues list in Google Sheets...")
            self.writer.reset_format(self.settings['tickets_gid'], 1, 0)

            print("Resetting format for Sprint list in Google Sheets...")
            self.writer.reset_format(self.settings['sprints_gid'], 1, 0)
        except SpreadsheetError as e:
            raise SyncError(f"Error resetting format in Google Sheets: {e}") from e
