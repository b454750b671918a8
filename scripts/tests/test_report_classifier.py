"""
Tests for the sprint report classifier

Covers bucket ordering, point derivation per category, the added-during-sprint
flag, link generation and sprint name simplification.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add scripts directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sprint_metrics_lib.api_client import APIError, JiraClient
from sprint_metrics_lib.disciplines import DisciplineResolver, DisciplineCache
from sprint_metrics_lib.models import ReportIssue, SprintReport, IssueDetails
from sprint_metrics_lib.report_classifier import ReportClassifier, simplify_sprint_name

ENDPOINT = "https://jira.example.com"


def make_report(completed=(), not_completed=(), removed=(), added=(), name="IMR Sprint 2021-W05-06"):
    return SprintReport(
        sprint_id=42,
        sprint_name=name,
        completed=list(completed),
        not_completed=list(not_completed),
        removed=list(removed),
        added_during_sprint=frozenset(added),
    )


@pytest.fixture
def jira_client():
    client = Mock()
    client.get_issue_details.return_value = IssueDetails(key="X", summary="", components=["Data"])
    return client


@pytest.fixture
def classifier(jira_client):
    return ReportClassifier(DisciplineResolver(jira_client, DisciplineCache()), ENDPOINT)


class TestSimplifySprintName:
    """Sprint names are shortened to YYYY-WNN-NN"""

    def test_week_range_with_prefixes(self):
        assert simplify_sprint_name("IMR Sprint 2021-W05-06") == "2021-W05-06"

    def test_second_week_without_prefix(self):
        assert simplify_sprint_name("MNZ Sprint 2021-W41-43") == "2021-W41-43"

    def test_both_weeks_prefixed(self):
        assert simplify_sprint_name("STR Sprint 2022-W01-W02") == "2022-W01-02"

    def test_no_dashes_between_parts(self):
        """Dashes are optional between the year and both weeks"""
        assert simplify_sprint_name("IMR Sprint 2021W05W06") == "2021-W05-06"

    def test_non_matching_name_passes_through(self):
        assert simplify_sprint_name("Random Sprint Name") == "Random Sprint Name"

    def test_empty_name(self):
        assert simplify_sprint_name("") == ""


class TestProcessReport:
    """Row derivation from a full report"""

    def test_completed_issue_not_added(self, classifier):
        """Completed issue planned at sprint start"""
        issue = ReportIssue("PROJ-1", "[Backend] Fix bug", estimate=5, current_estimate=5)
        rows = classifier.process_report(make_report(completed=[issue]))

        assert len(rows) == 1
        row = rows[0]
        assert row.sprint == "2021-W05-06"
        assert row.discipline == "Backend"
        assert row.ticket_number == "PROJ-1"
        assert row.title == "[Backend] Fix bug"
        assert row.commited == 5
        assert row.added == 0
        assert row.completed == 5
        assert row.dropped == 0
        assert row.carried_over == 0
        assert row.adjusted == 5

    def test_completed_issue_added_mid_sprint(self, classifier):
        """Same issue, added after the sprint started"""
        issue = ReportIssue("PROJ-1", "[Backend] Fix bug", estimate=5, current_estimate=5)
        row = classifier.process_report(make_report(completed=[issue], added=["PROJ-1"]))[0]

        assert row.commited == 0
        assert row.added == 5
        assert row.completed == 5
        assert row.adjusted == 5

    def test_not_completed_issue_carries_current_estimate(self, classifier):
        """Carried-over uses the re-estimated value"""
        issue = ReportIssue("PROJ-2", "[Web] Page", estimate=3, current_estimate=8)
        row = classifier.process_report(make_report(not_completed=[issue]))[0]

        assert row.commited == 3
        assert row.carried_over == 8
        assert row.completed == 0
        assert row.dropped == 0
        assert row.adjusted == 3

    def test_removed_issue_is_dropped(self, classifier):
        """Removed issues subtract from the adjusted total"""
        issue = ReportIssue("PROJ-3", "[iOS] Crash", estimate=2, current_estimate=2)
        row = classifier.process_report(make_report(removed=[issue]))[0]

        assert row.commited == 2
        assert row.dropped == 2
        assert row.completed == 0
        assert row.carried_over == 0
        assert row.adjusted == 0

    def test_removed_issue_added_mid_sprint(self, classifier):
        issue = ReportIssue("PROJ-4", "[Android] Tweak", estimate=3)
        row = classifier.process_report(make_report(removed=[issue], added=["PROJ-4"]))[0]

        assert row.commited == 0
        assert row.added == 3
        assert row.dropped == 3
        assert row.adjusted == 0

    def test_bucket_order_and_count(self, classifier):
        """Completed, then not-completed, then removed, each in input order"""
        report = make_report(
            completed=[ReportIssue("A-1", "[Web] a", 1), ReportIssue("A-2", "[Web] b", 2)],
            not_completed=[ReportIssue("B-1", "[Web] c", 3)],
            removed=[ReportIssue("C-1", "[Web] d", 4), ReportIssue("C-2", "[Web] e", 5)],
        )
        rows = classifier.process_report(report)

        assert len(rows) == report.total_issues == 5
        assert [r.ticket_number for r in rows] == ["A-1", "A-2", "B-1", "C-1", "C-2"]

    def test_row_invariants(self, classifier):
        """adjusted and the exclusive fields hold for every row"""
        report = make_report(
            completed=[ReportIssue("A-1", "[Web] a", 1), ReportIssue("A-2", "[Web] b", 2)],
            not_completed=[ReportIssue("B-1", "[Web] c", 3, 1)],
            removed=[ReportIssue("C-1", "[Web] d", 4)],
            added=["A-2", "C-1"],
        )
        for row in classifier.process_report(report):
            assert row.adjusted == row.commited - row.dropped + row.added
            assert row.commited == 0 or row.added == 0
            assert sum(1 for v in (row.completed, row.carried_over, row.dropped) if v) <= 1
            if row.ticket_number in report.added_during_sprint:
                assert row.added > 0 and row.commited == 0
            else:
                assert row.commited > 0 and row.added == 0

    def test_empty_report(self, classifier):
        assert classifier.process_report(make_report()) == []

    def test_lookup_failure_still_produces_row(self, jira_client, classifier):
        """A failing detail fetch gives 'Other' instead of aborting"""
        jira_client.get_issue_details.side_effect = APIError("boom")
        issues = [ReportIssue("X-1", "No tag here", 3), ReportIssue("X-2", "[Web] ok", 1)]
        rows = classifier.process_report(make_report(completed=issues))

        assert [r.discipline for r in rows] == ["Other", "Web"]
        assert rows[0].completed == 3

    def test_discipline_from_component(self, classifier):
        row = classifier.process_report(make_report(completed=[ReportIssue("X-1", "Untagged", 1)]))[0]
        assert row.discipline == "Data"


class TestGenerateJiraLink:
    """HYPERLINK formulas"""

    def test_link_formula(self, classifier):
        link = classifier.generate_jira_link("PROJ-1", "Fix bug")
        assert link == '=HYPERLINK("https://jira.example.com/browse/PROJ-1","Fix bug")'

    def test_quotes_replaced_and_trimmed(self, classifier):
        link = classifier.generate_jira_link("PROJ-1", '  Say "hi"  ')
        assert link == '=HYPERLINK("https://jira.example.com/browse/PROJ-1","Say \'hi\'")'

    def test_endpoint_with_path_prefix(self, jira_client):
        classifier = ReportClassifier(DisciplineResolver(jira_client), "https://example.com/jira/")
        link = classifier.generate_jira_link("PROJ-9", "t")
        assert link == '=HYPERLINK("https://example.com/jira/browse/PROJ-9","t")'

    def test_endpoint_query_and_fragment_kept(self, jira_client):
        """Query string and fragment of the endpoint survive the path join"""
        classifier = ReportClassifier(DisciplineResolver(jira_client), "https://example.com/jira?x=1#top")
        link = classifier.generate_jira_link("PROJ-9", "t")
        assert link == '=HYPERLINK("https://example.com/jira/browse/PROJ-9?x=1#top","t")'


class TestMalformedIssueDetails:
    """Odd detail bodies from Jira never abort a report"""

    @pytest.mark.parametrize("payload", [
        [],
        {"fields": {"components": [None]}},
        {"fields": {"customfield_12142": {"value": 3}}},
    ])
    def test_row_falls_back_to_other(self, payload):
        client = JiraClient(ENDPOINT, "user", "token")
        client.session = Mock()
        client.session.get.return_value = Mock(status_code=200, **{"json.return_value": payload})
        classifier = ReportClassifier(DisciplineResolver(client, DisciplineCache()), ENDPOINT)

        rows = classifier.process_report(make_report(completed=[ReportIssue("X-1", "Untagged", 2)]))

        assert len(rows) == 1
        assert rows[0].discipline == "Other"
        assert rows[0].completed == 2
