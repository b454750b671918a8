"""
Jira Metrics Library
Syncs closed sprint reports from Jira into a Google spreadsheet
"""

from .config_manager import ConfigManager
from .models import ReportIssue, BasicSprint, SprintReport, IssueDetails, SheetRow
from .api_client import JiraClient
from .disciplines import DisciplineCache, DisciplineResolver, DisciplineResult
from .report_classifier import ReportClassifier, simplify_sprint_name
from .sheets_client import SpreadsheetWriter
from .sprint_filter import filter_closed_sprints
from .sync_service import SprintSync
from .interactive_menu import InteractiveMenu

__all__ = [
    'ConfigManager',
    'ReportIssue',
    'BasicSprint',
    'SprintReport',
    'IssueDetails',
    'SheetRow',
    'JiraClient',
    'DisciplineCache',
    'DisciplineResolver',
    'DisciplineResult',
    'ReportClassifier',
    'simplify_sprint_name',
    'SpreadsheetWriter',
    'filter_closed_sprints',
    'SprintSync',
    'InteractiveMenu',
]
