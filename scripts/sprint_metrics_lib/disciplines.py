"""
Discipline resolution for sprint report issues

A discipline is looked up in this order, first hit wins:
  1. the per-run cache
  2. a bracketed tag in the issue title, e.g. "[Backend] Fix login"
  3. the discipline custom field of the full issue (remote fetch)
  4. the first component of the full issue
Anything else ends up as "Other".
"""

import re
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Dict, List, Tuple

import requests

from .api_client import APIError, JiraClient
from .models import ReportIssue

logger = logging.getLogger(__name__)

OTHER = "Other"


def _tag_pattern(label: str) -> re.Pattern:
    # "[Backend]", "[ Backend API ]", "[#backend]" but not "[WebBackend]"
    return re.compile(r"\[\s*[^\w\]]?\s*" + re.escape(label) + r"[^\]]*\]", re.IGNORECASE)


# Order matters: a title carrying several tags gets the first label listed here
TITLE_PATTERNS: List[Tuple[str, re.Pattern]] = [
    (label, _tag_pattern(label))
    for label in ("Backend", "Web", "AutoQA", "Android", "iOS")
]


@dataclass(frozen=True)
class DisciplineResult:
    """Outcome of a discipline lookup, always carrying a usable label"""
    label: str
    source: str  # cache, title, field, component, fallback, lookup_failed
    cached: bool = False


class DisciplineCache:
    """Issue key -> discipline label, kept for the whole run"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._entries: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, issue_key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(issue_key)

    def put(self, issue_key: str, discipline: str) -> None:
        with self._lock:
            self._entries[issue_key] = discipline

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, issue_key: str) -> bool:
        with self._lock:
            return issue_key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def match_title(title: str) -> Optional[str]:
    """Return the label of the first title pattern found in the title"""
    for label, pattern in TITLE_PATTERNS:
        if pattern.search(title or ""):
            return label
    return None


class DisciplineResolver:
    """Resolves issue disciplines, fetching issue details only as a last resort"""

    def __init__(self, jira_client: JiraClient, cache: Optional[DisciplineCache] = None):
        self.jira_client = jira_client
        self.cache = cache if cache is not None else DisciplineCache()
        self.remote_lookups = 0

    def resolve(self, issue: ReportIssue) -> DisciplineResult:
        """Resolve the discipline of an issue. Lookup failures give "Other"."""
        cached = self.cache.get(issue.key)
        if cached is not None:
            logger.debug(f"Discipline {cached} found in cache for {issue.key}")
            return DisciplineResult(cached, "cache", cached=True)

        label = match_title(issue.summary)
        if label:
            self.cache.put(issue.key, label)
            return DisciplineResult(label, "title", cached=True)

        self.remote_lookups += 1
        try:
            details = self.jira_client.get_issue_details(issue.key)
        except (APIError, requests.exceptions.RequestException) as e:
            # Not cached, a later call for the same key fetches again
            logger.warning(f"Could not fetch details for {issue.key}, using '{OTHER}': {e}")
            return DisciplineResult(OTHER, "lookup_failed")

        if details.discipline:
            self.cache.put(issue.key, details.discipline)
            return DisciplineResult(details.discipline, "field", cached=True)

        if details.components:
            self.cache.put(issue.key, details.components[0])
            return DisciplineResult(details.components[0], "component", cached=True)

        logger.info(f"No discipline field or component on {issue.key}, using '{OTHER}'")
        self.cache.put(issue.key, OTHER)
        return DisciplineResult(OTHER, "fallback", cached=True)
