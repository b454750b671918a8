"""
Jira API client for sprint lists, sprint reports and issue details
Direct HTTP calls against the REST and greenhopper endpoints
"""

import posixpath
import time
import logging
from typing import List, Optional, Dict
from urllib.parse import urlsplit, urlunsplit

import requests

from .models import BasicSprint, SprintReport, IssueDetails, DISCIPLINE_FIELD_ID

logger = logging.getLogger(__name__)

SPRINT_LIST_PATH = "/rest/greenhopper/1.0/sprintquery/"
SPRINT_REPORT_PATH = "/rest/greenhopper/1.0/rapid/charts/sprintreport"
ISSUE_DETAILS_PATH = "/rest/api/latest/issue/"
MYSELF_PATH = "/rest/api/2/myself"


class APIError(Exception):
    """Base exception for API errors"""
    pass


class AuthenticationError(APIError):
    """Authentication failed"""
    pass


class RateLimitError(APIError):
    """Rate limit exceeded"""
    pass


class JiraErrorResponse(APIError):
    """Error or refusal response from Jira"""

    def __init__(self, status_code: int, error_messages: Optional[List[str]] = None, errors: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.error_messages = error_messages or []
        self.errors = errors or {}
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.error_messages:
            return f"ErrorMessages: {self.error_messages}"
        if self.errors:
            return f"Errors: {self.errors}"
        return "Unknown error"

    @classmethod
    def from_response(cls, response: requests.Response) -> 'JiraErrorResponse':
        """Build from a 4xx/5xx response body"""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        return cls(
            response.status_code,
            error_messages=body.get('errorMessages'),
            errors=body.get('errors'),
        )


def fetch_with_retry(api_call, max_retries=3):
    """Retry API call with exponential backoff on network errors and rate limits"""
    for attempt in range(max_retries):
        try:
            return api_call()
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            if attempt < max_retries - 1:
                delay = 5 * (2 ** attempt)  # 5s, 10s, 20s
                logger.warning(f"Network error, retry {attempt+1}/{max_retries} in {delay}s: {e}")
                time.sleep(delay)
            else:
                raise APIError(f"Network error after {max_retries} attempts: {e}") from e
        except RateLimitError:
            if attempt < max_retries - 1:
                delay = 10 * (2 ** attempt)  # 10s, 20s, 40s
                logger.warning(f"Rate limited, retry {attempt+1}/{max_retries} in {delay}s")
                time.sleep(delay)
            else:
                raise


class JiraClient:
    """Client for the Jira endpoints behind the sprint report"""

    def __init__(self, endpoint_prefix: str, username: str, token: str, timeout: int = 30,
                 discipline_field: str = DISCIPLINE_FIELD_ID):
        if not username or not token:
            raise ValueError("username and token are required")

        self.endpoint_prefix = endpoint_prefix
        self.timeout = timeout
        self.discipline_field = discipline_field
        self.session = requests.Session()
        self.session.auth = (username, token)
        self.session.headers.update({
            "Accept": "application/json",
            "Content-Type": "application/json"
        })

    def url_for(self, *parts: str) -> str:
        """Join path parts onto the endpoint prefix, keeping its own path"""
        scheme, netloc, path, _, _ = urlsplit(self.endpoint_prefix)
        full_path = posixpath.join(path or "/", *[p.lstrip("/") for p in parts])
        return urlunsplit((scheme, netloc, full_path, "", ""))

    def _get(self, url: str, params: Optional[Dict] = None) -> Dict:
        """GET a JSON document, mapping error statuses onto APIError subclasses"""
        logger.debug(f"GET {url} params={params}")
        response = self.session.get(url, params=params, timeout=self.timeout)

        if response.status_code in (401, 403):
            raise AuthenticationError(f"Jira rejected credentials ({response.status_code})")
        if response.status_code == 429:
            raise RateLimitError("Rate limit exceeded")
        if response.status_code < 200 or response.status_code > 299:
            raise JiraErrorResponse.from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {url}: {e}") from e

    def test_connection(self) -> bool:
        """Test Jira authentication"""
        try:
            self._get(self.url_for(MYSELF_PATH))
            return True
        except AuthenticationError:
            return False
        except (APIError, requests.exceptions.RequestException) as e:
            logger.warning(f"Jira connection test failed: {e}")
            return False

    def get_sprints(self, rapid_view_id: str, include_future_sprints: bool = False) -> List[BasicSprint]:
        """Get all sprints of a board (rapid view)"""
        def call():
            data = self._get(
                self.url_for(SPRINT_LIST_PATH, str(rapid_view_id)),
                params={"includeFutureSprints": str(include_future_sprints).lower()},
            )
            return [BasicSprint.from_api_response(s) for s in data.get('sprints', [])]

        return fetch_with_retry(call)

    def get_sprint_report(self, rapid_view_id: str, sprint_id) -> SprintReport:
        """Get the sprint report for one sprint of a board"""
        def call():
            data = self._get(
                self.url_for(SPRINT_REPORT_PATH),
                params={"rapidViewId": str(rapid_view_id), "sprintId": str(sprint_id)},
            )
            return SprintReport.from_api_response(data)

        return fetch_with_retry(call)

    def get_issue_details(self, issue_key: str) -> IssueDetails:
        """Get full issue details (components and discipline field)"""
        def call():
            data = self._get(self.url_for(ISSUE_DETAILS_PATH, issue_key))
            if not isinstance(data, dict):
                raise APIError(f"Unexpected issue payload type for {issue_key}: {type(data)!r}")
            try:
                return IssueDetails.from_api_response(data, discipline_field=self.discipline_field)
            except (AttributeError, TypeError, ValueError) as e:
                raise APIError(f"Malformed issue details for {issue_key}: {e}") from e

        return fetch_with_retry(call)
