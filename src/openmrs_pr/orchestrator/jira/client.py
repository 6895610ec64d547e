"""JIRA REST client used to validate issue keys.

Only the single lookup the pipeline needs is implemented. Issues are public
on the OpenMRS tracker, so no authentication is sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Issue:
    """Minimal issue metadata fetched from JIRA."""

    key: str
    summary: str


class JiraClient:
    """Small wrapper around the JIRA REST API (v2)."""

    def __init__(
        self,
        *,
        base_url: str = "https://issues.openmrs.org",
        session: requests.Session | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("JIRA base URL is required")

        self._base_url = base_url.strip().rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "User-Agent": "openmrs-pr",
            }
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _issue_url(self, key: str) -> str:
        return f"{self._base_url}/rest/api/2/issue/{quote(key, safe='')}"

    def get_issue(self, key: str) -> Issue | None:
        """Fetch an issue by key.

        Returns:
            The issue, or None when JIRA reports that no such issue exists.

        Raises:
            requests.HTTPError: For any other unsuccessful response.
        """

        key = key.strip()
        if not key:
            return None

        logger.debug("Fetching JIRA issue", extra={"issue_key": key})
        resp = self._session.get(self._issue_url(key), params={"fields": "summary"}, timeout=30)
        if resp.status_code == 404:
            logger.info("JIRA issue not found", extra={"issue_key": key})
            return None
        resp.raise_for_status()

        data: dict[str, Any] = resp.json()
        found_key = data.get("key")
        if not isinstance(found_key, str) or not found_key.strip():
            raise ValueError("Unexpected issue response: missing key")
        fields = data.get("fields")
        summary = fields.get("summary") if isinstance(fields, dict) else None
        if not isinstance(summary, str):
            summary = ""
        return Issue(key=found_key, summary=summary)

    def close(self) -> None:
        self._session.close()
