"""Unit tests for the JIRA client (mocked HTTP session)."""

from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from openmrs_pr.orchestrator.jira.client import Issue, JiraClient


def _session(status_code: int, payload: object = None) -> Mock:
    session = Mock(spec=requests.Session)
    session.headers = {}
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    session.get.return_value = resp
    return session


def test_get_issue_returns_key_and_summary() -> None:
    session = _session(200, {"key": "TRUNK-123", "fields": {"summary": "Fix the login page"}})
    client = JiraClient(base_url="https://issues.openmrs.org/", session=session)

    issue = client.get_issue("TRUNK-123")

    assert issue == Issue(key="TRUNK-123", summary="Fix the login page")
    session.get.assert_called_once_with(
        "https://issues.openmrs.org/rest/api/2/issue/TRUNK-123",
        params={"fields": "summary"},
        timeout=30,
    )
    assert session.headers["Accept"] == "application/json"


def test_get_issue_not_found_returns_none() -> None:
    client = JiraClient(session=_session(404))

    assert client.get_issue("ZZZ-0") is None


def test_get_issue_blank_key_returns_none_without_a_request() -> None:
    session = _session(200, {})
    client = JiraClient(session=session)

    assert client.get_issue("  ") is None
    session.get.assert_not_called()


def test_other_http_errors_propagate() -> None:
    client = JiraClient(session=_session(500))

    with pytest.raises(requests.HTTPError):
        client.get_issue("TRUNK-1")


def test_missing_summary_becomes_empty_string() -> None:
    client = JiraClient(session=_session(200, {"key": "TRUNK-1", "fields": {}}))

    assert client.get_issue("TRUNK-1") == Issue(key="TRUNK-1", summary="")


def test_issue_key_is_url_quoted() -> None:
    session = _session(200, {"key": "A-1", "fields": {"summary": "s"}})
    JiraClient(session=session).get_issue("A-1/../x")

    assert session.get.call_args.args[0].endswith("/rest/api/2/issue/A-1%2F..%2Fx")
