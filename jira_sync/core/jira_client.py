"""Jira API client wrapper (REST v3 + agile sprint and enhanced search endpoints)."""

from __future__ import annotations

import logging
from typing import Any

from jira import JIRA, JIRAError

logger = logging.getLogger(__name__)


class JiraAPIError(RuntimeError):
    """Raised when a call to Jira fails; never recovered by the engine."""


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, page_size: int = 100):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )
        self.page_size = page_size

    # ------------------ Transport ------------------
    def _session(self):
        session = getattr(self.client, "_session", None)
        if session is None:
            raise JiraAPIError("JIRA session unavailable")
        return session

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.server}{path}"
        try:
            resp = self._session().request(method, url, **kwargs)
        except JIRAError as exc:
            # ResilientSession raises on error responses itself
            raise JiraAPIError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise JiraAPIError(f"{method} {path} failed {resp.status_code}: {resp.text[:200]}")
        if resp.status_code == 204 or not resp.content:
            return {}
        return resp.json()

    # ------------------ Reads ------------------
    def fetch_issue_raw(self, issue_id_or_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_id_or_key)
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraAPIError(f"Failed to fetch issue {issue_id_or_key}: {exc}") from exc
        if hasattr(issue, "raw"):
            return issue.raw
        if isinstance(issue, dict):
            return issue
        raise JiraAPIError(f"Unexpected issue payload type for {issue_id_or_key}: {type(issue)!r}")

    def fetch_status_raw(self, status_id: str) -> dict[str, Any]:
        try:
            return self.client.status(status_id).raw
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraAPIError(f"Failed to fetch status {status_id}: {exc}") from exc

    def fetch_transitions_raw(self, issue_id_or_key: str) -> list[dict[str, Any]]:
        try:
            return list(self.client.transitions(issue_id_or_key))
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraAPIError(f"Failed to fetch transitions of {issue_id_or_key}: {exc}") from exc

    def fetch_sprint_raw(self, sprint_id: int) -> dict[str, Any]:
        try:
            return self.client.sprint(sprint_id).raw
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraAPIError(f"Failed to fetch sprint {sprint_id}: {exc}") from exc

    def fetch_custom_field_raw(self, field_id: str) -> dict[str, Any] | None:
        data = self._request("GET", "/rest/api/3/field/search", params={"id": field_id})
        values = data.get("values") or []
        return values[0] if values else None

    def search_children_raw(self, parent_key: str, fields: list[str] | None = None) -> list[dict[str, Any]]:
        """Return every direct child of ``parent_key`` (token-paginated search)."""
        params: dict[str, Any] = {"jql": f"parent={parent_key}", "maxResults": self.page_size}
        params["fields"] = ",".join(fields) if fields else "*all"
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            data = self._request("GET", "/rest/api/3/search/jql", params=qp)
            out.extend(data.get("issues", []))
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        return out

    # ------------------ Writes ------------------
    def transition_issue(self, issue_id_or_key: str, transition_id: str) -> None:
        try:
            self.client.transition_issue(issue_id_or_key, transition_id)
        except JIRAError as exc:  # pragma: no cover - network error path
            raise JiraAPIError(f"Failed to transition {issue_id_or_key}: {exc}") from exc

    def update_fields(self, issue_id_or_key: str, fields: dict[str, Any]) -> None:
        self._request("PUT", f"/rest/api/3/issue/{issue_id_or_key}", json={"fields": fields})

    def add_comment(self, issue_id_or_key: str, comment: str) -> None:
        body = {
            "body": {
                "type": "doc",
                "version": 1,
                "content": [{"type": "paragraph", "content": [{"type": "text", "text": comment}]}],
            }
        }
        self._request("POST", f"/rest/api/3/issue/{issue_id_or_key}/comment", json=body)
        logger.debug("Commented on %s: %s", issue_id_or_key, comment)
