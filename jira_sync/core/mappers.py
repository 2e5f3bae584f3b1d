"""Mapping raw Jira JSON payloads into domain model instances."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

import pandas as pd

from .config import FIELD_IDS
from .models import ChangeItem, CustomField, Issue, IssueStatus, ParentRef, Sprint, Transition
from .status import category_from_status_payload

logger = logging.getLogger(__name__)

SPRINT_STATE_ORDER = ("active", "future")


def parse_date(value: Any) -> date | None:
    """Parse a Jira date or timestamp into a calendar date.

    Timestamps keep the date as written (the offset is not applied) so that
    sprint dates match what users see in the sprint header. Unparseable
    values yield None rather than raising.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # "2024-09-01T10:00:00.000+0000" -> "2024-09-01"
    ts = pd.to_datetime(text.split("T")[0], errors="coerce")
    if ts is None or pd.isna(ts):
        logger.warning("Ignoring unparseable date value %r", value)
        return None
    return ts.date()


def format_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def map_status(raw: dict[str, Any]) -> IssueStatus:
    return IssueStatus(
        id=str(raw.get("id") or ""),
        name=raw.get("name") or "",
        category=category_from_status_payload(raw),
    )


def map_sprint(raw: dict[str, Any]) -> Sprint:
    sprint_id = raw.get("id")
    return Sprint(
        id=int(sprint_id) if sprint_id is not None else None,
        state=(raw.get("state") or "").lower() or None,
        name=raw.get("name"),
        start_date=parse_date(raw.get("startDate")),
        end_date=parse_date(raw.get("endDate")),
        complete_date=parse_date(raw.get("completeDate")),
    )


def select_sprint(raw_sprints: Any) -> Sprint | None:
    """Choose the sprint that drives dates from a sprint custom field value.

    Preference: the active sprint, then the first future sprint, then the
    last listed (most recent) closed sprint.
    """
    if not raw_sprints:
        return None
    if isinstance(raw_sprints, dict):
        raw_sprints = [raw_sprints]
    sprints = [map_sprint(s) for s in raw_sprints if isinstance(s, dict)]
    if not sprints:
        return None
    for state in SPRINT_STATE_ORDER:
        for sprint in sprints:
            if sprint.state == state:
                return sprint
    return sprints[-1]


def map_issue(raw: dict[str, Any], sprint_field_id: str = FIELD_IDS["sprint"]) -> Issue:
    fields = raw.get("fields") or {}
    project = fields.get("project") or {}
    issuetype = fields.get("issuetype") or {}
    parent_raw = fields.get("parent")
    parent = None
    if parent_raw:
        parent = ParentRef(id=str(parent_raw.get("id") or ""), key=parent_raw.get("key") or "")
    return Issue(
        id=str(raw.get("id") or ""),
        key=raw.get("key") or "",
        project_id=str(project.get("id") or ""),
        project_name=project.get("name"),
        issue_type_id=str(issuetype["id"]) if issuetype.get("id") is not None else None,
        status=map_status(fields.get("status") or {}),
        parent=parent,
        sprint=select_sprint(fields.get(sprint_field_id)),
        fields=fields,
    )


def map_transition(raw: dict[str, Any]) -> Transition:
    target = raw.get("to") or {}
    return Transition(
        id=str(raw.get("id") or ""),
        name=raw.get("name"),
        target_status_id=str(target["id"]) if target.get("id") is not None else None,
        # The API omits these flags on some server versions; assume the
        # permissive value only for availability.
        is_available=raw.get("isAvailable", True) is True,
        has_screen=raw.get("hasScreen", False) is True,
    )


def map_custom_field(raw: dict[str, Any]) -> CustomField:
    return CustomField(id=str(raw.get("id") or ""), name=raw.get("name") or "")


def map_change_items(items: Iterable[dict[str, Any]] | None) -> list[ChangeItem]:
    out: list[ChangeItem] = []
    for item in items or []:
        if not isinstance(item, dict) or not item.get("field"):
            continue
        out.append(
            ChangeItem(
                field=item["field"],
                field_id=item.get("fieldId"),
                from_value=item.get("from"),
                from_string=item.get("fromString"),
                to_value=item.get("to"),
                to_string=item.get("toString"),
            )
        )
    return out


def issue_date(issue: Issue, field_id: str) -> date | None:
    """Current value of a date custom field on an issue."""
    return parse_date(issue.fields.get(field_id))
