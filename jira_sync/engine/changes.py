"""Change log classification (pure functions).

An update event carries an ordered list of field deltas. These helpers decide
whether the event matters and pull out the sub-events that drive the rest of
the pipeline. Where several items qualify, the first one in the list wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from jira_sync.core.config import PARENT_FIELDS, RELEVANT_FIELDS, SPRINT_FIELD, STATUS_FIELD
from jira_sync.core.mappers import map_change_items
from jira_sync.core.models import ChangeItem, DateFields


def parse_change_items(event: dict[str, Any]) -> list[ChangeItem]:
    """Extract the change items of a webhook payload; malformed payloads give []."""
    changelog = event.get("changelog") if isinstance(event, dict) else None
    if not isinstance(changelog, dict):
        return []
    return map_change_items(changelog.get("items"))


def should_process(items: Sequence[ChangeItem]) -> bool:
    return any(item.field in RELEVANT_FIELDS for item in items)


def _first(items: Sequence[ChangeItem], names) -> ChangeItem | None:
    return next((item for item in items if item.field in names), None)


def get_status_change(items: Sequence[ChangeItem]) -> ChangeItem | None:
    return _first(items, {STATUS_FIELD})


def get_sprint_change(items: Sequence[ChangeItem]) -> ChangeItem | None:
    return _first(items, {SPRINT_FIELD})


def get_parent_change(items: Sequence[ChangeItem]) -> ChangeItem | None:
    """First re-parenting item, whichever of the three parent-link fields it uses."""
    return _first(items, PARENT_FIELDS)


def start_or_end_field_changed(items: Sequence[ChangeItem], date_fields: DateFields | None) -> bool:
    if date_fields is None:
        return False
    ids = {date_fields.start_field_id, date_fields.end_field_id}
    return any(item.field_id is not None and item.field_id in ids for item in items)


def parent_endpoints(item: ChangeItem) -> tuple[str | None, str | None]:
    """(previous parent, new parent) id or key of a re-parenting item.

    Depending on the field, Jira reports the parent either as an id in
    ``from``/``to`` or as a key in ``fromString``/``toString``.
    """
    previous = item.from_value or item.from_string or None
    new = item.to_value or item.to_string or None
    return (str(previous) if previous else None, str(new) if new else None)
