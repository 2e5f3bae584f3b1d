"""Status category normalization.

Jira reports a status category both as a display name ("In Progress") and as
a stable key ("indeterminate"). Every consumer in the engine works with
:class:`StatusCategory`; this module is the single place raw values are
mapped onto it.
"""

from __future__ import annotations

from typing import Any

from .models import StatusCategory

# Keys should be lowercase for case-insensitive matching
STATUS_CATEGORY_ALIASES: dict[str, StatusCategory] = {
    # Display names
    "to do": StatusCategory.TODO,
    "in progress": StatusCategory.IN_PROGRESS,
    "done": StatusCategory.DONE,
    # Category keys from the REST payload
    "new": StatusCategory.TODO,
    "indeterminate": StatusCategory.IN_PROGRESS,
    # Loose variants
    "todo": StatusCategory.TODO,
    "inprogress": StatusCategory.IN_PROGRESS,
    "in-progress": StatusCategory.IN_PROGRESS,
}


def parse_status_category(value: str | None) -> StatusCategory | None:
    """Map a raw status category name or key to :class:`StatusCategory`.

    Parameters
    ----------
    value : str | None
        Category name ("To Do") or key ("new") as returned by Jira.

    Returns
    -------
    StatusCategory | None
        The matching category, or None for empty/unknown values
        (e.g. the "undefined" category Jira uses for unmapped statuses).

    Examples
    --------
    >>> parse_status_category("In Progress")
    <StatusCategory.IN_PROGRESS: 'In Progress'>
    >>> parse_status_category("indeterminate")
    <StatusCategory.IN_PROGRESS: 'In Progress'>
    >>> parse_status_category("undefined") is None
    True
    """
    if not value:
        return None
    text = str(value).strip().lower()
    return STATUS_CATEGORY_ALIASES.get(text)


def category_from_status_payload(status: dict[str, Any] | None) -> StatusCategory | None:
    """Extract the category of a raw ``status`` object, preferring its name."""
    if not status:
        return None
    block = status.get("statusCategory") or {}
    return parse_status_category(block.get("name")) or parse_status_category(block.get("key"))


def is_done(category: StatusCategory | None) -> bool:
    return category is StatusCategory.DONE
