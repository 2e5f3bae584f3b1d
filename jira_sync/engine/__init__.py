"""Pure reconciliation policies: change classification, status aggregation, dates."""

from jira_sync.engine.aggregation import (
    all_children_done,
    all_children_todo,
    some_children_in_progress_or_done,
    target_parent_category,
)
from jira_sync.engine.changes import (
    get_parent_change,
    get_sprint_change,
    get_status_change,
    parse_change_items,
    should_process,
    start_or_end_field_changed,
)
from jira_sync.engine.dates import (
    TRANSITION_DATE_POLICIES,
    child_min_max_dates,
    dates_for_sprint_assignment,
    dates_for_transition,
    parent_dates_to_set,
    sprint_dates,
)
from jira_sync.engine.preferred_status import find_preferred_status_id, parse_preferred_statuses

__all__ = [
    "TRANSITION_DATE_POLICIES",
    "all_children_done",
    "all_children_todo",
    "child_min_max_dates",
    "dates_for_sprint_assignment",
    "dates_for_transition",
    "find_preferred_status_id",
    "get_parent_change",
    "get_sprint_change",
    "get_status_change",
    "parent_dates_to_set",
    "parse_change_items",
    "parse_preferred_statuses",
    "should_process",
    "some_children_in_progress_or_done",
    "sprint_dates",
    "start_or_end_field_changed",
    "target_parent_category",
]
