"""ReconciliationService: reacts to one issue update event.

The service sequences reads from Jira, hands the data to the pure policies in
:mod:`jira_sync.engine`, and applies the resulting writes (status
transitions, date fields, comments). Configuration is read through an
:class:`EventConfig` created per event. Jira failures are not caught: they
abort the event and writes already issued stand.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime
from typing import Any

import pytz

from jira_sync.engine.aggregation import target_parent_category
from jira_sync.engine.changes import (
    get_parent_change,
    get_sprint_change,
    get_status_change,
    parent_endpoints,
    parse_change_items,
    should_process,
    start_or_end_field_changed,
)
from jira_sync.engine.dates import (
    child_min_max_dates,
    dates_for_sprint_assignment,
    dates_for_transition,
    end_date_in_past,
    parent_min_max_update,
    past_end_date_comment,
    uses_shrink_policy,
)
from jira_sync.engine.preferred_status import find_preferred_status_id

from .config import FIELD_IDS
from .jira_client import JiraAPI
from .mappers import format_date, issue_date, map_custom_field, map_issue, map_sprint, map_status, map_transition
from .models import (
    ChangeItem,
    CustomField,
    DateFields,
    DateUpdate,
    Issue,
    IssueStatus,
    MinMaxDates,
    Sprint,
    StatusCategory,
)
from .preferences import EventConfig
from .storage import ConfigStore

logger = logging.getLogger(__name__)

UNSATISFIABLE_TRANSITION_COMMENT = (
    "The status of this issue is out of sync with its child issues but it was not possible "
    "to update the issue automatically. Please check the status and manually update it as necessary"
)

PARENT_TRANSITION_COMMENTS: dict[StatusCategory, str] = {
    StatusCategory.DONE: (
        "Updating status to configured 'Done' status because all child issues are complete. "
        "This was triggered by a change made to {key}"
    ),
    StatusCategory.TODO: (
        "Updating status to configured 'To Do' status because no child issues have been started. "
        "This was triggered by a change made to {key}"
    ),
    StatusCategory.IN_PROGRESS: (
        "Updating status to configured 'In Progress' status because some child issues are either "
        "in progress or done. This was triggered by a change made to {key}"
    ),
}


def _event_project_id(payload: dict[str, Any]) -> str | None:
    issue = payload.get("issue") or {}
    project = (issue.get("fields") or {}).get("project") or {}
    project_id = project.get("id")
    return str(project_id) if project_id is not None else None


class ReconciliationService:
    def __init__(
        self,
        api: JiraAPI,
        store: ConfigStore,
        *,
        timezone: str = "UTC",
        sprint_field_id: str = FIELD_IDS["sprint"],
        today: Callable[[], date] | None = None,
    ):
        self.api = api
        self.store = store
        self.sprint_field_id = sprint_field_id
        self._tz = pytz.timezone(timezone)
        self._today = today or (lambda: datetime.now(self._tz).date())

    # ------------------ Entry Point ------------------
    def handle_event(self, payload: dict[str, Any]) -> None:
        items = parse_change_items(payload)
        issue_ref = payload.get("issue") or {}
        issue_key = issue_ref.get("key") or issue_ref.get("id")
        if not issue_key:
            logger.debug("Ignoring event without an issue reference")
            return
        logger.info("Detected that %s has been updated (%s)", issue_key, [i.field for i in items])

        config = EventConfig(self.store, self._lookup_custom_field)
        date_fields_changed = start_or_end_field_changed(items, config.date_fields(_event_project_id(payload)))
        relevant = should_process(items)
        if not relevant and not date_fields_changed:
            logger.debug("No relevant changes for %s", issue_key)
            return

        if date_fields_changed:
            logger.info("Issue %s was updated with start and/or end date changes", issue_key)
            issue = self.fetch_issue(issue_ref.get("id") or issue_key)
            if issue.parent:
                self.set_parent_min_max_dates(self.fetch_issue(issue.parent.key), config)

        if not relevant:
            return
        issue = self.fetch_issue(issue_key)

        if get_sprint_change(items):
            self.handle_sprint_assignment(issue, config)
            return

        status_change = get_status_change(items)
        if status_change:
            self.handle_status_change(issue, status_change, config)
        else:
            logger.debug("No status transition for issue %s", issue.key)

        parent_change = get_parent_change(items)
        if parent_change:
            previous, new = parent_endpoints(parent_change)
            if previous:
                logger.info("Updating previous parent of %s (which is %s)", issue.key, previous)
                self.update_parent_status(previous, issue, config)
            if new:
                logger.info("Updating new parent of %s (which is %s)", issue.key, new)
                self.update_parent_status(new, issue, config)
        elif status_change and issue.parent:
            logger.info("Updating status of current parent of %s (which is %s)", issue.key, issue.parent.key)
            self.update_parent_status(issue.parent.id or issue.parent.key, issue, config)

    # ------------------ Branches ------------------
    def handle_sprint_assignment(self, issue: Issue, config: EventConfig) -> None:
        prefs = config.project_preferences(issue.project_id)
        if not prefs.sprint_dates_enabled:
            logger.info("Ignoring sprint assignment for %s: sprint dates are disabled for the project", issue.key)
            return
        date_fields = config.date_fields(issue.project_id)
        sprint = self.resolve_sprint(issue.sprint)
        if date_fields is None:
            logger.debug("No date fields configured for project %s", issue.project_id)
        elif sprint is None:
            logger.info("No sprint assigned for issue %s", issue.key)
        else:
            logger.info("Handling sprint assignment for issue %s", issue.key)
            update = dates_for_sprint_assignment(issue.category, sprint, date_fields)
            self.apply_dates(issue, update, date_fields, config)
        if issue.parent:
            self.set_parent_min_max_dates(self.fetch_issue(issue.parent.key), config)

    def handle_status_change(self, issue: Issue, change: ChangeItem, config: EventConfig) -> None:
        if change.from_value is None or change.to_value is None:
            logger.warning("Status change of %s is missing status ids: %r", issue.key, change)
            return
        previous = self.fetch_status(str(change.from_value))
        new = self.fetch_status(str(change.to_value))
        logger.info("Issue %s moved from %s to %s", issue.key, previous.name, new.name)
        if config.is_project_supported(issue.project_id):
            self.update_dates_for_transition(issue, previous.category, new.category, config)

    def update_dates_for_transition(
        self,
        issue: Issue,
        current: StatusCategory | None,
        target: StatusCategory | None,
        config: EventConfig,
        min_max: MinMaxDates | None = None,
    ) -> None:
        date_fields = config.date_fields(issue.project_id)
        if date_fields is None:
            return
        prefs = config.project_preferences(issue.project_id)
        if min_max is None and uses_shrink_policy(prefs):
            min_max = child_min_max_dates(
                self.fetch_children(issue.key), date_fields.start_field_id, date_fields.end_field_id
            )
        update = dates_for_transition(
            current,
            target,
            date_fields,
            self._today(),
            sprint=self.resolve_sprint(issue.sprint),
            min_max=min_max,
            preferences=prefs,
        )
        self.apply_dates(issue, update, date_fields, config)

    def update_parent_status(self, parent_id: str, issue: Issue, config: EventConfig) -> None:
        parent = self.fetch_issue(parent_id)
        # The parent is the issue being updated, so its own project decides
        if not config.is_project_supported(parent.project_id):
            logger.info("Parent %s is in an unsupported project %s", parent.key, parent.project_id)
            return
        children = self.fetch_children(parent.key)
        min_max = self.set_parent_min_max_dates(parent, config, children=children)

        categories = [child.category for child in children]
        current = parent.category
        target = target_parent_category(categories, current)
        if target is None:
            logger.debug("Status of %s already matches its children", parent.key)
            return
        logger.info("Updating status of %s to preferred %r status", parent.key, target.value)
        comment = PARENT_TRANSITION_COMMENTS[target].format(key=issue.key)
        if self.transition_issue_with_comment(parent, target, comment, config):
            self.update_dates_for_transition(parent, current, target, config, min_max=min_max)

    def set_parent_min_max_dates(
        self,
        parent: Issue,
        config: EventConfig,
        children: list[Issue] | None = None,
    ) -> MinMaxDates | None:
        """Make the parent span its children's dates when the project asks for it."""
        prefs = config.project_preferences(parent.project_id)
        if not prefs.child_min_max_dates_enabled:
            logger.debug("Child date inheritance is not enabled for project %s", parent.project_id)
            return None
        date_fields = config.date_fields(parent.project_id)
        if date_fields is None:
            return None
        if children is None:
            children = self.fetch_children(parent.key)
        logger.info("Updating start and end dates of %s to match min/max of children", parent.key)
        min_max = child_min_max_dates(children, date_fields.start_field_id, date_fields.end_field_id)
        update = parent_min_max_update(
            prefs,
            min_max,
            date_fields,
            parent_start=issue_date(parent, date_fields.start_field_id),
            parent_end=issue_date(parent, date_fields.end_field_id),
        )
        self.apply_dates(parent, update, date_fields, config)
        return min_max

    # ------------------ Writes ------------------
    def transition_issue_with_comment(
        self,
        issue: Issue,
        category: StatusCategory,
        comment: str,
        config: EventConfig,
    ) -> bool:
        """Move ``issue`` to the preferred status of ``category``; True when it moved."""
        preferred_id = find_preferred_status_id(
            category,
            config.issue_type_statuses(issue.project_id, issue.issue_type_id),
            config.default_statuses(),
        )
        if preferred_id is None:
            logger.info("No preferred %r status configured for %s", category.value, issue.key)
            return False
        transitions = [map_transition(t) for t in self.api.fetch_transitions_raw(issue.id or issue.key)]
        # A transition with a screen needs user input and cannot be performed here
        target = next(
            (
                t
                for t in transitions
                if t.target_status_id == preferred_id and t.is_available and not t.has_screen
            ),
            None,
        )
        if target is None:
            logger.warning(
                "No available transition without a screen to status %s for issue %s", preferred_id, issue.key
            )
            self.add_comment(issue, UNSATISFIABLE_TRANSITION_COMMENT, config)
            return False
        self.api.transition_issue(issue.id or issue.key, target.id)
        self.add_comment(issue, comment, config)
        return True

    def apply_dates(
        self,
        issue: Issue,
        update: DateUpdate | None,
        date_fields: DateFields,
        config: EventConfig,
    ) -> bool:
        """Single write path for date fields; returns True when a write happened."""
        if update is None or not (update.dates_to_set.sets_start or update.dates_to_set.sets_end):
            return False
        values: dict[str, date | None] = {}
        if update.dates_to_set.sets_start:
            values[date_fields.start_field_id] = update.start
        if update.dates_to_set.sets_end:
            values[date_fields.end_field_id] = update.end
        if all(issue_date(issue, field_id) == value for field_id, value in values.items()):
            logger.debug("Dates of %s already up to date, skipping write", issue.key)
            return False

        today = self._today()
        if end_date_in_past(update, today):
            logger.info("End date %s set on %s is in the past", update.end, issue.key)
            self.add_comment(issue, past_end_date_comment(update, date_fields), config)

        payload = {field_id: format_date(value) for field_id, value in values.items()}
        logger.info("Updating dates of %s: %s", issue.key, payload)
        self.api.update_fields(issue.key, payload)
        # Keep the local view in step so later decisions in this event see the write
        issue.fields.update(payload)
        self.add_comment(issue, update.comment, config)
        return True

    def add_comment(self, issue: Issue, comment: str, config: EventConfig) -> None:
        if not config.comments_enabled(issue.project_id):
            logger.debug("Comments disabled for project %s", issue.project_id)
            return
        self.api.add_comment(issue.key, comment)

    # ------------------ Reads ------------------
    def fetch_issue(self, issue_id_or_key: str) -> Issue:
        return map_issue(self.api.fetch_issue_raw(issue_id_or_key), self.sprint_field_id)

    def fetch_status(self, status_id: str) -> IssueStatus:
        return map_status(self.api.fetch_status_raw(status_id))

    def fetch_children(self, parent_key: str) -> list[Issue]:
        return [map_issue(raw, self.sprint_field_id) for raw in self.api.search_children_raw(parent_key)]

    def resolve_sprint(self, sprint: Sprint | None) -> Sprint | None:
        """Fill in a sprint whose embedded copy lacks its state."""
        if sprint is None or sprint.state is not None or sprint.id is None:
            return sprint
        return map_sprint(self.api.fetch_sprint_raw(sprint.id))

    def _lookup_custom_field(self, field_id: str) -> CustomField | None:
        raw = self.api.fetch_custom_field_raw(field_id)
        return map_custom_field(raw) if raw else None
