"""Per-event configuration context.

Every configuration record the engine needs is read through
:class:`EventConfig`, which is created once per event and memoizes each
lookup for the rest of that event. Missing records mean "feature disabled"
and are logged, never raised.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from jira_sync.engine.preferred_status import parse_preferred_statuses

from .config import (
    COMMON_PREFERRED_STATUSES_KEY,
    START_AND_END_FIELDS_KEY,
    SUPPORTED_PROJECTS_KEY,
    USE_GLOBAL_FIELD_ID,
    generate_issue_type_statuses_key,
    generate_project_preferences_key,
)
from .models import CustomField, DateFields, PreferredDateFields, PreferredStatuses, ProjectPreferences
from .storage import ConfigStore

logger = logging.getLogger(__name__)

FieldLookup = Callable[[str], CustomField | None]

# camelCase blob key -> ProjectPreferences attribute
PROJECT_PREFERENCE_KEYS: dict[str, str] = {
    "commentsEnabled": "comments_enabled",
    "sprintDatesEnabled": "sprint_dates_enabled",
    "childMinMaxDatesEnabled": "child_min_max_dates_enabled",
    "shrinkParentEnabled": "shrink_parent_enabled",
    "dateFieldsEnabled": "date_fields_enabled",
    "startFieldId": "start_field_id",
    "endFieldId": "end_field_id",
}


def _as_dict(blob: Any, key: str) -> dict[str, Any] | None:
    if blob is None:
        return None
    if not isinstance(blob, dict):
        logger.warning("Ignoring malformed configuration blob under %s", key)
        return None
    return blob


def parse_project_preferences(blob: dict[str, Any] | None) -> ProjectPreferences:
    prefs = ProjectPreferences()
    for name, attr in PROJECT_PREFERENCE_KEYS.items():
        value = (blob or {}).get(name)
        if value is not None:
            setattr(prefs, attr, value)
    return prefs


def parse_preferred_date_fields(blob: dict[str, Any] | None) -> PreferredDateFields | None:
    if blob is None:
        return None
    return PreferredDateFields(
        enabled=blob.get("enabled", False) is True,
        start_field_id=blob.get("START") or None,
        end_field_id=blob.get("END") or None,
    )


def _override(project_value: str | None, global_value: str | None) -> str | None:
    if project_value is None or project_value == USE_GLOBAL_FIELD_ID:
        return global_value
    return project_value


class EventConfig:
    def __init__(self, store: ConfigStore, field_lookup: FieldLookup):
        self.store = store
        self.field_lookup = field_lookup
        self._cache: dict[str, Any] = {}
        self._fields: dict[str, CustomField | None] = {}

    def _memo(self, key: str, loader: Callable[[], Any]) -> Any:
        if key not in self._cache:
            self._cache[key] = loader()
        return self._cache[key]

    def _blob(self, key: str) -> dict[str, Any] | None:
        return self._memo(key, lambda: _as_dict(self.store.get(key), key))

    # ------------------ Records ------------------
    def project_preferences(self, project_id: str) -> ProjectPreferences:
        return parse_project_preferences(self._blob(generate_project_preferences_key(project_id)))

    def default_statuses(self) -> PreferredStatuses | None:
        return parse_preferred_statuses(self._blob(COMMON_PREFERRED_STATUSES_KEY))

    def issue_type_statuses(self, project_id: str, issue_type_id: str | None) -> PreferredStatuses | None:
        if issue_type_id is None:
            return None
        return parse_preferred_statuses(self._blob(generate_issue_type_statuses_key(project_id, issue_type_id)))

    def is_project_supported(self, project_id: str) -> bool:
        """Whether automatic status/date updates are enabled for the project."""
        supported = self._blob(SUPPORTED_PROJECTS_KEY) or {}
        entry = supported.get(project_id)
        # Only a missing entry or an explicit isSupported=false opts a project out
        if not entry or (isinstance(entry, dict) and entry.get("isSupported") is False):
            logger.info("Project %s is not enabled for automatic updates", project_id)
            return False
        return True

    def comments_enabled(self, project_id: str) -> bool:
        return self.project_preferences(project_id).comments_enabled is not False

    # ------------------ Date fields ------------------
    def global_date_fields(self) -> PreferredDateFields | None:
        return parse_preferred_date_fields(self._blob(START_AND_END_FIELDS_KEY))

    def _custom_field(self, field_id: str) -> CustomField | None:
        if field_id not in self._fields:
            self._fields[field_id] = self.field_lookup(field_id)
        return self._fields[field_id]

    def date_fields(self, project_id: str | None = None) -> DateFields | None:
        """Start/end date fields in effect for a project, or None when disabled."""
        cache_key = f"date-fields:{project_id}"
        return self._memo(cache_key, lambda: self._resolve_date_fields(project_id))

    def _resolve_date_fields(self, project_id: str | None) -> DateFields | None:
        global_fields = self.global_date_fields() or PreferredDateFields()
        prefs = self.project_preferences(project_id) if project_id else ProjectPreferences()
        enabled = prefs.date_fields_enabled
        if enabled is None:
            enabled = global_fields.enabled
        if not enabled:
            logger.debug("Updating start and end date fields is not enabled (project %s)", project_id)
            return None
        start_id = _override(prefs.start_field_id, global_fields.start_field_id)
        end_id = _override(prefs.end_field_id, global_fields.end_field_id)
        if start_id is None or end_id is None:
            logger.info(
                "Both start and end date fields need to be configured, START=%r END=%r", start_id, end_id
            )
            return None
        start_field = self._custom_field(start_id)
        end_field = self._custom_field(end_id)
        if start_field is None or end_field is None:
            logger.warning("Configured date fields do not exist, START=%r END=%r", start_id, end_id)
            return None
        return DateFields(
            start_field_id=start_field.id,
            end_field_id=end_field.id,
            start_field_name=start_field.name,
            end_field_name=end_field.name,
        )
