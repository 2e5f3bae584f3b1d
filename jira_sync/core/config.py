"""Central configuration, constants, storage keys, and runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

# =============================================================================
# Status Categories
# =============================================================================
TODO_CATEGORY = "To Do"
IN_PROGRESS_CATEGORY = "In Progress"
DONE_CATEGORY = "Done"

# =============================================================================
# Change Log Field Names
# =============================================================================
STATUS_FIELD = "status"
SPRINT_FIELD = "Sprint"

# Re-parenting is reported under a different field name depending on the
# project type and hierarchy level.
TEAM_MANAGED_PARENT_FIELD = "IssueParentAssociation"
COMPANY_MANAGED_EPIC_LINK_FIELD = "Epic Link"
HIGHER_LEVEL_PARENT_LINK_FIELD = "Parent Link"

PARENT_FIELDS: frozenset[str] = frozenset(
    {
        TEAM_MANAGED_PARENT_FIELD,
        COMPANY_MANAGED_EPIC_LINK_FIELD,
        HIGHER_LEVEL_PARENT_LINK_FIELD,
    }
)

RELEVANT_FIELDS: frozenset[str] = PARENT_FIELDS | {STATUS_FIELD, SPRINT_FIELD}

# =============================================================================
# Jira Custom Field IDs
# =============================================================================
FIELD_IDS = {
    "sprint": "customfield_10020",
}

# =============================================================================
# Configuration Store Keys
# =============================================================================
COMMON_PREFERRED_STATUSES_KEY = "COMMON_PREFERRED_STATUSES"
START_AND_END_FIELDS_KEY = "START_AND_END_FIELDS"
SUPPORTED_PROJECTS_KEY = "SUPPORTED_PROJECTS"

# Sentinel ids written by the admin surface
NO_TRANSITION_ID = "-1"
USE_DEFAULT_ID = "-2"
USE_GLOBAL_FIELD_ID = "-1"


def generate_project_preferences_key(project_id: str) -> str:
    return f"PROJECT:{project_id}-PREFERENCES"


def generate_issue_type_statuses_key(project_id: str, issue_type_id: str) -> str:
    """Key of the preferred statuses saved for a project and issue type pair."""
    return f"PROJECT:{project_id}-ISSUETYPE:{issue_type_id}"


# =============================================================================
# Runtime Settings
# =============================================================================
DEFAULT_SETTINGS_FILE = "reconciler.yaml"

# Environment overrides: env var -> settings attribute
ENV_OVERRIDES: dict[str, str] = {
    "JIRA_SERVER": "jira_server",
    "JIRA_EMAIL": "jira_email",
    "JIRA_TOKEN": "jira_token",
    "JIRA_API_TOKEN": "jira_token",
    "JIRA_SYNC_STORE": "store_path",
    "JIRA_SYNC_TIMEZONE": "timezone",
    "JIRA_SYNC_LOG_LEVEL": "log_level",
}


@dataclass(slots=True)
class AppSettings:
    jira_server: str = ""
    jira_email: str = ""
    jira_token: str = ""
    store_path: str = "jira_sync_store.json"
    # Timezone used to decide what "today" is when stamping dates
    timezone: str = "UTC"
    sprint_field_id: str = FIELD_IDS["sprint"]
    log_level: str = "INFO"
    search_page_size: int = 100


def load_settings(path: str | Path | None = None) -> AppSettings:
    """Load settings from YAML, then overlay environment variables.

    A missing file is not an error: defaults apply and only the environment
    is consulted. Unknown keys in the file are ignored.
    """
    settings = AppSettings()
    yaml_path = Path(path or DEFAULT_SETTINGS_FILE)
    if yaml_path.exists():
        data = yaml.safe_load(yaml_path.read_text()) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {yaml_path} must hold a mapping")
        section = data.get("jira_sync", data)
        if not isinstance(section, dict):
            raise ValueError(f"The jira_sync section of {yaml_path} must be a mapping")
        known = {f.name for f in fields(AppSettings)}
        for key, value in section.items():
            if key in known and value is not None:
                setattr(settings, key, value)
    for env_name, attr in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            setattr(settings, attr, value)
    settings.search_page_size = int(settings.search_page_size)
    return settings
