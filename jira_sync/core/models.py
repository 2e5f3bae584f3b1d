"""Domain data models for issues, change events, sprints, and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from .config import DONE_CATEGORY, IN_PROGRESS_CATEGORY, TODO_CATEGORY


class StatusCategory(str, Enum):
    TODO = TODO_CATEGORY
    IN_PROGRESS = IN_PROGRESS_CATEGORY
    DONE = DONE_CATEGORY


class DatesToSet(str, Enum):
    NONE = "NONE"
    START = "START"
    END = "END"
    BOTH = "BOTH"

    @property
    def sets_start(self) -> bool:
        return self in (DatesToSet.START, DatesToSet.BOTH)

    @property
    def sets_end(self) -> bool:
        return self in (DatesToSet.END, DatesToSet.BOTH)

    @classmethod
    def of(cls, start: bool, end: bool) -> DatesToSet:
        if start and end:
            return cls.BOTH
        if start:
            return cls.START
        if end:
            return cls.END
        return cls.NONE


@dataclass(slots=True)
class ChangeItem:
    field: str
    field_id: str | None = None
    from_value: Any = None
    from_string: str | None = None
    to_value: Any = None
    to_string: str | None = None


@dataclass(slots=True)
class IssueStatus:
    id: str
    name: str
    category: StatusCategory | None


@dataclass(slots=True)
class Sprint:
    id: int | None
    state: str | None
    name: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    complete_date: date | None = None


@dataclass(slots=True)
class ParentRef:
    id: str
    key: str


@dataclass(slots=True)
class Issue:
    id: str
    key: str
    project_id: str
    project_name: str | None
    issue_type_id: str | None
    status: IssueStatus
    parent: ParentRef | None = None
    sprint: Sprint | None = None
    # Raw field payload, used to read configurable date custom fields
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def category(self) -> StatusCategory | None:
        return self.status.category


@dataclass(slots=True)
class Transition:
    id: str
    name: str | None
    target_status_id: str | None
    is_available: bool
    has_screen: bool


@dataclass(slots=True)
class CustomField:
    id: str
    name: str


# =============================================================================
# Configuration records
# =============================================================================
@dataclass(slots=True)
class ProjectPreferences:
    comments_enabled: bool = True
    sprint_dates_enabled: bool = False
    child_min_max_dates_enabled: bool = False
    shrink_parent_enabled: bool = False
    # None means "follow the global enabled flag"
    date_fields_enabled: bool | None = None
    start_field_id: str | None = None
    end_field_id: str | None = None


@dataclass(frozen=True, slots=True)
class NoTransition:
    pass


@dataclass(frozen=True, slots=True)
class UseDefault:
    pass


@dataclass(frozen=True, slots=True)
class StatusId:
    id: str


PreferredStatus = NoTransition | UseDefault | StatusId
PreferredStatuses = dict[StatusCategory, PreferredStatus]


@dataclass(slots=True)
class PreferredDateFields:
    enabled: bool = False
    start_field_id: str | None = None
    end_field_id: str | None = None


@dataclass(slots=True)
class DateFields:
    start_field_id: str
    end_field_id: str
    start_field_name: str
    end_field_name: str


# =============================================================================
# Derived values
# =============================================================================
@dataclass(slots=True)
class StartAndEndDates:
    start: date | None = None
    end: date | None = None


@dataclass(slots=True)
class MinMaxDates:
    earliest_start: date | None
    latest_end: date | None
    has_incomplete_children: bool


@dataclass(slots=True)
class DateUpdate:
    """Dates to write to an issue, plus the audit comment explaining why."""

    start: date | None
    end: date | None
    dates_to_set: DatesToSet
    comment: str
