"""Start/end date policies (pure functions).

Three policies decide the dates written to an issue:

- sprint assignment: dates come from the sprint the issue was put in;
- status transition: a fixed table keyed by (from, to) status category;
- child inheritance: a parent spans the earliest start and latest end of its
  children, either only growing or exactly tracking them (shrink).

Nothing here performs I/O. Results are :class:`DateUpdate` plans which the
service applies through a single write path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from jira_sync.core.mappers import issue_date
from jira_sync.core.models import (
    DateFields,
    DatesToSet,
    DateUpdate,
    Issue,
    MinMaxDates,
    ProjectPreferences,
    Sprint,
    StartAndEndDates,
    StatusCategory,
)
from jira_sync.core.status import is_done

logger = logging.getLogger(__name__)

TODO = StatusCategory.TODO
IN_PROGRESS = StatusCategory.IN_PROGRESS
DONE = StatusCategory.DONE

PAST_END_DATE_COMMENT = "The '{end}' being set on this issue ({date}) is in the past!"
SPRINT_BOTH_COMMENT = "Setting '{start}' and '{end}' as a result of assigning a sprint"
SPRINT_END_COMMENT = "Setting '{end}' as a result of assigning a sprint"
MIN_MAX_COMMENT = "Updating '{start}' and '{end}' to span the earliest start and latest end of the child issues"

SPRINT_STATES = frozenset({"active", "future", "closed"})


class DateSource(Enum):
    TODAY = "today"
    DERIVED = "derived"
    # Derived value, unless missing or earlier than today
    DERIVED_OR_TODAY = "derived_or_today"


@dataclass(frozen=True, slots=True)
class TransitionDatePolicy:
    start: DateSource | None
    end: DateSource | None
    comment: str
    # Write the start date alone when no end date can be derived
    end_optional: bool = False


TRANSITION_DATE_POLICIES: dict[tuple[StatusCategory, StatusCategory], TransitionDatePolicy] = {
    (TODO, IN_PROGRESS): TransitionDatePolicy(
        start=DateSource.TODAY,
        end=DateSource.DERIVED,
        end_optional=True,
        comment="Setting '{start}' as a result of moving issue from a 'To Do' status to an 'In Progress' status",
    ),
    (TODO, DONE): TransitionDatePolicy(
        start=DateSource.TODAY,
        end=DateSource.DERIVED_OR_TODAY,
        comment="Setting '{start}' and '{end}' as a result of moving issue from a 'To Do' status to a 'Done' status",
    ),
    (IN_PROGRESS, TODO): TransitionDatePolicy(
        start=DateSource.DERIVED,
        end=DateSource.DERIVED,
        comment="Resetting '{start}' and '{end}' as a result of moving issue to a 'To Do' status",
    ),
    (IN_PROGRESS, DONE): TransitionDatePolicy(
        start=None,
        end=DateSource.DERIVED_OR_TODAY,
        comment="Setting '{end}' as a result of moving issue from an 'In Progress' status to a 'Done' status",
    ),
    (DONE, TODO): TransitionDatePolicy(
        start=DateSource.DERIVED,
        end=DateSource.DERIVED,
        comment="Resetting '{start}' and '{end}' as a result of moving issue to a 'To Do' status",
    ),
    (DONE, IN_PROGRESS): TransitionDatePolicy(
        start=None,
        end=DateSource.DERIVED,
        comment="Resetting '{end}' as a result of moving issue to an 'In Progress' status",
    ),
}


def _comment(template: str, date_fields: DateFields) -> str:
    return template.format(start=date_fields.start_field_name, end=date_fields.end_field_name)


def sprint_dates(sprint: Sprint | None) -> StartAndEndDates:
    """Start and end of a sprint; a closed sprint ends on its completion date."""
    if sprint is None:
        return StartAndEndDates()
    if sprint.state is not None and sprint.state not in SPRINT_STATES:
        logger.warning("Sprint %s has unknown state %r, using its planned dates", sprint.id, sprint.state)
    if sprint.state == "closed" and sprint.start_date and sprint.complete_date:
        return StartAndEndDates(sprint.start_date, sprint.complete_date)
    # A closed sprint without a completion date keeps its planned end
    if sprint.start_date and sprint.end_date:
        return StartAndEndDates(sprint.start_date, sprint.end_date)
    return StartAndEndDates()


def dates_for_sprint_assignment(
    category: StatusCategory | None,
    sprint: Sprint | None,
    date_fields: DateFields,
) -> DateUpdate | None:
    """Dates to write when an issue in ``category`` is assigned to ``sprint``.

    Completed issues are never touched; in-progress issues already have a
    start date so only the end moves.
    """
    if sprint is None:
        return None
    dates = sprint_dates(sprint)
    if category is TODO:
        return DateUpdate(dates.start, dates.end, DatesToSet.BOTH, _comment(SPRINT_BOTH_COMMENT, date_fields))
    if category is IN_PROGRESS:
        return DateUpdate(dates.start, dates.end, DatesToSet.END, _comment(SPRINT_END_COMMENT, date_fields))
    return None


def uses_shrink_policy(preferences: ProjectPreferences | None) -> bool:
    return bool(
        preferences is not None
        and preferences.child_min_max_dates_enabled
        and preferences.shrink_parent_enabled
    )


def derived_dates(
    sprint: Sprint | None,
    min_max: MinMaxDates | None = None,
    preferences: ProjectPreferences | None = None,
) -> StartAndEndDates:
    """Dates an issue falls back to: its children (shrink policy), else its sprint."""
    if min_max is not None and uses_shrink_policy(preferences):
        return StartAndEndDates(min_max.earliest_start, min_max.latest_end)
    return sprint_dates(sprint)


def _resolve(source: DateSource | None, derived: date | None, today: date) -> date | None:
    if source is DateSource.TODAY:
        return today
    if source is DateSource.DERIVED:
        return derived
    if source is DateSource.DERIVED_OR_TODAY:
        if derived is None or derived < today:
            return today
        return derived
    return None


def dates_for_transition(
    current: StatusCategory | None,
    target: StatusCategory | None,
    date_fields: DateFields,
    today: date,
    sprint: Sprint | None = None,
    min_max: MinMaxDates | None = None,
    preferences: ProjectPreferences | None = None,
) -> DateUpdate | None:
    """Dates to write when an issue moves from ``current`` to ``target`` category."""
    policy = TRANSITION_DATE_POLICIES.get((current, target))
    if policy is None:
        return None
    derived = derived_dates(sprint, min_max, preferences)
    start = _resolve(policy.start, derived.start, today)
    end = _resolve(policy.end, derived.end, today)
    set_start = policy.start is not None
    set_end = policy.end is not None and not (policy.end_optional and end is None)
    return DateUpdate(start, end, DatesToSet.of(set_start, set_end), _comment(policy.comment, date_fields))


def child_min_max_dates(
    children: Iterable[Issue],
    start_field_id: str,
    end_field_id: str,
) -> MinMaxDates | None:
    """Earliest start and latest end across ``children``; None without children."""
    earliest: date | None = None
    latest: date | None = None
    incomplete = False
    seen = False
    for child in children:
        seen = True
        start = issue_date(child, start_field_id)
        end = issue_date(child, end_field_id)
        if start is not None and (earliest is None or start < earliest):
            earliest = start
        if end is not None and (latest is None or end > latest):
            latest = end
        if not is_done(child.category):
            incomplete = True
    if not seen:
        return None
    return MinMaxDates(earliest_start=earliest, latest_end=latest, has_incomplete_children=incomplete)


def parent_dates_to_set(
    preferences: ProjectPreferences | None,
    min_max: MinMaxDates | None,
    parent_start: date | None = None,
    parent_end: date | None = None,
) -> DatesToSet:
    """Which of the parent's dates follow its children.

    Grow: the end date is never pulled earlier while children are still
    open. Shrink: the parent mirrors its children exactly, clearing a date no
    child backs any more.
    """
    if preferences is None or not preferences.child_min_max_dates_enabled or min_max is None:
        return DatesToSet.NONE
    earliest, latest = min_max.earliest_start, min_max.latest_end
    if earliest is None and latest is None:
        return DatesToSet.NONE
    if uses_shrink_policy(preferences):
        return DatesToSet.of(
            earliest is not None or parent_start is not None,
            latest is not None or parent_end is not None,
        )
    would_shrink = parent_end is not None and latest is not None and latest < parent_end
    set_end = latest is not None and not (min_max.has_incomplete_children and would_shrink)
    return DatesToSet.of(earliest is not None, set_end)


def parent_min_max_update(
    preferences: ProjectPreferences | None,
    min_max: MinMaxDates | None,
    date_fields: DateFields,
    parent_start: date | None = None,
    parent_end: date | None = None,
) -> DateUpdate | None:
    dates_to_set = parent_dates_to_set(preferences, min_max, parent_start, parent_end)
    if dates_to_set is DatesToSet.NONE:
        return None
    return DateUpdate(
        min_max.earliest_start,
        min_max.latest_end,
        dates_to_set,
        _comment(MIN_MAX_COMMENT, date_fields),
    )


def end_date_in_past(update: DateUpdate, today: date) -> bool:
    return update.dates_to_set.sets_end and update.end is not None and update.end < today


def past_end_date_comment(update: DateUpdate, date_fields: DateFields) -> str:
    return PAST_END_DATE_COMMENT.format(end=date_fields.end_field_name, date=update.end.isoformat())
