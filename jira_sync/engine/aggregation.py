"""Parent status aggregation from child status categories (pure functions)."""

from __future__ import annotations

from collections.abc import Sequence

from jira_sync.core.models import StatusCategory


def all_children_todo(categories: Sequence[StatusCategory | None]) -> bool:
    # No children means nothing has been started
    return all(c is StatusCategory.TODO for c in categories)


def all_children_done(categories: Sequence[StatusCategory | None]) -> bool:
    if not categories:
        return False
    return all(c is StatusCategory.DONE for c in categories)


def some_children_in_progress_or_done(categories: Sequence[StatusCategory | None]) -> bool:
    return any(c in (StatusCategory.IN_PROGRESS, StatusCategory.DONE) for c in categories)


# Checked in order; the first rule that matches decides. A parent already in
# that category stays put rather than falling through to a later rule.
AGGREGATION_RULES = (
    (all_children_done, StatusCategory.DONE),
    (all_children_todo, StatusCategory.TODO),
    (some_children_in_progress_or_done, StatusCategory.IN_PROGRESS),
)


def target_parent_category(
    categories: Sequence[StatusCategory | None],
    current: StatusCategory | None,
) -> StatusCategory | None:
    """Category a parent should move to given its children, or None to stay put."""
    for predicate, target in AGGREGATION_RULES:
        if predicate(categories):
            return target if current is not target else None
    return None
