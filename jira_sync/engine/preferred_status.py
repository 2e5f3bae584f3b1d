"""Preferred status resolution.

Configuration blobs map a status category name to a status id, with two
sentinel ids written by the admin surface: ``"-1"`` (do not transition) and
``"-2"`` (use the global default). Blobs are converted into tagged values when
loaded so resolution never compares against magic strings.
"""

from __future__ import annotations

import logging
from typing import Any

from jira_sync.core.config import NO_TRANSITION_ID, USE_DEFAULT_ID
from jira_sync.core.models import (
    NoTransition,
    PreferredStatus,
    PreferredStatuses,
    StatusCategory,
    StatusId,
    UseDefault,
)
from jira_sync.core.status import parse_status_category

logger = logging.getLogger(__name__)


def parse_preferred_status(raw: Any) -> PreferredStatus | None:
    if raw is None or raw == "":
        return None
    text = str(raw)
    if text == NO_TRANSITION_ID:
        return NoTransition()
    if text == USE_DEFAULT_ID:
        return UseDefault()
    return StatusId(text)


def parse_preferred_statuses(blob: Any) -> PreferredStatuses | None:
    """Convert a stored ``{"To Do": "10000", ...}`` blob; None when absent or malformed."""
    if blob is None:
        return None
    if not isinstance(blob, dict):
        logger.warning("Ignoring malformed preferred statuses blob %r", blob)
        return None
    out: PreferredStatuses = {}
    for name, raw in blob.items():
        category = parse_status_category(name)
        value = parse_preferred_status(raw)
        if category is not None and value is not None:
            out[category] = value
    return out


def find_preferred_status_id(
    category: StatusCategory,
    specific: PreferredStatuses | None,
    default: PreferredStatuses | None,
) -> str | None:
    """Return the id of the status to transition to for ``category``.

    The issue-type level mapping wins when present. ``UseDefault`` defers to
    the global mapping (None if there is none); ``NoTransition`` is an explicit
    opt-out. Without a specific mapping the global one is used directly.
    """
    if specific is not None:
        preferred = specific.get(category)
        if isinstance(preferred, NoTransition):
            logger.info("Configured preference for %r is to not change status", category.value)
            return None
        if isinstance(preferred, UseDefault):
            if default is None:
                logger.info("Preference for %r is to use the default, but none is configured", category.value)
                return None
            return _status_id(default.get(category))
        return _status_id(preferred)
    if default is not None:
        return _status_id(default.get(category))
    return None


def _status_id(value: PreferredStatus | None) -> str | None:
    # Sentinels are only meaningful in the specific mapping
    return value.id if isinstance(value, StatusId) else None
