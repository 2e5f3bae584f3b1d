"""Application wiring: build the service from settings and run single events."""

from __future__ import annotations

import logging
from typing import Any

from jira_sync.core.config import AppSettings
from jira_sync.core.jira_client import JiraAPI
from jira_sync.core.service import ReconciliationService
from jira_sync.core.storage import JsonFileConfigStore

logger = logging.getLogger(__name__)


def build_service(settings: AppSettings) -> ReconciliationService:
    if not (settings.jira_server and settings.jira_email and settings.jira_token):
        raise ValueError("Jira server, email and API token are all required")
    api = JiraAPI(
        settings.jira_server,
        settings.jira_email,
        settings.jira_token,
        page_size=settings.search_page_size,
    )
    store = JsonFileConfigStore(settings.store_path)
    return ReconciliationService(
        api,
        store,
        timezone=settings.timezone,
        sprint_field_id=settings.sprint_field_id,
    )


def handle_payload(payload: dict[str, Any], service: ReconciliationService) -> None:
    """Process one issue-updated webhook payload."""
    event_type = payload.get("webhookEvent") or payload.get("eventType")
    if event_type and "updated" not in str(event_type):
        logger.debug("Ignoring %s event", event_type)
        return
    service.handle_event(payload)
