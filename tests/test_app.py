import pytest

from jira_sync.app import build_service, handle_payload
from jira_sync.core.config import AppSettings


class RecordingService:
    def __init__(self):
        self.events = []

    def handle_event(self, payload):
        self.events.append(payload)


def test_handle_payload_only_passes_update_events():
    service = RecordingService()
    handle_payload({"webhookEvent": "jira:issue_created", "issue": {"key": "A-1"}}, service)
    handle_payload({"webhookEvent": "jira:issue_updated", "issue": {"key": "A-2"}}, service)
    handle_payload({"eventType": "avi:jira:updated:issue", "issue": {"key": "A-3"}}, service)
    # Payloads without an event type are assumed to be updates
    handle_payload({"issue": {"key": "A-4"}}, service)
    assert [e["issue"]["key"] for e in service.events] == ["A-2", "A-3", "A-4"]


def test_build_service_requires_credentials():
    with pytest.raises(ValueError):
        build_service(AppSettings(jira_server="https://example.atlassian.net"))
