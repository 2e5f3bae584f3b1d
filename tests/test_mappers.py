from datetime import date

from jira_sync.core.mappers import map_issue, map_transition, parse_date, select_sprint
from jira_sync.core.models import StatusCategory
from jira_sync.core.status import parse_status_category


def test_parse_date_variants():
    assert parse_date("2024-09-01") == date(2024, 9, 1)
    assert parse_date("2024-09-01T10:00:00.000+0000") == date(2024, 9, 1)
    assert parse_date(date(2024, 9, 1)) == date(2024, 9, 1)
    assert parse_date(None) is None
    assert parse_date("") is None
    assert parse_date("someday") is None


def test_parse_status_category_names_and_keys():
    assert parse_status_category("To Do") is StatusCategory.TODO
    assert parse_status_category("indeterminate") is StatusCategory.IN_PROGRESS
    assert parse_status_category(" DONE ") is StatusCategory.DONE
    assert parse_status_category("undefined") is None
    assert parse_status_category(None) is None


def test_map_issue():
    raw = {
        "id": "10042",
        "key": "BAM-42",
        "fields": {
            "project": {"id": "10000", "name": "Bamboo"},
            "issuetype": {"id": "10001"},
            "status": {"id": "3", "name": "Doing", "statusCategory": {"key": "indeterminate", "name": "In Progress"}},
            "parent": {"id": "10040", "key": "BAM-40"},
            "customfield_10020": [
                {"id": 126, "state": "closed", "startDate": "2024-04-01T09:00:00.000Z"},
                {"id": 127, "state": "active", "startDate": "2024-05-13T09:00:00.000Z", "endDate": "2024-05-27T09:00:00.000Z"},
            ],
        },
    }
    issue = map_issue(raw)
    assert (issue.id, issue.key, issue.project_id, issue.issue_type_id) == ("10042", "BAM-42", "10000", "10001")
    assert issue.category is StatusCategory.IN_PROGRESS
    assert issue.parent.key == "BAM-40"
    assert issue.sprint.id == 127
    assert issue.sprint.end_date == date(2024, 5, 27)


def test_map_issue_without_optional_fields():
    issue = map_issue({"id": "1", "key": "BAM-1", "fields": {"project": {"id": "10000"}}})
    assert issue.parent is None
    assert issue.sprint is None
    assert issue.category is None


def test_select_sprint_preference():
    closed_a = {"id": 1, "state": "closed"}
    closed_b = {"id": 2, "state": "closed"}
    future = {"id": 3, "state": "future"}
    active = {"id": 4, "state": "active"}
    assert select_sprint([closed_a, future, active]).id == 4
    assert select_sprint([closed_a, future]).id == 3
    assert select_sprint([closed_a, closed_b]).id == 2
    assert select_sprint([]) is None
    assert select_sprint(None) is None


def test_map_transition_flags():
    t = map_transition({"id": "21", "name": "Start", "to": {"id": "3"}, "isAvailable": True, "hasScreen": True})
    assert (t.id, t.target_status_id, t.is_available, t.has_screen) == ("21", "3", True, True)
    unavailable = map_transition({"id": "31", "to": {"id": "5"}, "isAvailable": False})
    assert unavailable.is_available is False
    assert unavailable.has_screen is False
