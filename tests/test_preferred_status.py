from jira_sync.core.models import NoTransition, StatusCategory, StatusId, UseDefault
from jira_sync.engine.preferred_status import (
    find_preferred_status_id,
    parse_preferred_status,
    parse_preferred_statuses,
)

DONE = StatusCategory.DONE


def _statuses(**by_name):
    return parse_preferred_statuses({name.replace("_", " "): value for name, value in by_name.items()})


def test_parse_sentinels_into_tagged_values():
    assert parse_preferred_status("-1") == NoTransition()
    assert parse_preferred_status("-2") == UseDefault()
    assert parse_preferred_status("10030") == StatusId("10030")
    assert parse_preferred_status(None) is None


def test_parse_blob_by_category_name():
    parsed = parse_preferred_statuses({"To Do": "1", "In Progress": "-2", "Done": "-1"})
    assert parsed == {
        StatusCategory.TODO: StatusId("1"),
        StatusCategory.IN_PROGRESS: UseDefault(),
        StatusCategory.DONE: NoTransition(),
    }
    assert parse_preferred_statuses(None) is None
    assert parse_preferred_statuses("garbage") is None


def test_no_transition_is_final():
    assert find_preferred_status_id(DONE, _statuses(Done="-1"), _statuses(Done="10031")) is None


def test_use_default_without_defaults():
    assert find_preferred_status_id(DONE, _statuses(Done="-2"), None) is None


def test_specific_id_wins():
    assert find_preferred_status_id(DONE, _statuses(Done="10030"), _statuses(Done="10031")) == "10030"
    assert find_preferred_status_id(DONE, _statuses(Done="10030"), None) == "10030"


def test_use_default_falls_back():
    assert find_preferred_status_id(DONE, _statuses(Done="-2"), _statuses(Done="10031")) == "10031"


def test_default_only():
    assert find_preferred_status_id(DONE, None, _statuses(Done="10031")) == "10031"
    assert find_preferred_status_id(DONE, None, _statuses(To_Do="1")) is None


def test_nothing_configured():
    assert find_preferred_status_id(DONE, None, None) is None
    assert find_preferred_status_id(DONE, _statuses(To_Do="1"), _statuses(Done="10031")) is None


def test_sentinels_in_defaults_are_never_returned():
    assert find_preferred_status_id(DONE, None, _statuses(Done="-2")) is None
    assert find_preferred_status_id(DONE, _statuses(Done="-2"), _statuses(Done="-1")) is None
