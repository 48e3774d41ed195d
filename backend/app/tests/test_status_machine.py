import pytest

from app.core.errors import InvalidTransition, ValidationError
from app.services.status_machine import (
    AssignmentEvent,
    TaskStatus,
    allowed_sources,
    initial_statuses,
    next_status,
    review_event,
    should_activate,
    validate_submission,
)


@pytest.mark.parametrize(
    "current, event, expected",
    [
        ("in_progress", AssignmentEvent.SUBMIT, TaskStatus.SUBMITTED),
        ("rejected", AssignmentEvent.SUBMIT, TaskStatus.SUBMITTED),
        ("submitted", AssignmentEvent.APPROVE, TaskStatus.APPROVED),
        ("submitted", AssignmentEvent.REJECT, TaskStatus.REJECTED),
        ("locked", AssignmentEvent.ACTIVATE, TaskStatus.IN_PROGRESS),
    ],
)
def test_legal_transitions(current, event, expected):
    assert next_status(current, event) == expected


@pytest.mark.parametrize(
    "current, event",
    [
        ("locked", AssignmentEvent.SUBMIT),
        ("approved", AssignmentEvent.SUBMIT),
        ("submitted", AssignmentEvent.SUBMIT),
        ("in_progress", AssignmentEvent.APPROVE),
        ("approved", AssignmentEvent.REJECT),
        ("rejected", AssignmentEvent.APPROVE),
        ("in_progress", AssignmentEvent.ACTIVATE),
    ],
)
def test_illegal_transitions_raise(current, event):
    with pytest.raises(InvalidTransition) as exc_info:
        next_status(current, event)
    assert exc_info.value.current_status == current
    assert exc_info.value.event == event.value


def test_approved_accepts_no_event():
    for event in AssignmentEvent:
        with pytest.raises(InvalidTransition):
            next_status(TaskStatus.APPROVED, event)


def test_unknown_status_is_validation_error():
    with pytest.raises(ValidationError):
        next_status("archived", AssignmentEvent.SUBMIT)


def test_allowed_sources_for_submit():
    assert allowed_sources(AssignmentEvent.SUBMIT) == {TaskStatus.IN_PROGRESS, TaskStatus.REJECTED}


@pytest.mark.parametrize("content", ["", "   ", None, "\n\t"])
def test_empty_submission_rejected(content):
    with pytest.raises(ValidationError):
        validate_submission(content)


def test_submission_is_trimmed():
    assert validate_submission("  done  ") == "done"


def test_review_event_mapping():
    assert review_event("approve") == AssignmentEvent.APPROVE
    assert review_event(" REJECT ") == AssignmentEvent.REJECT
    with pytest.raises(ValidationError):
        review_event("maybe")


def test_only_locked_assignments_are_activated():
    assert should_activate("locked")
    for status in ("in_progress", "submitted", "approved", "rejected"):
        assert not should_activate(status)


def test_initial_statuses_without_active_task():
    assert initial_statuses(["a", "b", "c"], has_active=False) == [
        ("a", TaskStatus.IN_PROGRESS),
        ("b", TaskStatus.LOCKED),
        ("c", TaskStatus.LOCKED),
    ]


def test_initial_statuses_with_active_task():
    assert initial_statuses(["a", "b"], has_active=True) == [
        ("a", TaskStatus.LOCKED),
        ("b", TaskStatus.LOCKED),
    ]
    assert initial_statuses([], has_active=False) == []
