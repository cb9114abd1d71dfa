"""Domain exceptions map to stable status codes and error codes."""

import pytest

from app.core.exceptions import (
    BusinessRuleException,
    DuplicateSlotException,
    IllegalTransitionException,
    NotAuthorizedException,
    ServiceException,
    SlotNotFoundException,
    SlotTakenException,
    UnauthorizedException,
    ValidationException,
)


@pytest.mark.parametrize(
    "exc, status_code, code",
    [
        (SlotTakenException(), 409, "SLOT_TAKEN"),
        (SlotNotFoundException("trip-1", "2025-06-15", "09:00"), 404, "SLOT_NOT_FOUND"),
        (DuplicateSlotException("trip-1", "2025-06-15", "09:00"), 409, "DUPLICATE_SLOT"),
        (IllegalTransitionException("canceled", "confirmed"), 409, "ILLEGAL_TRANSITION"),
        (NotAuthorizedException(), 403, "NOT_AUTHORIZED"),
        (ValidationException("bad", code="INVALID_PAGE"), 400, "INVALID_PAGE"),
        (BusinessRuleException("no", code="SLOT_BOOKED"), 422, "SLOT_BOOKED"),
        (UnauthorizedException("who are you", code="TOKEN_INVALID"), 401, "TOKEN_INVALID"),
        (ServiceException("boom", code="SERVICE_ERROR"), 500, "SERVICE_ERROR"),
    ],
)
def test_http_mapping(exc, status_code, code):
    http_exc = exc.to_http_exception()

    assert http_exc.status_code == status_code
    assert http_exc.detail["code"] == code
    assert http_exc.detail["message"] == exc.message


def test_code_defaults_to_class_name():
    assert ValidationException("bad").code == "ValidationException"


def test_slot_taken_carries_conflict_details():
    exc = SlotTakenException(details={"reason": "manual_block", "conflicting_trip_id": "t1"})

    assert exc.message == "This time is no longer available"
    assert exc.to_http_exception().detail["details"]["reason"] == "manual_block"


def test_illegal_transition_names_both_statuses():
    exc = IllegalTransitionException("completed", "canceled")

    assert "completed" in exc.message and "canceled" in exc.message
    assert exc.details == {"current_status": "completed", "requested_status": "canceled"}


def test_not_authorized_payload_is_constant():
    first = NotAuthorizedException().to_http_exception().detail
    second = NotAuthorizedException().to_http_exception().detail

    assert first == second
    assert first["details"] == {}


def test_service_exception_is_500():
    http_exc = ServiceException("Database operation failed").to_http_exception()

    assert http_exc.status_code == 500
    assert http_exc.detail["message"] == "Database operation failed"
