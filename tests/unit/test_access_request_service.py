import logging
from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from app.database.models import AccessRequestRecord, ReportRecord
from app.registry.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from app.registry.models import APPROVED, DENIED, PENDING
from app.services.access_request_service import AccessRequestService

REPORT_ID = "11111111-1111-1111-1111-111111111111"
REQUEST_ID = "33333333-3333-3333-3333-333333333333"
MESSAGE = "We were business partners."


def _make_service() -> tuple[AccessRequestService, MagicMock, MagicMock]:
    """Create an AccessRequestService with mocked repositories."""
    mock_report_repo = MagicMock()
    mock_request_repo = MagicMock()
    service = AccessRequestService(mock_report_repo, mock_request_repo)
    return service, mock_report_repo, mock_request_repo


def _make_request(status: str = PENDING, owner: str = "owner-a") -> AccessRequestRecord:
    return AccessRequestRecord(
        id=REQUEST_ID,
        report_id=REPORT_ID,
        report_owner_id=owner,
        requester_id="user-b",
        message=MESSAGE,
        status=status,
    )


class TestRequestAccess:
    def test_creates_pending_request_with_owner_snapshot(
        self, make_report: Callable[..., ReportRecord]
    ) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()
        request_repo.find_by_report_and_requester.return_value = None
        request_repo.create.return_value = _make_request()

        request = service.request_access("user-b", REPORT_ID, {"message": MESSAGE})

        assert request.status == PENDING
        request_repo.create.assert_called_once_with(
            report_id=REPORT_ID,
            report_owner_id="owner-a",
            requester_id="user-b",
            message=MESSAGE,
        )

    def test_missing_report(self) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Report not found"):
            service.request_access("user-b", REPORT_ID, MESSAGE)

        request_repo.create.assert_not_called()

    def test_owner_cannot_request_own_report(
        self, make_report: Callable[..., ReportRecord]
    ) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()

        with pytest.raises(InvalidOperationError, match="already own"):
            service.request_access("owner-a", REPORT_ID, MESSAGE)

        request_repo.create.assert_not_called()

    @pytest.mark.parametrize("status", [PENDING, APPROVED, DENIED])
    def test_duplicate_request_conflicts_with_status(
        self, status: str, make_report: Callable[..., ReportRecord]
    ) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()
        request_repo.find_by_report_and_requester.return_value = _make_request(status)

        with pytest.raises(ConflictError) as exc_info:
            service.request_access("user-b", REPORT_ID, MESSAGE)

        assert exc_info.value.status == status
        assert status.lower() in str(exc_info.value)
        request_repo.create.assert_not_called()

    def test_duplicate_checked_before_message(
        self, make_report: Callable[..., ReportRecord]
    ) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()
        request_repo.find_by_report_and_requester.return_value = _make_request()

        with pytest.raises(ConflictError):
            service.request_access("user-b", REPORT_ID, "short")

    def test_short_message_rejected(self, make_report: Callable[..., ReportRecord]) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()
        request_repo.find_by_report_and_requester.return_value = None

        with pytest.raises(ValidationError):
            service.request_access("user-b", REPORT_ID, "hello")

        request_repo.create.assert_not_called()

    def test_concurrent_duplicate_keeps_status(
        self, make_report: Callable[..., ReportRecord]
    ) -> None:
        service, report_repo, request_repo = _make_service()
        report_repo.find_by_id.return_value = make_report()
        request_repo.find_by_report_and_requester.return_value = None
        request_repo.create.side_effect = ConflictError(
            "You already have a pending request for this report.", status=PENDING
        )

        with pytest.raises(ConflictError) as exc_info:
            service.request_access("user-b", REPORT_ID, MESSAGE)

        assert exc_info.value.status == PENDING


class TestDecide:
    @pytest.mark.parametrize(
        ("method", "target"), [("approve", APPROVED), ("deny", DENIED)]
    )
    def test_owner_moves_pending_request(self, method: str, target: str) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.return_value = _make_request()
        request_repo.transition.return_value = _make_request(target)

        request = getattr(service, method)("owner-a", REQUEST_ID)

        assert request.status == target
        request_repo.transition.assert_called_once_with(REQUEST_ID, PENDING, target)

    @pytest.mark.parametrize("method", ["approve", "deny"])
    def test_missing_request(self, method: str) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.return_value = None

        with pytest.raises(NotFoundError, match="Request not found"):
            getattr(service, method)("owner-a", REQUEST_ID)

    @pytest.mark.parametrize("method", ["approve", "deny"])
    def test_non_owner_rejected(self, method: str) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.return_value = _make_request()

        with pytest.raises(UnauthorizedError, match=method):
            getattr(service, method)("user-b", REQUEST_ID)

        request_repo.transition.assert_not_called()

    @pytest.mark.parametrize("method", ["approve", "deny"])
    @pytest.mark.parametrize("status", [APPROVED, DENIED])
    def test_terminal_states_are_immutable(self, method: str, status: str) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.return_value = _make_request(status)

        with pytest.raises(InvalidOperationError, match=f"already {status.lower()}"):
            getattr(service, method)("owner-a", REQUEST_ID)

        request_repo.transition.assert_not_called()

    def test_lost_race_reports_current_status(self) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.side_effect = [_make_request(), _make_request(DENIED)]
        request_repo.transition.return_value = None

        with pytest.raises(InvalidOperationError) as exc_info:
            service.approve("owner-a", REQUEST_ID)

        assert exc_info.value.status == DENIED

    def test_request_removed_mid_decision_is_not_found(self) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.side_effect = [_make_request(), None]
        request_repo.transition.return_value = None

        with pytest.raises(NotFoundError, match="Request not found"):
            service.deny("owner-a", REQUEST_ID)

    def test_decision_log_carries_ids(self, caplog: pytest.LogCaptureFixture) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.find_by_id.return_value = _make_request()
        request_repo.transition.return_value = _make_request(APPROVED)

        with caplog.at_level(logging.INFO, logger="report_registry"):
            service.approve("owner-a", REQUEST_ID)

        record = caplog.records[-1]
        assert record.request_id == REQUEST_ID
        assert record.user_id == "owner-a"
        assert record.status == APPROVED


class TestListForOwner:
    def test_normalizes_status_filter(self) -> None:
        service, _reports, request_repo = _make_service()
        request_repo.list_for_owner.return_value = [_make_request()]

        assert len(service.list_for_owner("owner-a", "pending")) == 1
        request_repo.list_for_owner.assert_called_once_with("owner-a", PENDING)

    def test_rejects_unknown_status(self) -> None:
        service, _reports, _requests = _make_service()

        with pytest.raises(ValidationError):
            service.list_for_owner("owner-a", "revoked")
