from typing import Any

from app.database.models import AccessRequestRecord
from app.database.repositories.access_request_repository import AccessRequestRepository
from app.database.repositories.report_repository import ReportRepository
from app.logging.logger import Log
from app.registry.exceptions import (
    ConflictError,
    InvalidOperationError,
    NotFoundError,
    UnauthorizedError,
)
from app.registry.models import APPROVED, DENIED, PENDING
from app.registry.validator import validate_access_message, validate_access_status


class AccessRequestService:
    """Request/approve/deny workflow for reading reports one does not own.

    A request starts PENDING and moves exactly once, to APPROVED or DENIED,
    at the hand of the report owner recorded when the request was made.
    """

    def __init__(
        self,
        report_repo: ReportRepository,
        request_repo: AccessRequestRepository,
    ) -> None:
        self._report_repo = report_repo
        self._request_repo = request_repo

    def request_access(
        self, requester_id: str, report_id: str, message: Any
    ) -> AccessRequestRecord:
        """Create a PENDING access request for a report.

        The message may be given directly or as a mapping with a 'message' key.

        Raises:
            NotFoundError: if the report does not exist.
            InvalidOperationError: if the requester owns the report.
            ConflictError: if the requester already has a request for it.
            ValidationError: if the message is not 10-1000 characters.
        """
        report = self._report_repo.find_by_id(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        if report.user_id == requester_id:
            raise InvalidOperationError("You already own this report")

        existing = self._request_repo.find_by_report_and_requester(report.id, requester_id)
        if existing is not None:
            raise ConflictError(
                f"You already have a {existing.status.lower()} request for this report.",
                status=existing.status,
            )

        text = validate_access_message(message)
        request = self._request_repo.create(
            report_id=report.id,
            report_owner_id=report.user_id,
            requester_id=requester_id,
            message=text,
        )
        Log.info(
            f"Access request {request.id} created by user {requester_id} "
            f"for report {report.id}",
            request_id=request.id,
            report_id=report.id,
            user_id=requester_id,
        )
        return request

    def approve(self, owner_id: str, request_id: str) -> AccessRequestRecord:
        return self._decide(owner_id, request_id, APPROVED, "approve")

    def deny(self, owner_id: str, request_id: str) -> AccessRequestRecord:
        return self._decide(owner_id, request_id, DENIED, "deny")

    def list_for_owner(
        self, owner_id: str, status: str | None = None
    ) -> list[AccessRequestRecord]:
        """List requests for the owner's reports, optionally by status."""
        return self._request_repo.list_for_owner(owner_id, validate_access_status(status))

    def _decide(
        self, owner_id: str, request_id: str, to_status: str, verb: str
    ) -> AccessRequestRecord:
        request = self._request_repo.find_by_id(request_id)
        if request is None:
            raise NotFoundError("Request not found")
        if request.report_owner_id != owner_id:
            Log.warning(f"User {owner_id} may not {verb} access request {request_id}")
            raise UnauthorizedError(f"You don't have permission to {verb} this request")
        if request.status != PENDING:
            raise InvalidOperationError(
                f"Request is already {request.status.lower()}", status=request.status
            )

        updated = self._request_repo.transition(request_id, PENDING, to_status)
        if updated is None:
            # Lost a race with another decision, or the report was deleted.
            current = self._request_repo.find_by_id(request_id)
            if current is None:
                raise NotFoundError("Request not found")
            raise InvalidOperationError(
                f"Request is already {current.status.lower()}", status=current.status
            )

        Log.info(
            f"Access request {request_id} {updated.status.lower()} by user {owner_id}",
            request_id=request_id,
            user_id=owner_id,
            status=updated.status,
        )
        return updated
