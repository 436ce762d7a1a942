from collections.abc import Mapping
from typing import Any

from app.database.models import ReportRecord
from app.database.repositories.report_repository import ReportRepository
from app.logging.logger import Log
from app.registry.exceptions import NotFoundError, UnauthorizedError
from app.registry.validator import validate_report_input

# Returned for both "absent" and "not visible" so callers cannot probe for IDs.
REPORT_NOT_VISIBLE = "Access denied or report not found."


class ReportService:
    """Report lifecycle: create, update, fetch and delete with ownership checks."""

    def __init__(self, report_repo: ReportRepository) -> None:
        self._report_repo = report_repo

    def create(self, user_id: str, payload: Mapping[str, Any]) -> ReportRecord:
        data = validate_report_input(payload)
        report = self._report_repo.create(user_id, data)
        Log.info(
            f"Report {report.id} created by user {user_id}",
            report_id=report.id,
            user_id=user_id,
        )
        return report

    def update(
        self, user_id: str, report_id: str, payload: Mapping[str, Any]
    ) -> ReportRecord:
        """Overwrite a report's content. Only its owner may do this."""
        self._require_owned(user_id, report_id)
        data = validate_report_input(payload)
        report = self._report_repo.update(report_id, data)
        Log.info(
            f"Report {report_id} updated by user {user_id}", report_id=report_id, user_id=user_id
        )
        return report

    def get_by_id(self, user_id: str, report_id: str) -> ReportRecord:
        """Fetch a report visible to the user.

        A report is visible to its owner and to any user whose access request
        for it was approved.

        Raises:
            NotFoundError: if the report is absent or not visible to the user.
        """
        report = self._report_repo.find_visible(report_id, user_id)
        if report is None:
            Log.debug(f"Report {report_id} not visible to user {user_id}")
            raise NotFoundError(REPORT_NOT_VISIBLE)
        return report

    def delete(self, user_id: str, report_id: str) -> None:
        self._require_owned(user_id, report_id)
        self._report_repo.delete(report_id)
        Log.info(
            f"Report {report_id} deleted by user {user_id}", report_id=report_id, user_id=user_id
        )

    def list_for_owner(self, user_id: str) -> list[ReportRecord]:
        return self._report_repo.list_for_owner(user_id)

    def _require_owned(self, user_id: str, report_id: str) -> ReportRecord:
        report = self._report_repo.find_by_id(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        if report.user_id != user_id:
            Log.warning(f"User {user_id} denied write access to report {report_id}")
            raise UnauthorizedError("Unauthorized: You do not own this report")
        return report
