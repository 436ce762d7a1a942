from collections.abc import Callable, Mapping
from typing import Any

import psycopg

from app.database.repositories.access_request_repository import AccessRequestRepository
from app.database.repositories.report_repository import ReportRepository
from app.database.repositories.search_repository import SearchRepository
from app.logging.logger import Log
from app.registry.exceptions import OperationFailedError, RegistryError
from app.services.access_request_service import AccessRequestService
from app.services.report_service import ReportService
from app.services.search_service import SearchService

ActionResult = dict[str, Any]


class Actions:
    """Operations exposed to the UI/API layer.

    Every method returns ``{"success": True, ...payload}`` or
    ``{"success": False, "error": message, "code": error_code}``; registry and
    storage errors never propagate past this class.
    """

    def __init__(
        self,
        reports: ReportService,
        access_requests: AccessRequestService,
        searches: SearchService,
    ) -> None:
        self._reports = reports
        self._access_requests = access_requests
        self._searches = searches

    def create_report(self, user_id: str, payload: Mapping[str, Any]) -> ActionResult:
        return self._run(
            "create report",
            lambda: {"report": self._reports.create(user_id, payload)},
        )

    def update_report(
        self, user_id: str, report_id: str, payload: Mapping[str, Any]
    ) -> ActionResult:
        return self._run(
            "update report",
            lambda: {"report": self._reports.update(user_id, report_id, payload)},
        )

    def get_report_by_id(self, user_id: str, report_id: str) -> ActionResult:
        return self._run(
            "fetch report",
            lambda: {"report": self._reports.get_by_id(user_id, report_id)},
        )

    def delete_report(self, user_id: str, report_id: str) -> ActionResult:
        def call() -> dict[str, Any]:
            self._reports.delete(user_id, report_id)
            return {}

        return self._run("delete report", call)

    def list_reports(self, user_id: str) -> ActionResult:
        return self._run(
            "list reports",
            lambda: {"reports": self._reports.list_for_owner(user_id)},
        )

    def request_access_to_report(
        self, user_id: str, report_id: str, payload: Any
    ) -> ActionResult:
        return self._run(
            "create access request",
            lambda: {
                "request": self._access_requests.request_access(user_id, report_id, payload)
            },
        )

    def approve_access_request(self, owner_id: str, request_id: str) -> ActionResult:
        return self._run(
            "approve request",
            lambda: {"request": self._access_requests.approve(owner_id, request_id)},
        )

    def deny_access_request(self, owner_id: str, request_id: str) -> ActionResult:
        return self._run(
            "deny request",
            lambda: {"request": self._access_requests.deny(owner_id, request_id)},
        )

    def list_access_requests(
        self, owner_id: str, status: str | None = None
    ) -> ActionResult:
        return self._run(
            "list access requests",
            lambda: {"requests": self._access_requests.list_for_owner(owner_id, status)},
        )

    def create_search(self, user_id: str, payload: Mapping[str, Any]) -> ActionResult:
        def call() -> dict[str, Any]:
            search, results = self._searches.create(user_id, payload)
            return {"search": search, "search_results": results}

        return self._run("create search", call)

    def get_search_by_id(self, user_id: str, search_id: str) -> ActionResult:
        return self._run(
            "fetch search",
            lambda: {"search": self._searches.get_by_id(user_id, search_id)},
        )

    def update_search(
        self, user_id: str, search_id: str, payload: Mapping[str, Any]
    ) -> ActionResult:
        return self._run(
            "update search",
            lambda: {"search": self._searches.update(user_id, search_id, payload)},
        )

    def delete_search(self, user_id: str, search_id: str) -> ActionResult:
        def call() -> dict[str, Any]:
            self._searches.delete(user_id, search_id)
            return {}

        return self._run("delete search", call)

    def list_searches(self, user_id: str) -> ActionResult:
        return self._run(
            "list searches",
            lambda: {"searches": self._searches.list_for_owner(user_id)},
        )

    @staticmethod
    def _run(operation: str, call: Callable[[], dict[str, Any]]) -> ActionResult:
        """Run one operation and fold its outcome into a result dict."""
        try:
            payload = call()
        except RegistryError as exc:
            Log.info(f"Could not {operation}: {exc}")
            return _failure(exc)
        except psycopg.Error as exc:
            Log.error(f"Storage error during {operation}: {exc}")
            return _failure(OperationFailedError(f"Failed to {operation}"))
        return {"success": True, **payload}


def _failure(exc: RegistryError) -> ActionResult:
    result: ActionResult = {"success": False, "error": str(exc), "code": exc.code}
    status = getattr(exc, "status", None)
    if status is not None:
        result["status"] = status
    return result


def build_actions() -> Actions:
    """Build Actions with all services wired to the shared connection pool."""
    report_repo = ReportRepository()
    request_repo = AccessRequestRepository()
    search_repo = SearchRepository()
    return Actions(
        reports=ReportService(report_repo),
        access_requests=AccessRequestService(report_repo, request_repo),
        searches=SearchService(report_repo, search_repo),
    )
