from collections.abc import Mapping
from typing import Any

from app.database.connection import get_connection
from app.database.models import SearchRecord, SearchResultRecord
from app.database.repositories.report_repository import ReportRepository
from app.database.repositories.search_repository import SearchRepository
from app.logging.logger import Log
from app.registry.exceptions import NotFoundError, UnauthorizedError
from app.registry.matcher import match_reports
from app.registry.models import SearchDetail, SearchResultDetail
from app.registry.validator import validate_search_input


class SearchService:
    """Runs identifier searches and serves the stored result sets.

    Results are persisted rather than recomputed, so a search keeps showing
    what matched at the time it ran even after reports change.
    """

    def __init__(
        self,
        report_repo: ReportRepository,
        search_repo: SearchRepository,
    ) -> None:
        self._report_repo = report_repo
        self._search_repo = search_repo

    def create(
        self, user_id: str, payload: Mapping[str, Any]
    ) -> tuple[SearchRecord, list[SearchResultRecord]]:
        """Record a search and one result per report matching any identifier.

        The search row, the match query and the result rows share one
        transaction: either the whole result set is stored or nothing is.

        Raises:
            ValidationError: if no identifier is provided or one is malformed.
        """
        criteria = validate_search_input(payload)

        with get_connection() as conn:
            with conn.transaction():
                search = self._search_repo.insert_search(conn, user_id, criteria)
                candidates = self._report_repo.find_matching(conn, criteria)
                matches = match_reports(criteria, candidates)
                results = self._search_repo.insert_results(conn, search.id, matches)

        fields = ", ".join(field for field, _value in criteria.provided())
        Log.info(
            f"Search {search.id} by user {user_id} on [{fields}]: {len(results)} matches",
            search_id=search.id,
            user_id=user_id,
            match_count=len(results),
        )
        return search, results

    def get_by_id(self, user_id: str, search_id: str) -> SearchDetail:
        """Fetch a search with its results and the reports they point at."""
        search = self._require_owned(user_id, search_id)
        return self._assemble([search])[0]

    def update(
        self, user_id: str, search_id: str, payload: Mapping[str, Any]
    ) -> SearchRecord:
        """Overwrite the search's identifiers without re-running the match."""
        self._require_owned(user_id, search_id)
        criteria = validate_search_input(payload)
        search = self._search_repo.update(search_id, criteria)
        Log.info(
            f"Search {search_id} updated by user {user_id}", search_id=search_id, user_id=user_id
        )
        return search

    def delete(self, user_id: str, search_id: str) -> None:
        self._require_owned(user_id, search_id)
        self._search_repo.delete(search_id)
        Log.info(
            f"Search {search_id} deleted by user {user_id}", search_id=search_id, user_id=user_id
        )

    def list_for_owner(self, user_id: str) -> list[SearchDetail]:
        """List the user's previous searches, newest first, with their results."""
        return self._assemble(self._search_repo.list_for_owner(user_id))

    def _require_owned(self, user_id: str, search_id: str) -> SearchRecord:
        search = self._search_repo.find_by_id(search_id)
        if search is None:
            raise NotFoundError("Search not found")
        if search.user_id != user_id:
            Log.warning(f"User {user_id} denied access to search {search_id}")
            raise UnauthorizedError("Unauthorized: You do not own this search")
        return search

    def _assemble(self, searches: list[SearchRecord]) -> list[SearchDetail]:
        if not searches:
            return []
        results_by_search = self._search_repo.find_results([s.id for s in searches])
        report_ids = sorted(
            {result.report_id for results in results_by_search.values() for result in results}
        )
        reports = self._report_repo.find_by_ids(report_ids)

        details: list[SearchDetail] = []
        for search in searches:
            results = [
                SearchResultDetail(result=result, report=reports.get(result.report_id))
                for result in results_by_search.get(search.id, [])
            ]
            details.append(SearchDetail(search=search, results=results))
        return details
