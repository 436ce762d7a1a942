from typing import Any

import psycopg
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.ids import is_valid_id
from app.database.models import ReportRecord, SearchRecord, SearchResultRecord
from app.registry.exceptions import NotFoundError
from app.registry.identifiers import IdentifierRecord

_SEARCH_COLUMNS = """
    id, user_id, name, instagram_id, facebook_id, email, phone_number,
    created_at, updated_at
"""

_RESULT_COLUMNS = "id, search_id, report_id, matched_on, created_at"


class SearchRepository:
    """Database operations for the searches and search_results tables."""

    def insert_search(
        self,
        conn: psycopg.Connection[Any],
        user_id: str,
        criteria: IdentifierRecord,
    ) -> SearchRecord:
        """Insert a search header on the caller's connection. Does not commit."""
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(
                f"""
                INSERT INTO searches
                (user_id, name, instagram_id, facebook_id, email, phone_number)
                VALUES (%s, %s, %s, %s, %s, %s)
                RETURNING {_SEARCH_COLUMNS}
                """,
                (user_id, *criteria.as_params()),
            )
            row = cur.fetchone()

        assert row is not None
        return _to_search(row)

    def insert_results(
        self,
        conn: psycopg.Connection[Any],
        search_id: str,
        matches: list[tuple[ReportRecord, str]],
    ) -> list[SearchResultRecord]:
        """Insert one result row per matched report on the caller's connection.

        Does not commit; the caller owns the transaction.
        """
        results: list[SearchResultRecord] = []
        with conn.cursor(row_factory=dict_row) as cur:
            for report, matched_on in matches:
                cur.execute(
                    f"""
                    INSERT INTO search_results (search_id, report_id, matched_on)
                    VALUES (%s, %s, %s)
                    RETURNING {_RESULT_COLUMNS}
                    """,
                    (search_id, report.id, matched_on),
                )
                row = cur.fetchone()
                assert row is not None
                results.append(_to_result(row))
        return results

    def find_by_id(self, search_id: str) -> SearchRecord | None:
        """Find a search header by ID."""
        if not is_valid_id(search_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_SEARCH_COLUMNS} FROM searches WHERE id = %s",
                    (search_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_search(row)

    def find_results(self, search_ids: list[str]) -> dict[str, list[SearchResultRecord]]:
        """Fetch result rows for several searches, grouped by search ID."""
        grouped: dict[str, list[SearchResultRecord]] = {
            search_id: [] for search_id in search_ids
        }
        if not search_ids:
            return grouped
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_RESULT_COLUMNS}
                    FROM search_results
                    WHERE search_id = ANY(%s::uuid[])
                    ORDER BY created_at, id
                    """,
                    (search_ids,),
                )
                rows = cur.fetchall()

        for row in rows:
            result = _to_result(row)
            grouped.setdefault(result.search_id, []).append(result)
        return grouped

    def list_for_owner(self, user_id: str) -> list[SearchRecord]:
        """List searches run by user_id, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_SEARCH_COLUMNS}
                    FROM searches
                    WHERE user_id = %s
                    ORDER BY created_at DESC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()

        return [_to_search(row) for row in rows]

    def update(self, search_id: str, criteria: IdentifierRecord) -> SearchRecord:
        """Overwrite the identifier columns of a search. Results are left as they are.

        Raises:
            NotFoundError: if no search with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE searches
                    SET name = %s, instagram_id = %s, facebook_id = %s,
                        email = %s, phone_number = %s, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_SEARCH_COLUMNS}
                    """,
                    (*criteria.as_params(), search_id),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise NotFoundError("Search not found")
        return _to_search(row)

    def delete(self, search_id: str) -> None:
        """Delete a search. Its result rows go with it.

        Raises:
            NotFoundError: if no search with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM searches WHERE id = %s", (search_id,))
                if cur.rowcount == 0:
                    raise NotFoundError("Search not found")
            conn.commit()


def _to_search(row: dict[str, Any]) -> SearchRecord:
    return SearchRecord(
        id=str(row["id"]),
        user_id=row["user_id"],
        name=row["name"],
        instagram_id=row["instagram_id"],
        facebook_id=row["facebook_id"],
        email=row["email"],
        phone_number=row["phone_number"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _to_result(row: dict[str, Any]) -> SearchResultRecord:
    return SearchResultRecord(
        id=str(row["id"]),
        search_id=str(row["search_id"]),
        report_id=str(row["report_id"]),
        matched_on=row["matched_on"],
        created_at=row["created_at"],
    )
