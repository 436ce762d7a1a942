from typing import Any

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.ids import is_valid_id
from app.database.models import ReportRecord
from app.registry.exceptions import NotFoundError
from app.registry.identifiers import IdentifierRecord
from app.registry.models import APPROVED, ReportInput

_COLUMNS = """
    id, user_id, name, instagram_id, facebook_id, email, phone_number,
    rating, description, created_at, updated_at
"""


class ReportRepository:
    """Database operations for the reports table."""

    def create(self, user_id: str, data: ReportInput) -> ReportRecord:
        """Insert a new report owned by user_id."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO reports
                    (user_id, name, instagram_id, facebook_id, email, phone_number,
                     rating, description)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING {_COLUMNS}
                    """,
                    (user_id, *data.identifiers.as_params(), data.rating, data.description),
                )
                row = cur.fetchone()
            conn.commit()

        assert row is not None
        return _to_record(row)

    def find_by_id(self, report_id: str) -> ReportRecord | None:
        """Find a report by ID regardless of who is asking."""
        if not is_valid_id(report_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM reports WHERE id = %s",
                    (report_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def find_visible(self, report_id: str, user_id: str) -> ReportRecord | None:
        """Find a report the user owns or holds an approved access request for."""
        if not is_valid_id(report_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM reports r
                    WHERE r.id = %s
                      AND (
                        r.user_id = %s
                        OR EXISTS (
                            SELECT 1
                            FROM report_access_requests a
                            WHERE a.report_id = r.id
                              AND a.requester_id = %s
                              AND a.status = %s
                        )
                      )
                    """,
                    (report_id, user_id, user_id, APPROVED),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def find_by_ids(self, report_ids: list[str]) -> dict[str, ReportRecord]:
        """Fetch several reports at once, keyed by ID. Missing IDs are omitted."""
        ids = [report_id for report_id in report_ids if is_valid_id(report_id)]
        if not ids:
            return {}
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM reports WHERE id = ANY(%s::uuid[])",
                    (ids,),
                )
                rows = cur.fetchall()

        records = [_to_record(row) for row in rows]
        return {record.id: record for record in records}

    def list_for_owner(self, user_id: str) -> list[ReportRecord]:
        """List reports owned by user_id, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM reports
                    WHERE user_id = %s
                    ORDER BY created_at DESC
                    """,
                    (user_id,),
                )
                rows = cur.fetchall()

        return [_to_record(row) for row in rows]

    def find_matching(
        self,
        conn: psycopg.Connection[Any],
        criteria: IdentifierRecord,
    ) -> list[ReportRecord]:
        """Select reports equal to criteria on any provided identifier field.

        Runs on the caller's connection so it shares the search transaction.
        """
        provided = criteria.provided()
        if not provided:
            return []
        condition = sql.SQL(" OR ").join(
            sql.SQL("{} = %s").format(sql.Identifier(field)) for field, _value in provided
        )
        query = sql.SQL("SELECT {columns} FROM reports WHERE {condition} ORDER BY created_at").format(
            columns=sql.SQL(_COLUMNS),
            condition=condition,
        )
        with conn.cursor(row_factory=dict_row) as cur:
            cur.execute(query, tuple(value for _field, value in provided))
            rows = cur.fetchall()

        return [_to_record(row) for row in rows]

    def update(self, report_id: str, data: ReportInput) -> ReportRecord:
        """Overwrite the identifier, rating and description columns of a report.

        Raises:
            NotFoundError: if no report with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE reports
                    SET name = %s, instagram_id = %s, facebook_id = %s,
                        email = %s, phone_number = %s,
                        rating = %s, description = %s, updated_at = NOW()
                    WHERE id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (*data.identifiers.as_params(), data.rating, data.description, report_id),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise NotFoundError("Report not found")
        return _to_record(row)

    def delete(self, report_id: str) -> None:
        """Delete a report. Its access requests go with it.

        Raises:
            NotFoundError: if no report with this ID exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM reports WHERE id = %s", (report_id,))
                if cur.rowcount == 0:
                    raise NotFoundError("Report not found")
            conn.commit()


def _to_record(row: dict[str, Any]) -> ReportRecord:
    return ReportRecord(
        id=str(row["id"]),
        user_id=row["user_id"],
        name=row["name"],
        instagram_id=row["instagram_id"],
        facebook_id=row["facebook_id"],
        email=row["email"],
        phone_number=row["phone_number"],
        rating=row["rating"],
        description=row["description"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
