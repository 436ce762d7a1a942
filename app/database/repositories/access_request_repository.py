from typing import Any

from psycopg import errors
from psycopg.rows import dict_row

from app.database.connection import get_connection
from app.database.ids import is_valid_id
from app.database.models import AccessRequestRecord
from app.registry.exceptions import ConflictError
from app.registry.models import PENDING

_COLUMNS = """
    id, report_id, report_owner_id, requester_id, message, status,
    created_at, updated_at
"""


class AccessRequestRepository:
    """Database operations for the report_access_requests table."""

    def create(
        self,
        report_id: str,
        report_owner_id: str,
        requester_id: str,
        message: str,
    ) -> AccessRequestRecord:
        """Insert a PENDING request.

        Raises:
            ConflictError: if the (report, requester) pair already has a request.
        """
        with get_connection() as conn:
            try:
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO report_access_requests
                        (report_id, report_owner_id, requester_id, message, status)
                        VALUES (%s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (report_id, report_owner_id, requester_id, message, PENDING),
                    )
                    row = cur.fetchone()
            except errors.UniqueViolation as exc:
                # A concurrent request won the insert; report its status.
                conn.rollback()
                with conn.cursor(row_factory=dict_row) as cur:
                    cur.execute(
                        """
                        SELECT status FROM report_access_requests
                        WHERE report_id = %s AND requester_id = %s
                        """,
                        (report_id, requester_id),
                    )
                    existing = cur.fetchone()
                status = existing["status"] if existing is not None else PENDING
                raise ConflictError(
                    f"You already have a {status.lower()} request for this report.",
                    status=status,
                ) from exc
            conn.commit()

        assert row is not None
        return _to_record(row)

    def find_by_id(self, request_id: str) -> AccessRequestRecord | None:
        """Find a request by ID."""
        if not is_valid_id(request_id):
            return None
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM report_access_requests WHERE id = %s",
                    (request_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def find_by_report_and_requester(
        self, report_id: str, requester_id: str
    ) -> AccessRequestRecord | None:
        """Find the request a user made for a report, if any."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_COLUMNS}
                    FROM report_access_requests
                    WHERE report_id = %s AND requester_id = %s
                    """,
                    (report_id, requester_id),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_record(row)

    def transition(
        self, request_id: str, from_status: str, to_status: str
    ) -> AccessRequestRecord | None:
        """Move a request from one status to another.

        Returns None if the request is no longer in from_status, which leaves
        a status set by a concurrent transition untouched.
        """
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    UPDATE report_access_requests
                    SET status = %s, updated_at = NOW()
                    WHERE id = %s AND status = %s
                    RETURNING {_COLUMNS}
                    """,
                    (to_status, request_id, from_status),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            return None
        return _to_record(row)

    def list_for_owner(
        self, owner_id: str, status: str | None = None
    ) -> list[AccessRequestRecord]:
        """List requests addressed to a report owner, newest first."""
        query = f"SELECT {_COLUMNS} FROM report_access_requests WHERE report_owner_id = %s"
        params: tuple[str, ...] = (owner_id,)
        if status is not None:
            query += " AND status = %s"
            params = (owner_id, status)
        query += " ORDER BY created_at DESC"

        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(query, params)
                rows = cur.fetchall()

        return [_to_record(row) for row in rows]


def _to_record(row: dict[str, Any]) -> AccessRequestRecord:
    return AccessRequestRecord(
        id=str(row["id"]),
        report_id=str(row["report_id"]),
        report_owner_id=row["report_owner_id"],
        requester_id=row["requester_id"],
        message=row["message"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
