from collections.abc import Callable
from typing import Any

import pytest

from app.database.models import ReportRecord

REPORT_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture()
def make_report() -> Callable[..., ReportRecord]:
    """Factory for ReportRecord instances owned by 'owner-a' unless overridden."""

    def _make(**overrides: Any) -> ReportRecord:
        fields: dict[str, Any] = {
            "id": REPORT_ID,
            "user_id": "owner-a",
            "rating": 8,
            "name": "John Doe",
        }
        fields.update(overrides)
        return ReportRecord(**fields)

    return _make
