from typing import List

import pytest
from experience_booking.usecases import bookings


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> List[dict]:
    calls: List[dict] = []

    def fake_emit(**kwargs: object) -> None:
        calls.append(kwargs)

    monkeypatch.setattr(bookings, "emit_audit_log", fake_emit)
    return calls
