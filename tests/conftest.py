from __future__ import annotations

import json

import pytest

from tests.factories import audit_row, violation_row


@pytest.fixture
def export_data() -> dict:
    return {
        "audits": [
            audit_row("a1", "p1", "2025-01-10T09:00:00Z", health_score=60,
                      summary={"critical": 3, "serious": 4, "moderate": 2, "minor": 1, "total": 10}),
            audit_row("a2", "p1", "2025-02-10T09:00:00Z", health_score=70, previous_audit_id="a1",
                      summary={"critical": 2, "serious": 3, "moderate": 2, "minor": 1, "total": 8}),
            audit_row("a3", "p1", "2025-03-10T09:00:00Z", health_score=None, previous_audit_id="a2",
                      summary={"critical": 0, "serious": 2, "moderate": 1, "minor": 1, "total": 4}),
            audit_row("b1", "p2", "2025-03-01T09:00:00Z"),
            audit_row("a4", "p1", "2025-03-12T09:00:00Z", status="FAILED"),
        ],
        "violations": [
            violation_row("a2", "fp-keep", occurrences=4),
            violation_row("a2", "fp-gone", occurrences=2, impact="critical"),
            violation_row("a2", "fp-less", occurrences=6),
            violation_row("a3", "fp-keep", occurrences=4),
            violation_row("a3", "fp-less", occurrences=3),
            violation_row("a3", "fp-new", occurrences=1, impact="minor"),
        ],
    }


@pytest.fixture
def export_file(tmp_path, export_data):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(export_data))
    return path
