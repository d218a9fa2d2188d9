"""Tests for chrio.persistence.export — session diff exporters."""

from __future__ import annotations

import json

from chrio.persistence.export import export_diff_json, export_diff_markdown
from chrio.schemas.diff import ABSENT, FieldDiff, SessionDiff


def _make_diff(**overrides) -> SessionDiff:
    defaults = {
        "client_id": 3,
        "session_a": 10,
        "session_b": 12,
        "session_number_a": 1,
        "session_number_b": 2,
        "fields": [
            FieldDiff("height", 170.0, 170.0),
            FieldDiff("weight", 70.5, ABSENT),
            FieldDiff("notes", ABSENT, "Left | right\nbalanced"),
        ],
    }
    defaults.update(overrides)
    return SessionDiff(**defaults)


class TestExportJson:

    def test_valid_json(self):
        data = json.loads(export_diff_json(_make_diff()))
        assert data["client_id"] == 3
        assert data["session_number_b"] == 2
        assert [f["field"] for f in data["fields"]] == ["height", "weight", "notes"]

    def test_absent_is_null_with_flag(self):
        data = json.loads(export_diff_json(_make_diff()))
        weight = data["fields"][1]
        assert weight["a"] == 70.5
        assert weight["b"] is None
        assert weight["b_present"] is False
        assert weight["changed"] is True

    def test_unchanged_field(self):
        data = json.loads(export_diff_json(_make_diff()))
        assert data["fields"][0]["changed"] is False


class TestExportMarkdown:

    def test_header_and_metadata(self):
        md = export_diff_markdown(_make_diff(), client_name="Alice Ng")
        assert md.startswith("# Session Comparison: #1 vs #2")
        assert "- **Client:** Alice Ng" in md
        assert "- **Changed Fields:** 2 of 3" in md

    def test_client_id_when_no_name(self):
        md = export_diff_markdown(_make_diff())
        assert "- **Client:** 3" in md

    def test_table_rows(self):
        md = export_diff_markdown(_make_diff())
        assert "| Field | Session A | Session B | Changed |" in md
        assert "| height | 170 | 170 |  |" in md
        assert "| weight | 70.5 | — | * |" in md

    def test_cells_are_escaped(self):
        md = export_diff_markdown(_make_diff())
        assert "| notes | — | Left \\| right balanced | * |" in md

    def test_empty_diff(self):
        md = export_diff_markdown(_make_diff(fields=[]))
        assert "_No recorded fields in either session._" in md
        assert "| Field |" not in md
