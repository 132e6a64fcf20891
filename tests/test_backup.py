"""
Tests for backup export and import.
"""

import json
from datetime import date

import pytest

from haseela.models.ledger import AppState
from haseela.services.backup import (
    InvalidDocumentError,
    backup_filename,
    export_document,
    parse_document,
)


class TestExport:
    """Tests for exporting the state."""

    def test_backup_filename(self):
        """Test the dated download name."""
        assert backup_filename(date(2024, 3, 9)) == "haseela_backup_2024-03-09.json"

    def test_export_is_pretty_json(self, sample_state):
        """Test exports are indented camelCase JSON."""
        content = export_document(sample_state)
        assert content.startswith("{\n  ")
        assert json.loads(content)["goals"][1]["targetAmount"] == 1000

    def test_export_keeps_non_ascii(self):
        """Test currency symbols are written as-is."""
        assert "€" in export_document(AppState.empty("€"))


class TestImport:
    """Tests for parsing import documents."""

    def test_round_trip(self, sample_state):
        """Test export then import reproduces the same state."""
        assert parse_document(export_document(sample_state)) == sample_state

    def test_accepts_bytes_with_bom(self, sample_state):
        """Test uploaded bytes with a UTF-8 BOM are accepted."""
        content = "﻿" + export_document(sample_state)
        assert parse_document(content.encode("utf-8")) == sample_state

    def test_rejects_non_json(self):
        """Test text that is not JSON is rejected."""
        with pytest.raises(InvalidDocumentError, match="not valid JSON"):
            parse_document("hello")

    def test_rejects_non_utf8(self):
        """Test undecodable bytes are rejected."""
        with pytest.raises(InvalidDocumentError, match="UTF-8"):
            parse_document(b"\xff\xfe\xfa")

    def test_rejects_missing_collections(self):
        """Test the schema check runs before the model parse."""
        with pytest.raises(InvalidDocumentError, match="goals"):
            parse_document(json.dumps({"clients": []}))

    def test_rejects_array(self):
        """Test a top-level array is rejected."""
        with pytest.raises(InvalidDocumentError, match="JSON object"):
            parse_document("[]")

    def test_rejects_invalid_records(self):
        """Test records breaking invariants are rejected as a whole."""
        document = {
            "clients": [{
                "id": "c",
                "name": "Acme",
                "tasks": [{
                    "id": "t",
                    "title": "Logo",
                    "price": 10,
                    "isCompleted": True,
                    "createdAt": "2024-03-01T10:00:00Z",
                    "completedAt": None,
                }],
            }],
            "goals": [],
        }
        with pytest.raises(InvalidDocumentError, match="invalid"):
            parse_document(json.dumps(document))

    def test_currency_defaults_when_absent(self):
        """Test older documents without a currency still import."""
        assert parse_document('{"clients": [], "goals": []}').currency == "$"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
