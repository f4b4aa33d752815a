"""
Unit tests for the data model.

Tests cover:
- Snapshot document round trip and immutability helpers
- RemoteCredentials completeness and serialization
"""

import dataclasses

import pytest

from school.datastore.models import COLLECTION_WIRE_NAMES, RemoteCredentials, Snapshot


class TestSnapshot:
    """Tests for Snapshot."""

    def test_default_snapshot_has_no_real_data(self):
        snapshot = Snapshot()

        assert snapshot.last_updated == 0
        assert not snapshot.has_real_data

    def test_document_uses_wire_names(self, defaults):
        """Document keys follow the stored format."""
        doc = defaults.to_document()

        for name in COLLECTION_WIRE_NAMES:
            assert isinstance(doc[name], list)
        assert "classLogs" in doc
        assert "favocoinTransactions" in doc
        assert doc["lastUpdated"] == 0
        assert doc["penaltyConfig"]["gracePeriodDays"] == 5

    def test_document_is_a_copy(self, defaults):
        """Mutating the document doesn't touch the snapshot."""
        doc = defaults.to_document()
        doc["students"][0]["name"] = "Changed"

        assert defaults.students[0]["name"] != "Changed"

    def test_from_trusted_round_trip(self, defaults):
        doc = defaults.to_document()

        assert Snapshot.from_trusted(doc) == defaults

    def test_with_collection_returns_new_snapshot(self, defaults):
        updated = defaults.with_collection("subjects", [{"id": "s9", "name": "Artes"}])

        assert updated.subjects == ({"id": "s9", "name": "Artes"},)
        assert defaults.subjects != updated.subjects
        assert updated.students == defaults.students

    def test_with_collections_multiple(self, defaults):
        updated = defaults.with_collections(classLogs=[], calendarEvents=[])

        assert updated.class_logs == ()
        assert updated.calendar_events == ()

    def test_unknown_collection_rejected(self, defaults):
        with pytest.raises(KeyError):
            defaults.collection("homework")

    def test_frozen(self, defaults):
        with pytest.raises(dataclasses.FrozenInstanceError):
            defaults.last_updated = 5

    def test_stamped(self, defaults):
        assert defaults.stamped(1234).last_updated == 1234
        assert defaults.last_updated == 0


class TestRemoteCredentials:
    """Tests for RemoteCredentials."""

    @pytest.mark.parametrize(
        "endpoint,key,complete",
        [
            ("", "", False),
            ("https://x.supabase.co", "", False),
            ("", "anon", False),
            ("   ", "anon", False),
            ("https://x.supabase.co", "anon", True),
        ],
    )
    def test_is_complete(self, endpoint, key, complete):
        assert RemoteCredentials(endpoint, key).is_complete is complete

    def test_wire_format(self):
        creds = RemoteCredentials("https://x.supabase.co", "anon")

        assert creds.to_dict() == {"url": "https://x.supabase.co", "key": "anon"}
        assert RemoteCredentials.from_dict(creds.to_dict()) == creds

    @pytest.mark.parametrize("data", [None, [], "x", {"url": 5, "key": None}])
    def test_malformed_yields_empty(self, data):
        assert RemoteCredentials.from_dict(data) == RemoteCredentials()

    def test_key_never_in_repr(self):
        creds = RemoteCredentials("https://x.supabase.co", "super-secret")

        assert "super-secret" not in repr(creds)
        assert creds.redacted() == {"url": "https://x.supabase.co", "key": "***"}
