"""
Unit tests for the snapshot sanitizer.

Tests cover:
- Completeness for arbitrary input shapes
- Identity password migration
- Reserved account bootstrap (case-insensitive, never duplicated)
- lastUpdated coercion
- Idempotence
"""

import pytest

from school.datastore.models import COLLECTION_WIRE_NAMES, Snapshot
from school.datastore.sanitize import (
    DEFAULT_PASSWORD,
    RESERVED_ACCOUNTS,
    ReservedAccount,
    sanitize,
)

RESERVED_EMAILS = {a.email for a in RESERVED_ACCOUNTS}


def _emails(snapshot):
    return [str(u.get("email", "")).lower() for u in snapshot.users]


class TestCompleteness:
    """Every named collection is present whatever the input."""

    @pytest.mark.parametrize(
        "candidate",
        [None, 42, "text", [], [1, 2], {}, {"students": "oops"}, {"students": [1, "x"]}],
    )
    def test_every_collection_present(self, candidate, defaults):
        """Malformed input never leaves a collection missing."""
        result = sanitize(candidate, defaults)

        assert isinstance(result, Snapshot)
        for name in COLLECTION_WIRE_NAMES:
            assert isinstance(result.collection(name), tuple)

    def test_malformed_collection_uses_default(self, defaults):
        """A non-list collection is replaced by the default one."""
        result = sanitize({"students": {"id": "stu-1"}}, defaults)

        assert result.students == defaults.students

    def test_list_of_non_records_uses_default(self, defaults):
        """A list containing non-objects is replaced by the default one."""
        result = sanitize({"grades": [{"studentId": "a"}, "junk"]}, defaults)

        assert result.grades == defaults.grades

    def test_valid_collection_kept(self, defaults):
        """A well-formed collection is kept as-is, even if empty."""
        result = sanitize({"students": [], "subjects": [{"id": "s", "name": "Artes"}]}, defaults)

        assert result.students == ()
        assert result.subjects == ({"id": "s", "name": "Artes"},)

    def test_penalty_config_defaulted(self, defaults):
        """Non-object penalty config falls back to defaults."""
        result = sanitize({"penaltyConfig": "high"}, defaults)

        assert result.penalty_config == defaults.penalty_config

    def test_unknown_keys_preserved(self, defaults):
        """Unknown top-level keys survive sanitization."""
        result = sanitize({"schemaVersion": 3}, defaults)

        assert result.extras == {"schemaVersion": 3}
        assert result.to_document()["schemaVersion"] == 3

    def test_input_not_mutated(self, defaults):
        """The candidate document is left untouched."""
        doc = {"teachers": [{"id": "t1", "email": "t@x.com"}], "lastUpdated": 5}

        sanitize(doc, defaults)

        assert doc == {"teachers": [{"id": "t1", "email": "t@x.com"}], "lastUpdated": 5}

    def test_snapshot_candidate_accepted(self, defaults):
        """A Snapshot can be re-sanitized directly."""
        assert sanitize(defaults, defaults) == sanitize(defaults.to_document(), defaults)


class TestIdentityMigration:
    """Password defaults for login-capable identities."""

    def test_missing_password_gets_default(self, defaults):
        """Identity without password gets the default and must change it."""
        result = sanitize({"teachers": [{"id": "t1", "email": "t@x.com"}]}, defaults)

        teacher = result.teachers[0]
        assert teacher["password"] == DEFAULT_PASSWORD
        assert teacher["needsPasswordChange"] is True

    def test_explicit_values_untouched(self, defaults):
        """Explicit password and flag are preserved."""
        parent = {"id": "p1", "email": "p@x.com", "password": "s3cret", "needsPasswordChange": False}

        result = sanitize({"parents": [parent]}, defaults)

        assert result.parents[0] == parent

    def test_password_without_flag_requires_change(self, defaults):
        """A record with password but no flag gets needsPasswordChange=True."""
        result = sanitize({"users": [{"id": "u1", "email": "u@x.com", "password": "abc"}]}, defaults)

        user = next(u for u in result.users if u["id"] == "u1")
        assert user["password"] == "abc"
        assert user["needsPasswordChange"] is True

    def test_students_not_migrated(self, defaults):
        """Non-identity collections get no password."""
        result = sanitize({"students": [{"id": "s1", "name": "Ana"}]}, defaults)

        assert "password" not in result.students[0]


class TestReservedAccounts:
    """Bootstrap of reserved administrator accounts."""

    def test_created_when_missing(self, defaults):
        """All reserved accounts exist after sanitizing an empty user list."""
        result = sanitize({"users": []}, defaults)

        assert set(_emails(result)) == RESERVED_EMAILS
        admin = next(u for u in result.users if u["email"] == "admin@school.com")
        assert admin["id"] == "admin-1"
        assert admin["role"] == "ADMIN"

    def test_case_insensitive_match(self, defaults):
        """An existing account with different casing is not duplicated."""
        users = [{"id": "x", "email": " ADMIN@School.com ", "password": "p", "needsPasswordChange": False}]

        result = sanitize({"users": users}, defaults)

        assert _emails(result).count(" admin@school.com ") == 1
        assert "admin@school.com" not in _emails(result)
        assert len(result.users) == len(RESERVED_ACCOUNTS)

    def test_bootstrap_idempotent(self, defaults):
        """Sanitizing twice never duplicates reserved accounts."""
        once = sanitize({"users": []}, defaults)
        twice = sanitize(once.to_document(), defaults)

        for email in RESERVED_EMAILS:
            assert _emails(twice).count(email) == 1

    def test_custom_reserved_accounts(self, defaults):
        """Reserved list can be overridden."""
        extra = ReservedAccount("admin-x", "X", "x@school.com")

        result = sanitize({"users": []}, defaults, reserved_accounts=[extra])

        assert _emails(result) == ["x@school.com"]


class TestLastUpdated:
    """lastUpdated coercion."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, 0),
            (0, 0),
            (-5, 0),
            (True, 0),
            ("abc", 0),
            (float("nan"), 0),
            (float("inf"), 0),
            ([1], 0),
            (1500, 1500),
            (1500.9, 1500),
            ("1700", 1700),
        ],
    )
    def test_coercion(self, value, expected, defaults):
        assert sanitize({"lastUpdated": value}, defaults).last_updated == expected

    def test_missing_means_no_real_data(self, defaults):
        result = sanitize({}, defaults)

        assert result.last_updated == 0
        assert not result.has_real_data


class TestIdempotence:
    """sanitize(sanitize(x)) == sanitize(x)."""

    @pytest.mark.parametrize(
        "candidate",
        [
            None,
            {},
            {"users": [{"id": "u", "email": "Rosila@CEDMISV.com.br"}], "lastUpdated": "12"},
            {"teachers": [{"id": "t"}], "students": "bad", "penaltyConfig": None, "extra": [1]},
        ],
    )
    def test_idempotent(self, candidate, defaults):
        once = sanitize(candidate, defaults)
        twice = sanitize(once.to_document(), defaults)

        assert twice == once
