"""
Unit tests for startup arbitration and error classification.
"""

import pytest

from school.datastore.errors import RemoteNetworkError, RemoteUnauthorizedError
from school.datastore.models import Snapshot
from school.datastore.sanitize import sanitize
from school.datastore.sync import RemoteDocument, classify_remote_error, should_adopt_remote


class TestShouldAdoptRemote:
    """Timestamp arbitration table."""

    @pytest.mark.parametrize(
        "local_ts,remote_ts,adopt",
        [
            (0, 0, False),
            (100, 50, False),
            (0, 500, True),
            (500, 0, False),
            (500, 500, False),
            (500, 501, True),
            (-3, 10, True),
        ],
    )
    def test_table(self, local_ts, remote_ts, adopt):
        assert should_adopt_remote(local_ts, remote_ts) is adopt


class TestRemoteDocument:
    """lastUpdated read from remote content."""

    @pytest.mark.parametrize(
        "content,expected",
        [
            ({"lastUpdated": 1700}, 1700),
            ({"lastUpdated": 1700.5}, 1700),
            ({"lastUpdated": "1700"}, 1700),
            ({"lastUpdated": "soon"}, 0),
            ({"lastUpdated": float("inf")}, 0),
            ({"lastUpdated": float("nan")}, 0),
            ({"lastUpdated": True}, 0),
            ({"lastUpdated": -1}, 0),
            ({}, 0),
            (None, 0),
            ([1, 2], 0),
        ],
    )
    def test_last_updated(self, content, expected):
        assert RemoteDocument(1, content).last_updated == expected

    @pytest.mark.parametrize("value", ["2000", 2000.7, float("inf"), "x", None])
    def test_agrees_with_sanitize(self, value):
        content = {"lastUpdated": value}

        assert RemoteDocument(1, content).last_updated == sanitize(content, Snapshot()).last_updated


class TestClassifyRemoteError:
    """Two-way error taxonomy."""

    @pytest.mark.parametrize("code", ["401", "403", "PGRST301", 401])
    def test_unauthorized_codes(self, code):
        assert isinstance(classify_remote_error(code, "nope"), RemoteUnauthorizedError)

    def test_invalid_api_key_message(self):
        error = classify_remote_error("400", "Invalid API key")

        assert isinstance(error, RemoteUnauthorizedError)
        assert error.status_code == "400"

    @pytest.mark.parametrize("code", ["500", "404", None])
    def test_everything_else_is_network(self, code):
        assert isinstance(classify_remote_error(code, "boom"), RemoteNetworkError)
