"""Tests for version parsing and resolution."""

from unittest.mock import MagicMock

import pytest

from release_engine.core.version_resolver import VersionResolver, parse_version
from release_engine.exceptions import InvalidVersionError, UsageError, VersionTooNewError


class TestParseVersion:
    """Test parse_version."""

    @pytest.mark.parametrize("value", [None, "", "HEAD", "head", "latest"])
    def test_latest_sentinels(self, value):
        assert parse_version(value) is None

    @pytest.mark.parametrize("value,expected", [("480", 480), (" 12 ", 12), (7, 7)])
    def test_numbers(self, value, expected):
        assert parse_version(value) == expected

    @pytest.mark.parametrize("value", ["abc", "-5", "1.2", "0", 0, -3, True])
    def test_invalid(self, value):
        with pytest.raises(InvalidVersionError):
            parse_version(value)

    def test_invalid_version_is_usage_error(self):
        with pytest.raises(UsageError):
            parse_version("x1")


class TestVersionResolver:
    """Test VersionResolver against a HEAD revision."""

    def _resolver(self, head=500):
        source_control = MagicMock()
        source_control.head_revision.return_value = head
        return VersionResolver(source_control), source_control

    def test_latest_resolves_to_head(self):
        resolver, _ = self._resolver(500)
        assert resolver.resolve(None) == 500
        assert resolver.resolve("HEAD") == 500

    def test_version_at_or_below_head_unchanged(self):
        resolver, _ = self._resolver(500)
        assert resolver.resolve(500) == 500
        assert resolver.resolve("1") == 1

    def test_version_above_head_rejected(self):
        resolver, _ = self._resolver(500)
        with pytest.raises(VersionTooNewError) as exc_info:
            resolver.resolve(501)
        assert exc_info.value.head == 500

    def test_malformed_version_rejected_before_head_lookup(self):
        resolver, source_control = self._resolver()
        with pytest.raises(InvalidVersionError):
            resolver.resolve("-1")
        source_control.head_revision.assert_not_called()
