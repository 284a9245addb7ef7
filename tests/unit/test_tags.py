"""Unit tests for tag parsing and normalization."""

import pytest

from vaultgraph.errors import MalformedTagFieldError
from vaultgraph.graph.tags import (
    collect_tags,
    normalize_tag,
    parse_ai_tags,
    parse_ai_tags_strict,
)


class TestNormalizeTag:
    """Tests for normalize_tag."""

    def test_adds_marker(self) -> None:
        assert normalize_tag("docker") == "#docker"

    def test_keeps_existing_marker(self) -> None:
        assert normalize_tag("#docker") == "#docker"

    def test_strips_whitespace(self) -> None:
        assert normalize_tag("  k8s \n") == "#k8s"

    @pytest.mark.parametrize("value", ["", "   ", "#", None])
    def test_empty_is_none(self, value) -> None:
        """Test empty tags are dropped."""
        assert normalize_tag(value) is None


class TestParseAiTags:
    """Tests for the permissive AI-tags parser."""

    def test_native_list(self) -> None:
        assert parse_ai_tags(["docker", "devops"]) == ["docker", "devops"]

    def test_json_string(self) -> None:
        assert parse_ai_tags('["docker", "devops"]') == ["docker", "devops"]

    def test_absent(self) -> None:
        assert parse_ai_tags(None) == []

    def test_malformed_string_does_not_raise(self) -> None:
        """Test the unterminated string falls back to quoted extraction."""
        result = parse_ai_tags("not json [unterminated")
        assert isinstance(result, list)
        assert result == []

    def test_quoted_fallback(self) -> None:
        """Test quoted substrings are extracted from broken JSON."""
        assert parse_ai_tags("['docker', \"k8s\"") == ["docker", "k8s"]

    def test_json_non_list_falls_back(self) -> None:
        """Test a JSON object string falls back to quoted extraction."""
        assert parse_ai_tags('{"a": 1}') == ["a"]

    def test_unsupported_type(self) -> None:
        assert parse_ai_tags(42) == []
        assert parse_ai_tags({"tags": ["x"]}) == []


class TestParseAiTagsStrict:
    """Tests for the strict parser."""

    def test_valid(self) -> None:
        assert parse_ai_tags_strict('["a", "b"]') == ["a", "b"]

    def test_malformed_raises(self) -> None:
        with pytest.raises(MalformedTagFieldError):
            parse_ai_tags_strict("not json [unterminated")

    def test_non_list_raises(self) -> None:
        with pytest.raises(MalformedTagFieldError):
            parse_ai_tags_strict('"just a string"')


class TestCollectTags:
    """Tests for merging structured and AI tags."""

    def test_merge_and_dedupe(self) -> None:
        tags = collect_tags(["#docker", "devops"], ["devops", "containers", ""])
        assert tags == ["#docker", "#devops", "#containers"]
