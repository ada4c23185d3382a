"""Tests for path and property sanitization."""

import re

import pytest

from modules.privacy import ID_PLACEHOLDER, sanitize_page_path, sanitize_properties


class TestSanitizePagePath:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("/rides/98234", "/rides/:id"),
            ("/rides/98234/edit", "/rides/:id/edit"),
            ("/user/3f2a9c1e-8b4d-4e6f-a1b2-c3d4e5f6a7b8/edit", "/user/:id/edit"),
            ("/chat/5f1d7a3b9c2e4f6a", "/chat/:id"),
            ("/search", "/search"),
            ("/rides/abc-123", "/rides/:id"),
            ("/rides/98234-downtown/edit", "/rides/:id/edit"),
            ("/u/ride-3f2a9c1e-8b4d-4e6f-a1b2-c3d4e5f6a7b8", "/u/ride-:id"),
        ],
    )
    def test_replaces_identifiers(self, raw, expected):
        assert sanitize_page_path(raw) == expected

    def test_drops_query_and_fragment(self):
        """Query strings may carry emails or tokens."""
        assert sanitize_page_path("/search?email=a@b.com#top") == "/search"

    def test_empty_path(self):
        assert sanitize_page_path("") == "/"
        assert sanitize_page_path(None) == "/"

    def test_adds_leading_slash(self):
        assert sanitize_page_path("rides/12") == "/rides/:id"

    def test_collapses_repeated_slashes(self):
        assert sanitize_page_path("//rides//12") == "/rides/:id"

    def test_plain_words_survive(self):
        """Hex-looking words without digits are not identifiers."""
        assert sanitize_page_path("/feedback/deadbeefcafebabe") == "/feedback/deadbeefcafebabe"

    @pytest.mark.parametrize("raw", ["/rides/98234-downtown/edit", "/profile/jdoe42", "/book/r9x/seat/2"])
    def test_no_digits_survive(self, raw):
        assert not re.search(r"\d", sanitize_page_path(raw))

    def test_placeholder(self):
        assert ID_PLACEHOLDER == ":id"


class TestSanitizeProperties:
    def test_none(self):
        assert sanitize_properties(None) is None

    def test_drops_pii_keys(self):
        """PII-named keys are removed regardless of case."""
        cleaned = sanitize_properties({"Email": "a@b.com", "phone": "555", "context": "search"})
        assert cleaned == {"context": "search"}

    def test_sanitizes_path_values(self):
        cleaned = sanitize_properties({"intended_destination": "/rides/981?ref=mail"})
        assert cleaned == {"intended_destination": "/rides/:id"}

    def test_recurses_into_mappings(self):
        cleaned = sanitize_properties({"details": {"user_id": "u1", "step": 2}})
        assert cleaned == {"details": {"step": 2}}

    def test_keeps_other_values(self):
        properties = {"error_count": 3, "error_fields": ["origin"], "retry": True}
        assert sanitize_properties(properties) == properties
