# ─────────────────────────────────────────────────────────────────────────────
# Tests — Input Validator
# ─────────────────────────────────────────────────────────────────────────────

import pytest

from satire_press.pipeline.input_validator import ALLOWED_ARTICLE_TYPES, validate_request


def _payload(idea: object = "x" * 150, article_type: object = "breaking-news") -> dict:
    return {"idea": idea, "articleType": article_type}


class TestValidateRequest:
    @pytest.mark.parametrize("article_type", sorted(ALLOWED_ARTICLE_TYPES))
    def test_every_known_type_is_accepted(self, article_type):
        result = validate_request(_payload(article_type=article_type))
        assert result.valid
        assert result.errors == []

    @pytest.mark.parametrize("length", [100, 101, 4999, 5000])
    def test_lengths_within_bounds(self, length):
        assert validate_request(_payload(idea="a" * length)).valid

    @pytest.mark.parametrize("length", [1, 50, 99, 5001, 9000])
    def test_lengths_outside_bounds(self, length):
        result = validate_request(_payload(idea="a" * length))
        assert not result.valid
        assert result.errors == ["Idea must be between 100 and 5000 characters"]

    @pytest.mark.parametrize("article_type", ["opinion", "BREAKING-NEWS", "breaking news", "sports"])
    def test_unknown_article_type(self, article_type):
        result = validate_request(_payload(article_type=article_type))
        assert result.errors == ["Invalid article type"]

    def test_missing_fields_each_report(self):
        result = validate_request({})
        assert result.errors == [
            "Idea is required and must be a string",
            "Article type is required and must be a string",
        ]

    @pytest.mark.parametrize("idea", [123, ["a" * 200], None, ""])
    def test_non_string_idea(self, idea):
        result = validate_request(_payload(idea=idea))
        assert result.errors == ["Idea is required and must be a string"]

    def test_length_and_type_errors_fire_together(self):
        result = validate_request(_payload(idea="too short", article_type="opinion"))
        assert result.errors == [
            "Idea must be between 100 and 5000 characters",
            "Invalid article type",
        ]

    @pytest.mark.parametrize("payload", [None, [], "idea", 42])
    def test_non_object_payload(self, payload):
        result = validate_request(payload)
        assert result.errors == ["Request body must be a JSON object"]

    def test_custom_bounds(self):
        assert validate_request(_payload(idea="a" * 20), min_length=10, max_length=30).valid
