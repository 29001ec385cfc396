"""Tests for name sanitization, join code format, settings parsing, and sequence matching."""

import pytest

from game.logic.enums import GameErrorCode, GameMode
from game.logic.exceptions import GameValidationError
from game.logic.validation import (
    is_valid_join_code,
    require_player_name,
    sanitize_player_name,
    sequences_match,
    validate_settings,
)
from game.tests.helpers.builders import make_settings, settings_payload


class TestSanitizePlayerName:
    def test_trims_whitespace(self):
        assert sanitize_player_name("  Alice  ") == "Alice"

    def test_truncates_to_twenty_characters(self):
        assert sanitize_player_name("x" * 30) == "x" * 20

    def test_strips_angle_brackets(self):
        assert sanitize_player_name("<b>Bob</b>") == "bBob/b"

    def test_truncates_before_stripping(self):
        """Brackets removed after truncation can leave fewer than 20 characters."""
        name = "<" * 5 + "a" * 20
        assert sanitize_player_name(name) == "a" * 15

    def test_may_return_empty(self):
        assert sanitize_player_name("<>") == ""


class TestRequirePlayerName:
    def test_returns_sanitized_name(self):
        assert require_player_name(" <Carol> ") == "Carol"

    @pytest.mark.parametrize("name", ["", "   ", "<>", " <<>> "])
    def test_empty_after_sanitizing_rejected(self, name):
        with pytest.raises(GameValidationError) as exc_info:
            require_player_name(name)
        assert exc_info.value.code == GameErrorCode.INVALID_NAME


class TestJoinCodeFormat:
    @pytest.mark.parametrize("code", ["ABC234", "abc234", "ZZZZZZ", "234567"])
    def test_valid_codes(self, code):
        assert is_valid_join_code(code)

    @pytest.mark.parametrize("code", ["", "ABC23", "ABC2345", "ABC10O", "ABCI23", "ABC 23", "ABC-23"])
    def test_invalid_codes(self, code):
        assert not is_valid_join_code(code)


class TestValidateSettings:
    def test_accepts_raw_payload(self):
        settings = validate_settings(settings_payload(difficulty=5))
        assert settings.difficulty == 5
        assert len(settings.selected_colors) == 5

    def test_passes_parsed_settings_through(self):
        settings = make_settings()
        assert validate_settings(settings) is settings

    def test_wraps_validation_failure(self):
        with pytest.raises(GameValidationError, match="Invalid game settings") as exc_info:
            validate_settings({"difficulty": 3, "selectedColors": []})
        assert exc_info.value.code == GameErrorCode.INVALID_SETTINGS

    def test_rejects_non_dict(self):
        with pytest.raises(GameValidationError):
            validate_settings("fast please")

    @pytest.mark.parametrize("field", ["speed", "mode"])
    def test_missing_speed_or_mode_rejected(self, field):
        payload = {k: v for k, v in settings_payload().items() if k != field}
        with pytest.raises(GameValidationError, match=f"{field}: Field required") as exc_info:
            validate_settings(payload)
        assert exc_info.value.code == GameErrorCode.INVALID_SETTINGS

    def test_best_of_x_requires_rounds(self):
        with pytest.raises(GameValidationError, match="rounds"):
            validate_settings(settings_payload(mode=GameMode.BEST_OF_X))


class TestSequencesMatch:
    def test_identical_sequences_match(self):
        assert sequences_match(["red", "blue"], ["red", "blue"])

    def test_order_matters(self):
        assert not sequences_match(["blue", "red"], ["red", "blue"])

    def test_length_must_match(self):
        assert not sequences_match(["red"], ["red", "red"])
        assert not sequences_match(["red", "red", "red"], ["red", "red"])

    def test_empty_matches_empty(self):
        assert sequences_match([], [])
