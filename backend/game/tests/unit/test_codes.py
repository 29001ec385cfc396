"""Tests for join code and identifier generation."""

from game.logic.codes import (
    JOIN_CODE_ALPHABET,
    JOIN_CODE_LENGTH,
    generate_game_id,
    generate_join_code,
    generate_player_id,
)
from game.logic.validation import is_valid_join_code


class TestJoinCode:
    def test_length_and_alphabet(self):
        for _ in range(50):
            code = generate_join_code()
            assert len(code) == JOIN_CODE_LENGTH
            assert all(ch in JOIN_CODE_ALPHABET for ch in code)

    def test_alphabet_excludes_ambiguous_characters(self):
        for ch in "01IO":
            assert ch not in JOIN_CODE_ALPHABET

    def test_generated_codes_validate(self):
        assert is_valid_join_code(generate_join_code())


class TestIdentifiers:
    def test_game_id_prefix(self):
        assert generate_game_id().startswith("game_")

    def test_ids_are_unique(self):
        assert len({generate_player_id() for _ in range(100)}) == 100

    def test_player_id_is_url_safe(self):
        player_id = generate_player_id()
        assert all(ch.isalnum() or ch in "-_" for ch in player_id)
