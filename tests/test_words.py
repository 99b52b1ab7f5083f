"""Tests for word counting."""

import pytest

from finire.core.words import SEAL_THRESHOLD, count_words


class TestCountWords:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", 0),
            ("   ", 0),
            ("a b  c", 3),
            ("one", 1),
            ("\n\tleading and trailing\n", 3),
            ("tabs\tand\nnewlines  mixed", 4),
        ],
    )
    def test_counts(self, text, expected):
        assert count_words(text) == expected

    def test_punctuation_sticks_to_words(self):
        assert count_words("Hello, world! It's me.") == 4

    def test_threshold(self):
        assert SEAL_THRESHOLD == 300
