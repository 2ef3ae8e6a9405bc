"""Tests for friend code normalization and generation."""

import pytest

from rankify.domain.exceptions import ValidationException
from rankify.domain.value_objects import (
    FRIEND_CODE_ALPHABET,
    FRIEND_CODE_LENGTH,
    FriendCode,
    normalize_friend_code,
)


class TestNormalizeFriendCode:
    def test_trims_and_uppercases(self) -> None:
        assert normalize_friend_code("  ab12cd34 ") == "AB12CD34"

    @pytest.mark.parametrize("raw", ["", "   ", None, 12345678])
    def test_blank_or_non_string_is_rejected(self, raw: object) -> None:
        with pytest.raises(ValidationException) as exc_info:
            normalize_friend_code(raw)
        assert exc_info.value.message == "Friend code is required"

    def test_malformed_code_passes_through(self) -> None:
        """Format is not checked here - an unknown code just matches no profile."""
        assert normalize_friend_code("abc") == "ABC"


class TestFriendCode:
    def test_generate_produces_valid_codes(self) -> None:
        for _ in range(50):
            code = FriendCode.generate()
            assert len(code.value) == FRIEND_CODE_LENGTH
            assert all(ch in FRIEND_CODE_ALPHABET for ch in code.value)

    def test_generated_codes_differ(self) -> None:
        codes = {FriendCode.generate().value for _ in range(20)}
        assert len(codes) > 1

    @pytest.mark.parametrize("value", ["abcd1234", "ABC", "ABCD12345", "ABCD-123"])
    def test_invalid_values_are_rejected(self, value: str) -> None:
        assert not FriendCode.is_valid(value)
        with pytest.raises(ValidationException):
            FriendCode(value)

    def test_str_is_the_value(self) -> None:
        assert str(FriendCode("ABCD1234")) == "ABCD1234"
