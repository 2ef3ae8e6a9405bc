"""Domain value objects."""

from rankify.domain.value_objects.friend_code import (
    FRIEND_CODE_ALPHABET,
    FRIEND_CODE_LENGTH,
    FriendCode,
    normalize_friend_code,
)

__all__ = [
    "FRIEND_CODE_ALPHABET",
    "FRIEND_CODE_LENGTH",
    "FriendCode",
    "normalize_friend_code",
]
