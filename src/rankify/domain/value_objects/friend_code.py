"""Friend code value object.

Hey future me - friend codes are the user-facing lookup token for sending a
friend request. 8 characters, uppercase A-Z and 0-9. Input is case-insensitive:
ALWAYS go through normalize_friend_code() before comparing or querying.
"""

import re
import secrets
import string
from dataclasses import dataclass

from rankify.domain.exceptions import ValidationException

FRIEND_CODE_LENGTH = 8
FRIEND_CODE_ALPHABET = string.ascii_uppercase + string.digits
_FRIEND_CODE_RE = re.compile(rf"^[A-Z0-9]{{{FRIEND_CODE_LENGTH}}}$")


def normalize_friend_code(raw: object) -> str:
    """Trim and uppercase user input.

    Only blank/non-string input is rejected here. A well-formed but unknown
    code and a malformed code are both simply "no profile matches" for the
    caller, so format is not validated.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationException("Friend code is required")
    return raw.strip().upper()


@dataclass(frozen=True)
class FriendCode:
    """Valid, normalized 8-character friend code."""

    value: str

    def __post_init__(self) -> None:
        if not self.is_valid(self.value):
            raise ValidationException(f"Invalid friend code: {self.value!r}")

    def __str__(self) -> str:
        return self.value

    @staticmethod
    def is_valid(value: str) -> bool:
        return bool(_FRIEND_CODE_RE.match(value))

    @classmethod
    def generate(cls) -> "FriendCode":
        """Generate a random friend code (uniqueness is checked by the caller)."""
        return cls(
            "".join(secrets.choice(FRIEND_CODE_ALPHABET) for _ in range(FRIEND_CODE_LENGTH))
        )
