"""Short code generation and format validation.

Codes are drawn from the 62-character alphanumeric alphabet. Generated and
caller-supplied codes pass through the same validator before any store
operation is attempted.

Functions:
    generate_short_code():  Random candidate of a given length (nanoid).
    fallback_code():  Wider candidate derived from a random 128-bit UUID.
    is_valid_code():  Format predicate for ``^[A-Za-z0-9]{3,20}$``.
    validate_code():  Same predicate, raising ValidationError.
    is_reserved_code():  Codes shadowed by fixed application routes.
"""

import re
import uuid

from nanoid import generate

from shortlinks.errors import ValidationError

__all__ = [
    "ALPHABET",
    "MAX_CODE_LENGTH",
    "MIN_CODE_LENGTH",
    "RESERVED_CODES",
    "fallback_code",
    "generate_short_code",
    "is_reserved_code",
    "is_valid_code",
    "validate_code",
]

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
MIN_CODE_LENGTH = 3
MAX_CODE_LENGTH = 20

# 62**22 > 2**128, so every UUID fits in 22 base62 digits.
_UUID_BASE62_WIDTH = 22

_CODE_PATTERN = re.compile(rf"^[A-Za-z0-9]{{{MIN_CODE_LENGTH},{MAX_CODE_LENGTH}}}$")

# Paths served by fixed routes; a mapping under one of these could never be reached.
RESERVED_CODES = frozenset({"api", "docs", "health", "metrics", "openapi", "redoc"})


def _base62_encode(number: int) -> str:
    """Encode a non-negative integer with :data:`ALPHABET`.

    Example:
        >>> _base62_encode(62)
        'BA'
    """
    if number < 0:
        raise ValueError("Number must be non-negative")

    if number == 0:
        return ALPHABET[0]

    base = len(ALPHABET)
    result = []

    while number > 0:
        number, remainder = divmod(number, base)
        result.append(ALPHABET[remainder])

    return "".join(result[::-1])


def generate_short_code(length: int = 6) -> str:
    if not isinstance(length, int) or length <= 0:
        raise ValueError(f"length must be a positive integer, got {length!r}")
    return generate(ALPHABET, length)


def fallback_code(length: int = 12) -> str:
    """Build a candidate from a random 128-bit identifier.

    The UUID is base62-encoded at a fixed width and the trailing ``length``
    characters are kept, so the result always passes :func:`is_valid_code`.
    """
    if not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        raise ValueError(
            f"length must be between {MIN_CODE_LENGTH} and {MAX_CODE_LENGTH}, got {length!r}"
        )
    encoded = _base62_encode(uuid.uuid4().int).rjust(_UUID_BASE62_WIDTH, ALPHABET[0])
    return encoded[-length:]


def is_valid_code(code: object) -> bool:
    return isinstance(code, str) and _CODE_PATTERN.fullmatch(code) is not None


def validate_code(code: object) -> str:
    if not is_valid_code(code):
        raise ValidationError(
            f"Short code must be {MIN_CODE_LENGTH}-{MAX_CODE_LENGTH} alphanumeric characters",
            code=code if isinstance(code, str) else None,
        )
    return code


def is_reserved_code(code: str) -> bool:
    return code in RESERVED_CODES
