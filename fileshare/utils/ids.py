"""
Utility functions for generating and checking URL-safe file identifiers.

Identifiers are base62 encodings of a uuid4, which keeps the full 128 bits
of entropy while staying safe as a storage key and as a URL path segment.
"""
import re
import string
import uuid


# Base62 character set: [0-9a-zA-Z]
BASE62_CHARS = string.digits + string.ascii_letters

# 62**22 > 2**128, so 22 characters hold any uuid4
FILE_ID_LENGTH = 22

_SAFE_ID_PATTERN = re.compile(r"[0-9A-Za-z_-]{1,64}")


def b62encode(num: int) -> str:
    """
    Encode a number to base62 string.

    Args:
        num: Integer to encode

    Returns:
        Base62 encoded string

    Examples:
        >>> b62encode(12345)
        '3aB'
    """
    if num == 0:
        return BASE62_CHARS[0]

    base = len(BASE62_CHARS)
    encoded = []

    while num > 0:
        num, remainder = divmod(num, base)
        encoded.append(BASE62_CHARS[remainder])

    return "".join(reversed(encoded))


def generate_file_id() -> str:
    """
    Generate a collision-resistant, URL-safe file identifier.

    Returns:
        22-character identifier using [0-9a-zA-Z] characters

    Examples:
        >>> len(generate_file_id())
        22
    """
    num = uuid.uuid4().int
    # Left-pad so every id has the same length
    return b62encode(num).rjust(FILE_ID_LENGTH, BASE62_CHARS[0])


def is_safe_file_id(file_id: str | None) -> bool:
    """Return True if ``file_id`` can be used as a storage key and path segment."""
    return bool(file_id) and _SAFE_ID_PATTERN.fullmatch(file_id) is not None
