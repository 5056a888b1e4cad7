"""
Identifier suggestions for new states and symbols.

Suffixes are drawn from the digits followed by the lower-case letters, so a
prefix offers at most 36 distinct suggestions.
"""

import string
from typing import Container, Optional

SUFFIX_ALPHABET = string.digits + string.ascii_lowercase


def successor(char: str) -> Optional[str]:
    """Next suffix character, or None past 'z' or outside the alphabet."""
    index = SUFFIX_ALPHABET.find(char) if len(char) == 1 else -1
    if index < 0 or index + 1 >= len(SUFFIX_ALPHABET):
        return None
    return SUFFIX_ALPHABET[index + 1]


def next_identifier(existing: Container[str], prefix: str = "", start: str = "0") -> Optional[str]:
    """
    Return the first `prefix + suffix` not in `existing`, trying suffixes from
    `start` upwards. None means every remaining suffix is taken and the user
    has to choose a key manually.
    """
    suffix: Optional[str] = start
    while suffix is not None:
        candidate = prefix + suffix
        if candidate not in existing:
            return candidate
        suffix = successor(suffix)
    return None
