"""Random string helpers."""

from __future__ import annotations

import random
import string


def lower_case_letter_string(length: int) -> str:
    """Return a string of ``length`` random lowercase ASCII letters."""
    if length < 0:
        raise ValueError(f"length must not be negative: {length}")
    return "".join(random.choice(string.ascii_lowercase) for _ in range(length))