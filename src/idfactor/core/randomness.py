"""Secure shuffle and surrogate id generation.

Both draw exclusively from the operating system CSPRNG through ``secrets``.
A predictable permutation would let an observer recover input order from a
fragment store, and predictable ids would link stores to each other, so a
source failure is raised as RandomSourceError and never answered with a
weaker generator.
"""

from __future__ import annotations

import secrets
import uuid

from idfactor.contracts.errors import InvalidShuffleSizeError, RandomSourceError


def shuffle(n: int) -> list[int]:
    """Return an unpredictable permutation of the integers [0, n).

    Fisher-Yates over an identity list: for each i, draw j uniformly from
    [0, i] and swap positions i and j. Every one of the n! permutations is
    equally likely.

    Args:
        n: Number of indices, must be >= 1

    Raises:
        InvalidShuffleSizeError: If n < 1
        RandomSourceError: If the secure source fails
    """
    if n < 1:
        raise InvalidShuffleSizeError(n)
    order = list(range(n))
    try:
        for i in range(n):
            j = secrets.randbelow(i + 1)
            order[i], order[j] = order[j], order[i]
    except OSError as e:
        raise RandomSourceError(f"secure random source failed during shuffle: {e}") from e
    return order


def new_surrogate_id() -> str:
    """Return a new random (version 4) UUID in canonical hyphenated form.

    uuid.UUID forces the version nibble and the RFC 4122 variant bits; the
    remaining 122 bits come from the secure source. No uniqueness check is
    made against earlier ids.

    Raises:
        RandomSourceError: If the secure source fails
    """
    try:
        raw = secrets.token_bytes(16)
    except OSError as e:
        raise RandomSourceError(f"secure random source failed generating surrogate id: {e}") from e
    return str(uuid.UUID(bytes=raw, version=4))
