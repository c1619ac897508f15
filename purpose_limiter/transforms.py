"""
purpose_limiter.transforms — Minimization functions, one family per disposition.

    Disposition   Integer                         String
    -----------   -----------------------------   ----------------------------
    suppressed    -1                              ""
    generalized   x // 10 * 10 + 1   (135 -> 131) first character
    noised        x - U(0,x) + U(0,x)             "" (no string noising yet)
    reduced       x // 10            (135 -> 13)  first 3 characters

All functions are pure apart from noise_int, which draws from the injected
random source. None of them raise on out-of-range input:
  - noise_int returns x unchanged for x <= 0 (the draw needs a positive bound)
  - reduce_string returns strings shorter than 3 characters unchanged
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any

from purpose_limiter.models import FieldDisposition, FieldKind

SUPPRESSED_INT = -1
SUPPRESSED_STRING = ""
REDUCED_STRING_LENGTH = 3

# ---------------------------------------------------------------------------
# Suppression
# ---------------------------------------------------------------------------


def suppress_int(number: int) -> int:
    return SUPPRESSED_INT


def suppress_string(text: str) -> str:
    return SUPPRESSED_STRING


# ---------------------------------------------------------------------------
# Noising
# ---------------------------------------------------------------------------


def noise_int(number: int, rng: random.Random) -> int:
    """Perturb a positive integer by two independent draws from [0, number).

    The result stays within [1, 2 * number - 1]. Non-positive input is
    returned unchanged.
    """
    if number <= 0:
        return number
    return number - rng.randrange(number) + rng.randrange(number)


def noise_string(text: str) -> str:
    # TODO: replace with a real string perturbation once one is agreed for free text.
    return ""


# ---------------------------------------------------------------------------
# Generalization
# ---------------------------------------------------------------------------


def generalize_int(number: int) -> int:
    """Lower end of the value's band of ten, plus one: 135 -> 131, 130 -> 131."""
    return number // 10 * 10 + 1


def generalize_string(text: str) -> str:
    return text[:1]


# ---------------------------------------------------------------------------
# Reduction
# ---------------------------------------------------------------------------


def reduce_int(number: int) -> int:
    return number // 10


def reduce_string(text: str) -> str:
    if len(text) < REDUCED_STRING_LENGTH:
        return text
    return text[:REDUCED_STRING_LENGTH]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

_INT_TRANSFORMS: dict[FieldDisposition, Callable[..., int]] = {
    FieldDisposition.SUPPRESSED: suppress_int,
    FieldDisposition.GENERALIZED: generalize_int,
    FieldDisposition.REDUCED: reduce_int,
}

_STRING_TRANSFORMS: dict[FieldDisposition, Callable[[str], str]] = {
    FieldDisposition.SUPPRESSED: suppress_string,
    FieldDisposition.GENERALIZED: generalize_string,
    FieldDisposition.NOISED: noise_string,
    FieldDisposition.REDUCED: reduce_string,
}


def transform(
    disposition: FieldDisposition, kind: FieldKind, value: Any, rng: random.Random
) -> Any:
    """Return the minimized value for one field.

    ALLOWED values and fields of FieldKind.OTHER are returned as-is.
    """
    if disposition is FieldDisposition.ALLOWED:
        return value
    if kind is FieldKind.INTEGER:
        if disposition is FieldDisposition.NOISED:
            return noise_int(value, rng)
        return _INT_TRANSFORMS[disposition](value)
    if kind is FieldKind.STRING:
        return _STRING_TRANSFORMS[disposition](value)
    return value
