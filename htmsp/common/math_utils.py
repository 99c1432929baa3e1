#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
"""
Math kernel: combinatorics, ranges and seeded sampling.

Every randomized function takes a `numpy.random.Generator` explicitly and draws
its [0, 1) uniform values with `rng.random()`, so a fixed seed reproduces
the whole computation exactly.
"""
from __future__ import annotations

import math
from typing import Iterable, TypeVar

import numpy as np
from numba import jit
from numpy import typing as npt
from numpy.random import Generator

from htmsp.common.errors import DomainError

T = TypeVar('T')


# ==================== combinatorics ====================
def factorial(n: int) -> int:
    """Compute n! exactly."""
    if n < 0:
        raise DomainError(f'Cannot compute factorial of {n}, it must be >= 0')
    return math.prod(range(1, n + 1))


def combinations(n: int, k: int) -> int:
    """
    Count the number of combinations n choose k.

    The numerator is the descending product n * (n-1) * ... * (n-k+1), so no
    full n! is ever computed.
    """
    if k > n:
        raise DomainError(f'Cannot compute n choose k because k ({k}) > n ({n})')
    if k < 0:
        raise DomainError(f'Cannot compute n choose k for negative k ({k})')

    numerator = math.prod(range(n, n - k, -1))
    return numerator // factorial(k)


# ==================== ranges ====================
def fit_to_range(x, low=0., high=1.):
    """Constrain x to [low, high] inclusive. Boundaries are 0 and 1 if not given."""
    return min(max(x, low), high)


def normalize(x, low, high) -> float:
    """
    Normalize x from [low, high] to [0, 1].
    Values out of range are treated as the extreme values.
    """
    if high == low:
        raise DomainError(f'Cannot normalize to an empty range [{low}, {high}]')
    return (fit_to_range(x, low, high) - low) / (high - low)


def wrap_to_range(x, low, high):
    """
    Like `fit_to_range`, but the range [low, high) is treated as cyclic.

    Examples
    --------
    >>> wrap_to_range(-3, 0, 10)
    7
    >>> wrap_to_range(12, 0, 10)
    2
    """
    if high == low:
        raise DomainError(f'Cannot wrap to an empty range [{low}, {high})')
    # NB: python modulo takes the sign of the divisor, which is exactly the sign correction we need
    return low + (x - low) % (high - low)


def mean(seq: Iterable) -> float:
    """Compute the mean of a sequence. The mean of an empty sequence is 0."""
    total, n = 0, 0
    for x in seq:
        total += x
        n += 1
    return total / n if n > 0 else 0


def round_half_up(x: float) -> int:
    """Round to the nearest int, halves go up (unlike python's banker's rounding)."""
    return int(math.floor(x + .5))


# ==================== seeded randomness ====================
def random_int(rng: Generator, low: int, high: int) -> int:
    """Uniformly draw an integer from [low, high) using a single [0, 1) uniform draw."""
    return low + int(rng.random() * (high - low))


def shuffle(rng: Generator, collection: Iterable[T]) -> list[T]:
    """
    Durstenfeld version of the Fisher-Yates shuffle.
    Returns a shuffled copy, the collection itself is left untouched.
    """
    result = list(collection)
    size = len(result)
    for i in range(size - 1):
        j = random_int(rng, i, size)
        result[i], result[j] = result[j], result[i]
    return result


def reservoir_sample(rng: Generator, n: int, k: int) -> npt.NDArray[np.int64]:
    """
    Sample k distinct integers from [0, n) with Algorithm R.

    Every one of C(n, k) subsets is equally likely. It takes O(n) time and
    exactly n - k uniform draws. NB: the result is not sorted.
    """
    if k > n:
        raise DomainError(f'Cannot sample {k} distinct values from {n}')
    if k < 0:
        raise DomainError(f'Cannot sample negative number of values: {k}')

    reservoir = np.arange(k, dtype=np.int64)
    if n == k:
        return reservoir

    # i-th candidate (i >= k) replaces the slot j ~ U[0, i] if j < k
    candidates_range = np.arange(k + 1, n + 1, dtype=np.float64)
    slots = (rng.random(n - k) * candidates_range).astype(np.int64)
    return _fill_reservoir(reservoir, slots, k)


@jit(cache=True)
def _fill_reservoir(reservoir, slots, k):
    for t in range(slots.shape[0]):
        j = slots[t]
        if j < k:
            reservoir[j] = k + t
    return reservoir
