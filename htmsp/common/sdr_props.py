#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
"""
Properties of Sparse Distributed Representations.

These are statistics over SDR spaces defined by capacity and cardinality, no
concrete SDR is involved. They help to choose capacity, cardinality and
matching thresholds.

Based on:
    [1] Ahmad, S., & Hawkins, J. (2015). Properties of sparse distributed representations
        and their application to hierarchical temporal memory. arXiv:1503.07469.
"""
from __future__ import annotations

from htmsp.common.errors import DomainError
from htmsp.common.math_utils import combinations, round_half_up


def cardinality(capacity: int, sparsity: float) -> int:
    """The number of active bits induced by the capacity and the required sparsity."""
    return round_half_up(capacity * min(1., sparsity))


def sparsity(capacity: int, cardinality: int) -> float:
    """The fraction of active bits."""
    _check_capacity(capacity)
    return min(cardinality, capacity) / capacity


def count_patterns(capacity: int, cardinality: int) -> int:
    """The number of unique patterns of the given cardinality. Cf. [1] Eq. 1."""
    return combinations(capacity, cardinality)


def p_exact_match(capacity: int, cardinality: int) -> float:
    """The probability of an exact match between two random SDRs. Cf. [1] Eq. 2."""
    return 1 / count_patterns(capacity, cardinality)


def count_inexact_patterns(
        capacity: int, overlap: int, cardinality1: int, cardinality2: int = None
) -> int:
    """
    The number of patterns of `cardinality2` sharing exactly `overlap` active bits with
    a fixed pattern of `cardinality1`.

    Cardinalities may differ, which is useful for subsampling and unions.
    Generalization of [1] Eq. 3, 6 and 14.
    """
    if cardinality2 is None:
        cardinality2 = cardinality1
    return (
        combinations(cardinality1, overlap)
        * combinations(capacity - cardinality1, cardinality2 - overlap)
    )


def p_inexact_match(
        capacity: int, min_overlap: int, cardinality1: int, cardinality2: int = None
) -> float:
    """
    The probability that two random SDRs share at least `min_overlap` active bits.

    It is the false positive rate of inexact matching, which is the one useful
    in practice as it is robust to noise. Linear in min(cardinality1, cardinality2).
    Generalization of [1] Eq. 4, 7 and 15.
    """
    if cardinality2 is None:
        cardinality2 = cardinality1
    _check_cardinality(capacity, cardinality1)
    _check_cardinality(capacity, cardinality2)

    # overlaps below this bound are impossible: the second pattern doesn't fit
    # into the bits that are inactive in the first one
    min_possible_overlap = max(min_overlap, cardinality1 + cardinality2 - capacity, 0)
    max_overlap = min(cardinality1, cardinality2)

    n_matching = sum(
        count_inexact_patterns(capacity, overlap, cardinality1, cardinality2)
        for overlap in range(min_possible_overlap, max_overlap + 1)
    )
    return n_matching / count_patterns(capacity, cardinality2)


def p_approx_inexact_match(
        capacity: int, overlap: int, cardinality1: int, cardinality2: int = None
) -> float:
    """
    Efficient approximation of `p_inexact_match` with its single dominating term.

    It is precise when min cardinality > 7 and overlap > cardinality / 2.
    Cf. [1] Eq. 5.
    """
    if cardinality2 is None:
        cardinality2 = cardinality1
    return (
        count_inexact_patterns(capacity, overlap, cardinality1, cardinality2)
        / count_patterns(capacity, cardinality2)
    )


def p_inactive_union_bit(pattern_count: int, capacity: int, cardinality: int) -> float:
    """The probability that a bit is inactive in a union of patterns. Cf. [1] Eq. 12."""
    return (1. - sparsity(capacity, cardinality)) ** pattern_count


def p_active_union_bit(pattern_count: int, capacity: int, cardinality: int) -> float:
    """Opposite of `p_inactive_union_bit`."""
    return 1. - p_inactive_union_bit(pattern_count, capacity, cardinality)


def p_exact_union_match(pattern_count: int, capacity: int, cardinality: int) -> float:
    """
    The probability that a random pattern exactly matches a union of patterns,
    i.e. all its active bits are active in the union. Cf. [1] Eq. 13.
    """
    return p_active_union_bit(pattern_count, capacity, cardinality) ** cardinality


def expected_union_cardinality(pattern_count: int, capacity: int, cardinality: int) -> float:
    """The expected number of active bits in a union of patterns. Cf. [1] Sec. G and H."""
    return capacity * p_active_union_bit(pattern_count, capacity, cardinality)


def _check_capacity(capacity: int):
    if capacity <= 0:
        raise DomainError(f'Capacity must be positive; got {capacity}')


def _check_cardinality(capacity: int, cardinality: int):
    _check_capacity(capacity)
    if not 0 <= cardinality <= capacity:
        raise DomainError(f'Cardinality must be in [0, {capacity}]; got {cardinality}')
