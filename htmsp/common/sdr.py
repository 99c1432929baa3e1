#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
"""
Sparse Distributed Representations (SDRs).

An SDR is a fixed-capacity bit vector with a small fraction of active bits. This
module defines the bit vector contract `Sdr`, its reference immutable
implementation and the functions derived from the contract.
The theory lives in `htmsp.common.sdr_props`.
"""
from __future__ import annotations

from typing import Iterable, Mapping, Union

import numpy as np
from numpy import typing as npt

from htmsp.common import sdr_props
from htmsp.common.config import HtmDefaults
from htmsp.common.errors import BoundsError, ConfigError, DomainError
from htmsp.common.utils import isnone

# SDR representation optimized for set operations. It is segregated to
# clarify, when a function work with this exact representation.
SetSdr = set[int]

# General sparse form SDR. In most cases, ndarray or list is expected.
SparseSdr = Union[list[int], npt.NDArray[int], SetSdr]

# Dense SDR form. Could be a list too, but in general it's ndarray.
DenseSdr = npt.NDArray[Union[int, float]]


def sparse_to_dense(
        sdr: SparseSdr,
        size: int | tuple | DenseSdr = None,
        shape: int | tuple | DenseSdr = None,
        dtype=float,
        like: DenseSdr = None
) -> DenseSdr:
    """
    Converts SDR from sparse representation to dense.

    Size, shape and dtype define resulting dense vector params.
    The size should be at least inducible (from shape or like).
    The shape default is 1-D, dtype: float.

    Like param is a shorthand, when you have an array with all three params set correctly.
    Like param overwrites all others!
    """

    if like is not None:
        shape, size, dtype = like.shape, like.size, like.dtype
    else:
        if isinstance(size, np.ndarray):
            size = size.size
        if isinstance(shape, np.ndarray):
            shape = shape.shape

        # -1 for reshape means flatten.
        # It is also invalid size, which we need here for the unset shape case.
        shape = isnone(shape, -1)
        size = isnone(size, np.prod(shape))

    dense_vector = np.zeros(size, dtype=dtype)
    if isinstance(sdr, set):
        sdr = list(sdr)
    dense_vector[sdr] = 1
    return dense_vector.reshape(shape)


def dense_to_sparse(dense_vector: DenseSdr) -> SparseSdr:
    return np.flatnonzero(dense_vector)


# ========================= Bit vector contract ===============================
class Sdr:
    """
    Basic operations every SDR implementation provides.

    All the "setters" return a new SDR value of the same capacity, so an
    implementation is free to be immutable (see `ImmutableSdr`) or to share
    structure, e.g. a packed bitset.
    """

    @property
    def capacity(self) -> int:
        """How many bits is this SDR composed of."""
        raise NotImplementedError

    def active_bit(self, i: int) -> bool:
        """Is the i-th bit active in this SDR."""
        raise NotImplementedError

    def clear(self) -> Sdr:
        """Return the SDR of the same capacity with all bits turned off."""
        raise NotImplementedError

    def set_bit(self, i: int, active: bool = True) -> Sdr:
        raise NotImplementedError

    def set_bit_range(self, i: int, j: int, active: bool = True) -> Sdr:
        """Set bits from i to j, both inclusive."""
        raise NotImplementedError

    def set_bits(self, bits: Mapping[int, bool]) -> Sdr:
        """Set the required bits following a map of index -> active."""
        raise NotImplementedError

    def serialize(self) -> npt.NDArray[np.bool_]:
        """Flat boolean sequence where the i-th item is the i-th bit."""
        raise NotImplementedError


class ImmutableSdr(Sdr):
    """The reference SDR implementation backed by a read-only dense bool array."""

    _bits: npt.NDArray[np.bool_]
    _sparse: npt.NDArray[np.int64] | None

    def __init__(self, bits: Iterable[bool] | npt.NDArray):
        if not isinstance(bits, np.ndarray):
            bits = list(bits)
        bits = np.array(bits, dtype=bool).ravel()
        if bits.size == 0:
            raise ConfigError('SDR capacity must be positive')

        bits.flags.writeable = False
        self._bits = bits
        self._sparse = None

    @staticmethod
    def empty(capacity: int = None, defaults: HtmDefaults = None) -> ImmutableSdr:
        """Create an SDR with all bits inactive. The capacity falls back to the defaults."""
        capacity = isnone(capacity, isnone(defaults, HtmDefaults()).sdr_capacity)
        if capacity <= 0:
            raise ConfigError(f'SDR capacity must be positive; got {capacity}')
        return ImmutableSdr(np.zeros(capacity, dtype=bool))

    @staticmethod
    def from_sparse(sdr: SparseSdr, capacity: int) -> ImmutableSdr:
        """Create an SDR with the given active bits."""
        sdr = np.asarray(list(sdr) if isinstance(sdr, set) else sdr, dtype=np.int64)
        if sdr.size > 0 and (sdr.min() < 0 or sdr.max() >= capacity):
            raise BoundsError(f'Active bits must be in [0, {capacity})')
        return ImmutableSdr(sparse_to_dense(sdr, size=capacity, dtype=bool))

    @property
    def capacity(self) -> int:
        return self._bits.size

    @property
    def sparse(self) -> npt.NDArray[np.int64]:
        """Ascending indices of the active bits."""
        if self._sparse is None:
            self._sparse = dense_to_sparse(self._bits)
            self._sparse.flags.writeable = False
        return self._sparse

    def active_bit(self, i: int) -> bool:
        self._check_bounds(i)
        return bool(self._bits[i])

    def clear(self) -> ImmutableSdr:
        return ImmutableSdr.empty(self.capacity)

    def set_bit(self, i: int, active: bool = True) -> ImmutableSdr:
        self._check_bounds(i)
        bits = self._bits.copy()
        bits[i] = active
        return ImmutableSdr(bits)

    def set_bit_range(self, i: int, j: int, active: bool = True) -> ImmutableSdr:
        self._check_bounds(i)
        self._check_bounds(j)
        if i > j:
            raise BoundsError(f'Bit range [{i}, {j}] is empty')
        bits = self._bits.copy()
        bits[i:j + 1] = active
        return ImmutableSdr(bits)

    def set_bits(self, bits: Mapping[int, bool]) -> ImmutableSdr:
        new_bits = self._bits.copy()
        for i, active in bits.items():
            self._check_bounds(i)
            new_bits[i] = active
        return ImmutableSdr(new_bits)

    def serialize(self) -> npt.NDArray[np.bool_]:
        return self._bits.copy()

    def _check_bounds(self, i: int):
        if not 0 <= i < self.capacity:
            raise BoundsError(f'Bit {i} is out of the SDR capacity {self.capacity}')

    def __len__(self):
        return self.capacity

    def __iter__(self):
        return iter(self._bits.tolist())

    def __eq__(self, other):
        if self is other:
            return True
        if not isinstance(other, ImmutableSdr):
            return NotImplemented
        return np.array_equal(self._bits, other._bits)

    def __hash__(self):
        return hash((self.capacity, self._bits.tobytes()))

    def __repr__(self):
        return f'ImmutableSdr({self.capacity}, {self.sparse.tolist()})'


def deserialize(bits: Iterable[bool | int]) -> ImmutableSdr:
    """Restore an SDR from a flat sequence of booleans or 0/1 values."""
    bits = np.asarray(list(bits) if not isinstance(bits, np.ndarray) else bits)
    if bits.dtype != bool and not np.isin(bits, (0, 1)).all():
        raise DomainError('Serialized SDR must consist of booleans or 0/1 values only')
    return ImmutableSdr(bits.astype(bool))


# ========================= Functions derived from the contract ===============================
def active_bits(sdr: Sdr) -> npt.NDArray[np.int64]:
    """Ascending indices of the active bits of the SDR."""
    if isinstance(sdr, ImmutableSdr):
        return sdr.sparse
    return dense_to_sparse(sdr.serialize())


def cardinality(sdr: Sdr) -> int:
    """The number of active bits."""
    return len(active_bits(sdr))


def sparsity(sdr: Sdr) -> float:
    """The fraction of active bits."""
    return sdr_props.sparsity(sdr.capacity, cardinality(sdr))


def union(*sdrs: Sdr) -> ImmutableSdr:
    """Bitwise OR of all the given SDRs, which must be of the same capacity."""
    if len(sdrs) == 0:
        raise DomainError('Union requires at least one SDR')

    capacity = sdrs[0].capacity
    if any(sdr.capacity != capacity for sdr in sdrs):
        raise DomainError(
            f'Union requires SDRs of the same capacity; got {[sdr.capacity for sdr in sdrs]}'
        )

    bits = np.zeros(capacity, dtype=bool)
    for sdr in sdrs:
        bits |= sdr.serialize()
    return ImmutableSdr(bits)


def overlap(sdr1: Sdr, sdr2: Sdr) -> npt.NDArray[np.int64]:
    """Ascending indices of the bits active in both SDRs."""
    capacity = min(sdr1.capacity, sdr2.capacity)
    bits = sdr1.serialize()[:capacity] & sdr2.serialize()[:capacity]
    return dense_to_sparse(bits)


def overlap_score(sdr1: Sdr, sdr2: Sdr) -> int:
    """The number of bits active in both SDRs."""
    return len(overlap(sdr1, sdr2))


def match_inexactly(sdr1: Sdr, sdr2: Sdr, min_overlap: int) -> bool:
    """Do the two SDRs have at least `min_overlap` active bits in common."""
    return overlap_score(sdr1, sdr2) >= min_overlap


def match_exactly(sdr1: Sdr, sdr2: Sdr) -> bool:
    """
    Are all active bits of the first SDR active in the second one.

    NB: an empty first SDR requires zero overlap, so it matches any SDR.
    """
    return match_inexactly(sdr1, sdr2, cardinality(sdr1))
