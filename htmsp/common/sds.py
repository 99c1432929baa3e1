#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

import math
from typing import Union

from htmsp.common.errors import ConfigError, check_unit_interval
from htmsp.common.grid import Grid, check_grid
from htmsp.common.math_utils import round_half_up

TSdsShortNotation = Union[
    # tuple[shape|size, active_size|sparsity]
    tuple[
        Union[tuple, int],
        Union[int, float]
    ],

    # tuple[sparsity, active_size]
    tuple[float, int]
]


class Sds:
    """
    Sparse Distributed Space (SDS) parameters.

    The shape of the space is a grid, so an SDS also describes the topology of
    the bits, e.g. of the input space or of the minicolumns.

    Short notation helps to correctly define SDS with the minimal number of params. In each case
    we want to specify only a sufficient subset of all params and just let the others be
    inducted.

    Here's all supported notations (note that they all have distinguishable types):
        a) (100, 0.02) — the total size and sparsity
        b) (100, 10) — the total size and active SDR size
        c) ((20, 20), 0.02) — shape and sparsity
        d) ((20, 20), 10) — shape and active SDR size
        e) (0.02, 10) — sparsity and active SDR size

    The same goes for the keyword-only __init__ arguments — you only need to specify
    the sufficient subset of them.
    """

    shape: Grid
    size: int
    sparsity: float
    active_size: int

    def __init__(
            self,
            # short notation is the only positional argument — default way to define SDS via config
            short_notation: TSdsShortNotation = None,
            *,
            shape: tuple[int, ...] = None,
            size: int = None,
            sparsity: float = None,
            active_size: int = None,
    ):
        if short_notation is not None:
            # ignore keyword-only params
            shape, size, sparsity, active_size = self.parse_short_notation(*short_notation)

        self.shape, self.size, self.sparsity, self.active_size = self.induce_all_components(
            shape=shape, size=size, sparsity=sparsity, active_size=active_size
        )

    def __eq__(self, other):
        if not isinstance(other, Sds):
            return NotImplemented
        return self.shape == other.shape and self.active_size == other.active_size

    def __hash__(self):
        return hash((self.shape, self.active_size))

    def __repr__(self):
        return str(self)

    def __str__(self):
        return f'({self.shape}, {self.size}, {self.active_size}, {self.sparsity:.4f})'

    @staticmethod
    def parse_short_notation(first, second):
        """Map the short notation pair to (shape, size, sparsity, active_size)."""
        if isinstance(first, float):
            if not isinstance(second, int):
                raise TypeError(f'(sparsity, active_size) expected; got active size {second!r}')
            return None, None, first, second

        if isinstance(first, (tuple, list)):
            shape, size = first, None
        elif isinstance(first, int):
            shape, size = None, first
        else:
            raise TypeError(f'SDS shape, size or sparsity expected; got {first!r}')

        if isinstance(second, float):
            return shape, size, second, None
        if isinstance(second, int):
            return shape, size, None, second
        raise TypeError(f'SDS sparsity or active size expected; got {second!r}')

    @staticmethod
    def induce_all_components(
            shape: tuple[int, ...] = None,
            size: int = None,
            sparsity: float = None,
            active_size: int = None
    ):
        """
        Resolve all SDS components from the given subset of them.

        As all components are interdependent, it is convenient to define SDS by specifying
        only a necessary subset of them and let the others be induced.
        """
        if sparsity is not None:
            check_unit_interval('SDS sparsity', sparsity)

        if shape is None and size is None:
            # defined: sparsity & active size
            #   resolve size and shape
            if not sparsity:
                raise ConfigError('SDS size cannot be induced from zero sparsity')
            size = round(active_size / sparsity)
            shape = (size, )
        else:
            # defined: shape | size + sparsity | active size
            #   1) resolve size; 2) resolve sparsity and active size

            if size is None:
                shape = check_grid(shape)
                size = math.prod(shape)
            else:
                shape = check_grid((size,))

            if active_size is None:
                active_size = round_half_up(size * sparsity)
            else:
                sparsity = active_size / size

        if not 0 <= active_size <= size:
            raise ConfigError(f'SDS active size {active_size} must be in [0, {size}]')
        return shape, size, sparsity, active_size

    @staticmethod
    def make(sds: Sds | TSdsShortNotation) -> Sds:
        if isinstance(sds, Sds):
            return sds

        if isinstance(sds, dict):
            # full key-value notation aka TConfig
            return Sds(**sds)

        # otherwise, a short notation is expected, which is a two-element sequence-like object
        return Sds(short_notation=sds)
