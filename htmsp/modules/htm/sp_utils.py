#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
"""
Spatial pooling as a set of functions over explicitly passed state.

The state of a minicolumn population consists of:
    - pools: int array (n_minicols, n_potential), the input bits every minicolumn
        may connect to, sampled once without replacement
    - permanence table: float array of the same shape, a permanence in [0, 1] for
        every pool member; a connection is established iff permanence >= threshold
    - input-pool mapping: the inverse view of pools, for every input bit the list of
        (minicolumn, pool offset) referencing it
    - duty cycles: float array (n_minicols,), moving average of minicolumns activity

Based on:
    Cui, Y., Ahmad, S., & Hawkins, J. (2017). The HTM spatial pooler — a neocortical
        algorithm for online sparse distributed coding. Frontiers in computational neuroscience.
    Mnatzaganian, J., Fokoué, E., & Kudithipudi, D. (2017). A mathematical formalization of
        hierarchical temporal memory's spatial pooler. Frontiers in Robotics and AI.
"""
from __future__ import annotations

import math
from typing import NamedTuple, Sequence

import numpy as np
from numba import jit
from numpy import typing as npt
from numpy.random import Generator

from htmsp.common.errors import BoundsError, ConfigError, check_unit_interval
from htmsp.common.grid import (
    Grid, dim_ranges, dim_span, grid_capacity, hypercube, hypercube_indices,
    hypercube_to_grid, index_to_coords, relative_coords, sample_grid, sample_hypercube
)
from htmsp.common.math_utils import mean, round_half_up, shuffle
from htmsp.common.sdr import SparseSdr, sparse_to_dense


class InputPoolMapping(NamedTuple):
    """
    For every input bit, the (minicolumn, pool offset) pairs of the pools it belongs to.
    Stored in the compressed sparse rows format: the pairs of the input `i` are
    `minicols[indptr[i]:indptr[i+1]]` and `offsets[indptr[i]:indptr[i+1]]`.
    """
    indptr: npt.NDArray[np.int64]
    minicols: npt.NDArray[np.int64]
    offsets: npt.NDArray[np.int64]

    @property
    def n_inputs(self) -> int:
        return self.indptr.shape[0] - 1

    def pool_refs(self, input_bit: int) -> list[tuple[int, int]]:
        lo, hi = self.indptr[input_bit], self.indptr[input_bit + 1]
        return list(zip(self.minicols[lo:hi].tolist(), self.offsets[lo:hi].tolist()))


# ==================== potential pools ====================
def global_pool(input_grid: Grid, n_potential: int, rng: Generator) -> npt.NDArray[np.int64]:
    """Create a pool by sampling inputs from the whole input space."""
    return np.sort(sample_grid(input_grid, n_potential, rng))


def local_pool(
        input_grid: Grid, potential_radius: int, n_potential: int,
        minicol_grid: Grid, minicol: int, rng: Generator
) -> npt.NDArray[np.int64]:
    """
    Create a pool for the minicolumn by sampling inputs from the hypercube around
    its natural center, the proportionally same location in the input space.
    The hypercube wraps around the input space borders.
    """
    center = relative_coords(input_grid, minicol_grid, index_to_coords(minicol_grid, minicol))
    hc = hypercube(input_grid, potential_radius, center)
    return np.sort(sample_hypercube(input_grid, hc, n_potential, rng))


def potential_pools(
        input_grid: Grid, minicol_grid: Grid, n_potential: int, rng: Generator,
        potential_radius: int = None
) -> npt.NDArray[np.int64]:
    """
    Create pools for all minicolumns, locally if the radius is given, otherwise globally.
    Returns int array (n_minicols, n_potential).
    """
    n_minicols = grid_capacity(minicol_grid)
    if potential_radius is None:
        max_potential = grid_capacity(input_grid)
    else:
        if len(input_grid) != len(minicol_grid):
            raise ConfigError(
                f'Local pools need the input grid {tuple(input_grid)} and the minicolumn grid'
                f' {tuple(minicol_grid)} of the same dimensionality'
            )
        # NB: wrapping hypercubes of the same radius have the same capacity
        center = tuple(0 for _ in input_grid)
        max_potential = grid_capacity(hypercube_to_grid(
            hypercube(input_grid, potential_radius, center)
        ))

    if not 0 < n_potential <= max_potential:
        raise ConfigError(f'Pool size must be in [1, {max_potential}]; got {n_potential}')

    if potential_radius is None:
        pools = [global_pool(input_grid, n_potential, rng) for _ in range(n_minicols)]
    else:
        pools = [
            local_pool(input_grid, potential_radius, n_potential, minicol_grid, minicol, rng)
            for minicol in range(n_minicols)
        ]
    return np.array(pools, dtype=np.int64).reshape(n_minicols, n_potential)


def input_pool_mapping(n_inputs: int, pools: npt.NDArray[np.int64]) -> InputPoolMapping:
    """Build the inverse view of the pools, see `InputPoolMapping`."""
    flat_pools = pools.ravel()
    _check_inputs(flat_pools, n_inputs)

    n_potential = pools.shape[1]
    order = np.argsort(flat_pools, kind='stable')
    counts = np.bincount(flat_pools, minlength=n_inputs)

    indptr = np.zeros(n_inputs + 1, dtype=np.int64)
    np.cumsum(counts, out=indptr[1:])
    return InputPoolMapping(
        indptr=indptr,
        minicols=(order // n_potential).astype(np.int64),
        offsets=(order % n_potential).astype(np.int64),
    )


# ==================== permanences ====================
def init_permanences(
        n_potential: int, n_connections: int, threshold: float, delta: float, rng: Generator
) -> npt.NDArray[np.float64]:
    """
    Initialize the permanences of a single pool.

    Exactly `n_connections` randomly chosen members start connected with the permanence
    in [threshold, threshold + delta), the rest start strictly below the threshold in
    [threshold - delta, threshold). All values are clamped to [0, 1].

    Keep in mind `n_connections` should be >= the stimulus threshold, otherwise
    the minicolumn has no chance to ever become active.
    """
    check_unit_interval('Connection threshold', threshold)
    check_unit_interval('Connection delta', delta)
    if threshold == 0. or delta == 0.:
        raise ConfigError('Connection threshold and delta must be positive')
    if not 0 <= n_connections <= n_potential:
        raise ConfigError(
            f'Number of connections must be in [0, {n_potential}]; got {n_connections}'
        )

    connected = np.array(
        shuffle(rng, [True] * n_connections + [False] * (n_potential - n_connections)),
        dtype=bool
    )
    # u ~ [0, 1) ==> connected deltas are in [0, delta), disconnected are in (0, delta]
    u = rng.random(n_potential)
    perms = np.where(connected, threshold + delta * u, threshold - delta * (1. - u))
    # guard against the float rounding up to the threshold
    perms[~connected] = np.minimum(perms[~connected], np.nextafter(threshold, 0.))
    return np.clip(perms, 0., 1.)


def permanence_table(
        n_minicols: int, n_potential: int, n_connections: int,
        threshold: float, delta: float, rng: Generator
) -> npt.NDArray[np.float64]:
    """Initialize the permanences of all pools. Returns float array (n_minicols, n_potential)."""
    table = np.empty((n_minicols, n_potential), dtype=np.float64)
    for minicol in range(n_minicols):
        table[minicol] = init_permanences(n_potential, n_connections, threshold, delta, rng)
    return table


def raise_permanences(
        perms: npt.NDArray[np.float64], threshold: float, stimulus_threshold: int, step: float
) -> npt.NDArray[np.float64]:
    """
    Raise the permanences of a single pool until at least `stimulus_threshold` members
    are connected. Each pass increments every still disconnected member by the `step`.
    Connected members are never changed.
    """
    if stimulus_threshold > perms.shape[0]:
        raise ConfigError(
            f'Stimulus threshold {stimulus_threshold} exceeds the pool size {perms.shape[0]}'
        )
    if step <= 0.:
        raise ConfigError(f'Permanence raising step must be positive; got {step}')

    perms = perms.copy()
    # after that many passes every member reaches the threshold
    max_passes = math.ceil(threshold / step) + 1
    for _ in range(max_passes):
        disconnected = perms < threshold
        if perms.shape[0] - np.count_nonzero(disconnected) >= stimulus_threshold:
            break
        perms[disconnected] = np.minimum(perms[disconnected] + step, 1.)
    return perms


def connections(
        pools: npt.NDArray[np.int64], perm_table: npt.NDArray[np.float64], threshold: float
) -> list[npt.NDArray[np.int64]]:
    """For every minicolumn, the inputs it has established connections with."""
    return [
        pool[perms >= threshold]
        for pool, perms in zip(pools, perm_table)
    ]


# ==================== inference ====================
def overlap_scores(
        active_inputs: SparseSdr, perm_table: npt.NDArray[np.float64],
        mapping: InputPoolMapping, threshold: float
) -> npt.NDArray[np.int64]:
    """
    Count for every minicolumn the active inputs it is connected to.
    The cost is proportional to the number of active inputs times the average number
    of pools an input belongs to.
    """
    active_inputs = np.unique(np.asarray(list(active_inputs), dtype=np.int64))
    _check_inputs(active_inputs, mapping.n_inputs)

    scores = np.zeros(perm_table.shape[0], dtype=np.int64)
    _accumulate_overlaps(
        active_inputs, mapping.indptr, mapping.minicols, mapping.offsets,
        perm_table, threshold, scores
    )
    return scores


@jit(cache=True)
def _accumulate_overlaps(active_inputs, indptr, minicols, offsets, perm_table, threshold, scores):
    for input_bit in active_inputs:
        for k in range(indptr[input_bit], indptr[input_bit + 1]):
            minicol = minicols[k]
            if perm_table[minicol, offsets[k]] >= threshold:
                scores[minicol] += 1


def global_inhibition(scores: npt.NDArray, n_active: int) -> npt.NDArray[np.int64]:
    """
    Select `n_active` minicolumns with the best scores over the whole population.
    Ties are broken in favor of the lower index. Returns ascending indices.
    """
    if n_active < 0:
        raise ConfigError(f'Number of active minicolumns must be non-negative; got {n_active}')

    # stable sort keeps ascending indices order within the equal scores
    order = np.argsort(-np.asarray(scores), kind='stable')
    return np.sort(order[:n_active]).astype(np.int64)


def inhibition_neighborhoods(
        minicol_grid: Grid, inhibition_radius: int
) -> list[npt.NDArray[np.int64]]:
    """For every minicolumn, its neighborhood: the hypercube clipped by the grid borders."""
    return [
        hypercube_indices(
            minicol_grid,
            hypercube(
                minicol_grid, inhibition_radius,
                index_to_coords(minicol_grid, minicol), clip=True
            )
        )
        for minicol in range(grid_capacity(minicol_grid))
    ]


def local_inhibition(
        scores: npt.NDArray, minicol_grid: Grid, n_active: int, inhibition_radius: int,
        neighborhoods: list[npt.NDArray[np.int64]] = None
) -> npt.NDArray[np.int64]:
    """
    Select minicolumns that win the competition within their neighborhoods: a minicolumn
    is active iff fewer than `n_active` of its neighbors have a strictly greater score.

    The neighborhoods depend only on the grid and the radius, so they can be precomputed
    once with `inhibition_neighborhoods` and passed in.
    """
    if n_active < 0:
        raise ConfigError(f'Number of active minicolumns must be non-negative; got {n_active}')
    if neighborhoods is None:
        neighborhoods = inhibition_neighborhoods(minicol_grid, inhibition_radius)

    scores = np.asarray(scores)
    winners = [
        minicol
        for minicol, neighbors in enumerate(neighborhoods)
        if np.count_nonzero(scores[neighbors] > scores[minicol]) < n_active
    ]
    return np.array(winners, dtype=np.int64)


# ==================== inhibition radius ====================
def avg_minicols_per_input(input_grid: Grid, minicol_grid: Grid) -> float:
    """On average, the number of minicolumns per input bit along a dimension."""
    if len(input_grid) != len(minicol_grid):
        raise ConfigError(
            f'Input grid {input_grid} and minicolumn grid {minicol_grid} '
            f'must have the same number of dimensions'
        )
    return mean(
        n_minicols / n_inputs
        for n_inputs, n_minicols in zip(input_grid, minicol_grid)
    )


def receptive_field(input_grid: Grid, minicol_connections: Sequence[int]) -> list[int]:
    """The span in every input dimension of the inputs the minicolumn is connected to."""
    if len(minicol_connections) == 0:
        return [0] * len(input_grid)
    return dim_span(dim_ranges(
        index_to_coords(input_grid, input_bit)
        for input_bit in minicol_connections
    ))


def inhibition_radius(
        input_grid: Grid, minicol_grid: Grid,
        minicols_connections: Sequence[Sequence[int]]
) -> int:
    """Compute the radius of local inhibition from the average receptive field size."""
    avg_receptive_field = mean(
        mean(receptive_field(input_grid, minicol_connections))
        for minicol_connections in minicols_connections
    )
    diameter = avg_receptive_field * avg_minicols_per_input(input_grid, minicol_grid)
    return max(1, round_half_up((diameter - 1) / 2))


# ==================== learning ====================
def adapt_permanences(
        perm_table: npt.NDArray[np.float64], pools: npt.NDArray[np.int64],
        active_inputs: SparseSdr, active_minicols: SparseSdr,
        perm_inc: float, perm_dec: float, n_inputs: int
) -> npt.NDArray[np.float64]:
    """
    Hebbian learning for the active minicolumns: permanences of the pool members that
    are active inputs are increased, the rest are decreased. Returns a new table.
    """
    perm_table = perm_table.copy()
    active_minicols = np.asarray(active_minicols, dtype=np.int64)
    if active_minicols.size == 0:
        return perm_table

    active_inputs = np.asarray(list(active_inputs), dtype=np.int64)
    _check_inputs(active_inputs, n_inputs)
    input_mask = sparse_to_dense(active_inputs, size=n_inputs, dtype=bool)

    matched = input_mask[pools[active_minicols]]
    perm_table[active_minicols] = np.clip(
        perm_table[active_minicols] + np.where(matched, perm_inc, -perm_dec),
        0., 1.
    )
    return perm_table


# ==================== duty cycles and boosting ====================
def update_duty_cycles(
        duty_cycles: npt.NDArray[np.float64], active_minicols: SparseSdr, period: int
) -> npt.NDArray[np.float64]:
    """Update the moving average of the minicolumns activity. Returns a new array."""
    if period < 1:
        raise ConfigError(f'Duty cycle period must be >= 1; got {period}')

    updates = np.zeros_like(duty_cycles)
    updates[np.asarray(active_minicols, dtype=np.int64)] = 1.
    return ((period - 1) * duty_cycles + updates) / period


def boosting(
        relative_rate: float | npt.NDArray[float], k: float | npt.NDArray[float],
        softness: float = 3.0
) -> float | npt.NDArray[float]:
    # relative rate: rate / R_target
    # x = -log(relative_rate)
    #   0 1 +inf  -> +inf 0 -inf
    with np.errstate(divide='ignore'):
        x = -np.log(relative_rate)

    # relative_rate -> x -> B:
    #   0 -> +inf -> K^tanh(+inf) = K
    #   1 -> 0 -> K^tanh(0) = 1
    #   +inf -> -inf -> K^tanh(-inf) = 1 / K
    # higher softness just makes the sigmoid curve smoother; default value is empirically optimized
    return np.power(k + 1, np.tanh(x / softness))


def boost_factors(
        duty_cycles: npt.NDArray[np.float64], target_density: float, boost_strength: float
) -> npt.NDArray[np.float64]:
    """
    Multiplicative boost for every minicolumn: minicolumns active less often than
    the target density are boosted, more often are suppressed. Zero strength means no boosting.
    """
    if boost_strength <= 0. or target_density <= 0.:
        return np.ones_like(duty_cycles)
    return boosting(relative_rate=duty_cycles / target_density, k=boost_strength)


def _check_inputs(inputs: npt.NDArray[np.int64], n_inputs: int):
    if inputs.size > 0 and (inputs.min() < 0 or inputs.max() >= n_inputs):
        raise BoundsError(f'Input bits must be in [0, {n_inputs})')
