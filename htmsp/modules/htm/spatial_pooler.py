#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

import numpy as np
from numpy import typing as npt
from numpy.random import Generator

from htmsp.common.config import TConfig, resolve_absolute_quantity
from htmsp.common.errors import BoundsError, ConfigError, check_unit_interval
from htmsp.common.sdr import ImmutableSdr, Sdr, SparseSdr, active_bits
from htmsp.common.sds import Sds
from htmsp.common.utils import isnone
from htmsp.modules.htm.sp_utils import (
    InputPoolMapping, adapt_permanences, avg_minicols_per_input, boost_factors, connections,
    global_inhibition, inhibition_neighborhoods, inhibition_radius, input_pool_mapping,
    local_inhibition, overlap_scores, permanence_table, potential_pools, raise_permanences,
    update_duty_cycles
)


class SpatialPooler:
    """
    The HTM spatial pooler: a population of minicolumns that learns to represent
    the input space with SDRs of a fixed number of active minicolumns.

    Input space topology is `feedforward_sds.shape`, minicolumns topology
    is `output_sds.shape`, while `output_sds.active_size` is the desired number
    of active minicolumns.
    """
    rng: Generator

    # I/O settings
    feedforward_sds: Sds
    output_sds: Sds

    # potential pools
    n_potential: int
    potential_radius: int | None
    pools: npt.NDArray[np.int64]
    input_pools: InputPoolMapping

    # permanences
    n_connections: int
    connection_threshold: float
    connection_delta: float
    permanence_increment: float
    permanence_decrement: float
    stimulus_threshold: int
    stimulus_increment: float
    permanences: npt.NDArray[np.float64]

    # inhibition
    global_inhibition: bool
    inhibition_radius: int
    neighborhoods: list[npt.NDArray[np.int64]] | None

    # duty cycles and boosting
    duty_cycle_period: int
    boost_strength: float
    active_duty_cycles: npt.NDArray[np.float64]
    boost_factors: npt.NDArray[np.float64]

    # cache
    overlaps: npt.NDArray[np.int64]
    winners: npt.NDArray[np.int64]

    # stats
    n_computes: int

    def __init__(
            self, *,
            feedforward_sds: Sds, output_sds: Sds,
            n_potential: int, n_connections: int,
            connection_threshold: float = 0.5, connection_delta: float = 0.1,
            permanence_increment: float = 0.05, permanence_decrement: float = 0.008,
            stimulus_threshold: int = 0, stimulus_increment: float = None,
            potential_radius: int = None, global_inhibition: bool = True,
            duty_cycle_period: int = 1000, boost_strength: float = 0.,
            seed: int = None
    ):
        self.rng = np.random.default_rng(seed)

        self.feedforward_sds = Sds.make(feedforward_sds)
        self.output_sds = Sds.make(output_sds)

        for name, value in [
            ('Permanence increment', permanence_increment),
            ('Permanence decrement', permanence_decrement),
        ]:
            check_unit_interval(name, value)
        if n_connections > n_potential:
            raise ConfigError(
                f'Number of connections {n_connections} exceeds the pool size {n_potential}'
            )
        if stimulus_threshold > n_potential:
            raise ConfigError(
                f'Stimulus threshold {stimulus_threshold} exceeds the pool size {n_potential}'
            )
        if duty_cycle_period < 1:
            raise ConfigError(f'Duty cycle period must be >= 1; got {duty_cycle_period}')
        if not global_inhibition:
            # fails early for the grids of different dimensionality
            avg_minicols_per_input(self.feedforward_sds.shape, self.output_sds.shape)

        self.n_potential = n_potential
        self.potential_radius = potential_radius
        self.n_connections = n_connections
        self.connection_threshold = connection_threshold
        self.connection_delta = connection_delta
        self.permanence_increment = permanence_increment
        self.permanence_decrement = permanence_decrement
        self.stimulus_threshold = stimulus_threshold
        self.stimulus_increment = isnone(stimulus_increment, connection_threshold / 10)
        self.global_inhibition = global_inhibition
        self.duty_cycle_period = duty_cycle_period
        self.boost_strength = boost_strength

        self.pools = potential_pools(
            input_grid=self.feedforward_sds.shape, minicol_grid=self.output_sds.shape,
            n_potential=self.n_potential, rng=self.rng, potential_radius=self.potential_radius
        )
        self.input_pools = input_pool_mapping(self.ff_size, self.pools)
        self.permanences = permanence_table(
            n_minicols=self.output_size, n_potential=self.n_potential,
            n_connections=self.n_connections, threshold=self.connection_threshold,
            delta=self.connection_delta, rng=self.rng
        )
        self._raise_permanences(range(self.output_size))

        self.neighborhoods = None
        self.update_inhibition_radius()

        self.active_duty_cycles = np.zeros(self.output_size)
        self.boost_factors = np.ones(self.output_size)

        self.overlaps = np.zeros(self.output_size, dtype=np.int64)
        self.winners = np.empty(0, dtype=np.int64)
        self.n_computes = 0

    @staticmethod
    def from_config(config: TConfig) -> SpatialPooler:
        """
        Make the spatial pooler from the config dict. The pool size can be relative
        to the input size and the number of connections relative to the pool size,
        i.e. given as floats.
        """
        config = config.copy()
        feedforward_sds = Sds.make(config.pop('feedforward_sds'))
        n_potential = resolve_absolute_quantity(config.pop('n_potential'), feedforward_sds.size)
        n_connections = resolve_absolute_quantity(config.pop('n_connections'), n_potential)
        return SpatialPooler(
            feedforward_sds=feedforward_sds,
            n_potential=n_potential, n_connections=n_connections,
            **config
        )

    def compute(self, input_sdr: SparseSdr | Sdr, learn: bool = True) -> SparseSdr | ImmutableSdr:
        """
        Compute the active minicolumns for the input.

        Returns the same kind of SDR as it was given: either the sparse array
        of the active minicolumns, or an `Sdr` over the minicolumns.
        """
        is_sdr = isinstance(input_sdr, Sdr)
        if is_sdr:
            if input_sdr.capacity != self.ff_size:
                raise BoundsError(
                    f'Input SDR capacity {input_sdr.capacity} does not match '
                    f'the input space size {self.ff_size}'
                )
            active_inputs = active_bits(input_sdr)
        else:
            active_inputs = np.unique(np.asarray(list(input_sdr), dtype=np.int64))

        self.overlaps = overlap_scores(
            active_inputs, self.permanences, self.input_pools, self.connection_threshold
        )
        self.winners = self.select_winners(self.overlaps)

        if learn:
            self.learn(active_inputs, self.winners)

        if is_sdr:
            return ImmutableSdr.from_sparse(self.winners, self.output_size)
        return self.winners

    def select_winners(self, overlaps: npt.NDArray[np.int64]) -> npt.NDArray[np.int64]:
        """Inhibit the minicolumns by their boosted overlap scores."""
        overlaps = np.asarray(overlaps)
        scores = overlaps * self.boost_factors
        n_winners = self.n_active
        if self.global_inhibition:
            winners = global_inhibition(scores, n_winners)
        else:
            winners = local_inhibition(
                scores, self.output_sds.shape, n_winners, self.inhibition_radius,
                neighborhoods=self.neighborhoods
            )

        # inhibition only ranks minicolumns, the ones with no stimulus cannot win
        winner_overlaps = overlaps[winners]
        return winners[(winner_overlaps > 0) & (winner_overlaps >= self.stimulus_threshold)]

    def learn(self, active_inputs: SparseSdr, winners: SparseSdr):
        self.permanences = adapt_permanences(
            self.permanences, self.pools, active_inputs, winners,
            perm_inc=self.permanence_increment, perm_dec=self.permanence_decrement,
            n_inputs=self.ff_size
        )
        self._raise_permanences(winners)

        self.active_duty_cycles = update_duty_cycles(
            self.active_duty_cycles, winners, self.duty_cycle_period
        )
        self.boost_factors = boost_factors(
            self.active_duty_cycles, self.output_sds.sparsity, self.boost_strength
        )
        self.n_computes += 1

    def update_inhibition_radius(self):
        """
        Derive the local inhibition radius from the current connections.
        It is done once at init, call it explicitly to follow learning.
        """
        if self.global_inhibition:
            self.inhibition_radius = max(self.output_sds.shape)
            return

        self.inhibition_radius = inhibition_radius(
            self.feedforward_sds.shape, self.output_sds.shape, self.connections
        )
        self.neighborhoods = inhibition_neighborhoods(
            self.output_sds.shape, self.inhibition_radius
        )

    def _raise_permanences(self, minicols):
        if self.stimulus_threshold <= 0:
            return
        for minicol in minicols:
            self.permanences[minicol] = raise_permanences(
                self.permanences[minicol], self.connection_threshold,
                self.stimulus_threshold, self.stimulus_increment
            )

    @property
    def connections(self) -> list[npt.NDArray[np.int64]]:
        return connections(self.pools, self.permanences, self.connection_threshold)

    @property
    def ff_size(self):
        return self.feedforward_sds.size

    @property
    def output_size(self):
        return self.output_sds.size

    @property
    def n_active(self):
        return self.output_sds.active_size

    def state_str(self) -> str:
        return (
            f'{self.n_computes} computes | radius {self.inhibition_radius}'
            f' | boost [{self.boost_factors.min():.2f}, {self.boost_factors.max():.2f}]'
        )
