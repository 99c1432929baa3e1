#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

import numpy as np

from htmsp.common.config import TConfig
from htmsp.common.lazy_imports import lazy_import
from htmsp.common.run.runner import Runner
from htmsp.common.run.wandb import turn_off_gui_backend_for_matplotlib
from htmsp.common.sdr import SparseSdr
from htmsp.common.sdr_sampling import sample_noisy_sdr, sample_sdr
from htmsp.common.sds import Sds
from htmsp.common.utils import prepend_dict_keys
from htmsp.experiments.spatial_pooling.metrics import TMetrics, entropy, sdr_similarity
from htmsp.modules.htm.spatial_pooler import SpatialPooler

wandb = lazy_import('wandb')


class SpStatsRunner(Runner):
    """
    Learn a set of random patterns with the spatial pooler while showing it their
    noisy variants, and track how its representations settle.

    Per epoch metrics:
        - stability: similarity of a pattern representation to the one at the previous epoch
        - noise_robustness: similarity of a pattern and its noisy variant representations
        - winners_overlap: average overlap score of the active minicolumns
        - duty_cycles_entropy: how evenly the minicolumns share the activity
    """
    rng: np.random.Generator
    n_epochs: int
    noise: float

    input_sds: Sds
    patterns: list[SparseSdr]
    sp: SpatialPooler

    representations: list[SparseSdr]
    epoch_metrics: list[TMetrics]

    def __init__(
            self, config: TConfig, seed: int, n_epochs: int, n_patterns: int, noise: float,
            input_sds, sp: TConfig, log: bool | str = False, project: str = None,
            **_
    ):
        super().__init__(config, log=log, project=project)
        if self.logger is not None:
            turn_off_gui_backend_for_matplotlib()

        self.rng = np.random.default_rng(seed)
        self.n_epochs = n_epochs
        self.noise = noise

        self.input_sds = Sds.make(input_sds)
        self.patterns = [sample_sdr(self.rng, self.input_sds) for _ in range(n_patterns)]

        sp_config = sp.copy()
        sp_config.update(feedforward_sds=self.input_sds, seed=seed)
        self.sp = SpatialPooler.from_config(sp_config)

        self.representations = [self.sp.compute(pattern, learn=False) for pattern in self.patterns]
        self.epoch_metrics = []

    def run(self) -> None:
        print(f'==> Init SP: {self.sp.state_str()}')
        for epoch in range(self.n_epochs):
            metrics = self.run_epoch()
            self.epoch_metrics.append(metrics)

            print(
                f'Epoch {epoch}: stability {metrics["stability"]:.3f}'
                f' | noise robustness {metrics["noise_robustness"]:.3f}'
                f' | {self.sp.state_str()}'
            )
            if self.logger is not None:
                self.logger.log(prepend_dict_keys(metrics, 'sp'), step=epoch)

        if self.logger is not None:
            self.log_duty_cycles()
        print('<==')

    def run_epoch(self) -> TMetrics:
        winners_overlap, noise_robustness = [], []
        for pattern in self.patterns:
            noisy_pattern = sample_noisy_sdr(self.rng, self.input_sds, pattern, self.noise)
            noisy_sdr = self.sp.compute(noisy_pattern, learn=True)
            if len(noisy_sdr) > 0:
                winners_overlap.append(self.sp.overlaps[noisy_sdr].mean())

            sdr = self.sp.compute(pattern, learn=False)
            noise_robustness.append(sdr_similarity(noisy_sdr, sdr, symmetrical=True))

        representations = [self.sp.compute(pattern, learn=False) for pattern in self.patterns]
        stability = [
            sdr_similarity(prev, curr, symmetrical=True)
            for prev, curr in zip(self.representations, representations)
        ]
        self.representations = representations

        return {
            'stability': np.mean(stability),
            'noise_robustness': np.mean(noise_robustness),
            'winners_overlap': np.mean(winners_overlap) if winners_overlap else 0.,
            'duty_cycles_entropy': entropy(self.sp.active_duty_cycles),
        }

    def log_duty_cycles(self):
        from matplotlib import pyplot as plt

        duty_cycles = np.sort(self.sp.active_duty_cycles)[::-1]
        fig, ax = plt.subplots()
        ax.bar(np.arange(duty_cycles.size), duty_cycles, width=1.)
        ax.axhline(self.sp.output_sds.sparsity, color='r', linestyle='--', label='target')
        ax.set_xlabel('minicolumns, sorted')
        ax.set_ylabel('duty cycle')
        ax.legend()

        self.logger.log({'sp/duty_cycles': wandb.Image(fig)})
        plt.close(fig)
