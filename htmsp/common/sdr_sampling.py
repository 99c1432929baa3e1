#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
import numpy as np
from numpy.random import Generator

from htmsp.common.math_utils import reservoir_sample
from htmsp.common.sdr import SparseSdr
from htmsp.common.sds import Sds


# ==================== SDR generation ====================
def sample_sdr(rng: Generator, sds: Sds) -> SparseSdr:
    result = reservoir_sample(rng, sds.size, sds.active_size)
    result.sort()
    return result


def sample_noisy_sdr(rng: Generator, sds: Sds, sdr: SparseSdr, frac: float) -> SparseSdr:
    """Sample noisy SDR from the given SDR with the given fraction of noise."""
    set_sdr = set(sdr)
    active_size = len(sdr)

    n_to_remove = max(1, round(frac * sds.active_size))
    target_interim_len = max(sds.active_size, active_size) - n_to_remove
    n_will_remove = max(0, active_size - target_interim_len)

    if n_will_remove > 0:
        # NB: permutation is significantly faster than choice for short arrays
        to_remove = rng.permutation(sdr)[:n_will_remove]
        set_sdr -= set(to_remove)

    n_will_add = sds.active_size - len(set_sdr)
    if n_will_add > 0:
        to_add = rng.integers(0, sds.size, n_will_add)
        set_sdr |= set(to_add)

        # in case of collisions, add the rest
        while len(set_sdr) < sds.active_size:
            x = rng.integers(0, sds.size)
            set_sdr.add(x)

    result = np.array(list(set_sdr), dtype=np.int64)
    result.sort()
    return result
