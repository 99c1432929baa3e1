#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

from typing import Any

import numpy as np
import numpy.typing as npt

from htmsp.common.sdr import SparseSdr
from htmsp.common.utils import safe_divide

TMetrics = dict[str, Any]


def sdr_similarity(x1: SparseSdr, x2: SparseSdr, symmetrical: bool = False) -> float:
    """
    Compute similarity between two SDRs.

    NB: if x1 — prediction, x2 — positives, then for non-symmetrical case:
      sim(x1, x2) = recall = 1 - miss_rate;
      sim(x2, x1) = precision = 1 - imprecision
    """
    x1, x2 = set(x1), set(x2)
    overlap = len(x1 & x2)

    # sim is a fraction of their union or x2. For the former, len(x1 | x2) = x1 + x2 - overlap
    norm = len(x1) + len(x2) - overlap if symmetrical else len(x2)
    return safe_divide(overlap, norm)


def entropy(x: npt.NDArray[float], normalize: bool = True) -> float:
    """
    Entropy of the distribution proportional to x, e.g. minicolumns duty cycles.
    Normalized relative to the max possible value, i.e. uniform distribution.
    """
    mass = x.sum()
    if mass <= 0:
        return 0.

    p = x / mass
    # noinspection PyTypeChecker
    h: float = -np.dot(p, np.ma.log(p).filled(0.))
    if normalize and p.size > 1:
        h /= np.log(p.size)
    return float(h)
