#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

from typing import Any


def isnone(x, default):
    """Return x if it's not None, or default value instead."""
    return x if x is not None else default


def ensure_list(arr: Any | list[Any] | None) -> list[Any] | None:
    """Wrap single value to list or return list as it is."""
    if arr is not None and not isinstance(arr, list):
        arr = [arr]
    return arr


def safe_divide(x, y: int | float):
    """
    Return x / y or just x itself if y == 0 preventing NaNs.
    Warning: it may not work as you might expect for floats, use it only when you need exact match!
    """
    return x / y if y != 0 else x


def prepend_dict_keys(d: dict[str, Any], prefix, separator='/'):
    """Add specified prefix to all the dict keys."""
    return {
        f'{prefix}{separator}{k}': d[k]
        for k in d
    }
