#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.

# Raised where an invariant is violated, never caught inside the package.


class HtmError(Exception):
    """Base class for all errors raised by htmsp."""


class DomainError(HtmError, ValueError):
    """Invalid numeric input to a pure function, e.g. k > n in n choose k."""


class BoundsError(HtmError, IndexError):
    """Index or coordinate outside the declared capacity."""


class ConfigError(HtmError, ValueError):
    """Parameter violates a declared invariant, e.g. permanence outside [0, 1]."""


def check_unit_interval(name: str, value: float) -> float:
    """Return the value if it lies in [0, 1], raise ConfigError otherwise."""
    if not 0. <= value <= 1.:
        raise ConfigError(f'{name} must be in [0, 1]; got {value}')
    return value
