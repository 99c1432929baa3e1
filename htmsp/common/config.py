#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

from ast import literal_eval
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from ruamel.yaml import YAML

from htmsp.common.utils import ensure_list

# Register config-related conventional constants here.
# NB: They are intended to be non-importable, i.e. to be used only here!
_TYPE_KEY = '_type_'

TConfig = dict[str, Any]
TConfigOverrideKV = tuple[list, Any]


@dataclass(frozen=True)
class HtmDefaults:
    """
    Default values used throughout the package.

    It is passed explicitly to the constructors that need it instead of being
    a process-wide mutable map.
    """
    sdr_capacity: int = 2048


# ==================== config dict slicing ====================
def filtered(d: TConfig, keys_to_remove: Iterable[str]) -> TConfig:
    """Shallow copy of the top level of the config without the specified keys."""
    keys_to_remove = set(keys_to_remove)
    return {k: v for k, v in d.items() if k not in keys_to_remove}


def extracted(d: TConfig, *keys: str) -> tuple:
    """
    Split the config into its remainder and the values of the specified keys
    (None for absent ones).

    >>> extracted({'a': 1, 'b': 2, 'c': 3}, 'a', 'c')
    ({'b': 2}, 1, 3)
    """
    return (filtered(d, keys), ) + tuple(d.get(k) for k in keys)


def extracted_type(config: TConfig) -> tuple[TConfig, Optional[str]]:
    """Extracts the type using the type hinting convention for configs."""
    return extracted(config, _TYPE_KEY)


# ==================== config dict value induction ====================
def resolve_absolute_quantity(abs_or_relative: Union[int, float], baseline: int) -> int:
    """
    Ints are absolute quantities and are returned as is, floats are fractions
    of the `baseline`, e.g. a pool size of 0.25 over 20 inputs is 5.
    """
    if isinstance(abs_or_relative, float):
        return int(baseline * abs_or_relative)
    if isinstance(abs_or_relative, int):
        return abs_or_relative
    raise TypeError(f'Quantity must be int or float; got {type(abs_or_relative)}')


# ==================== config dict compilation and values parsing ====================
def override_config(
        config: TConfig,
        overrides: Union[TConfigOverrideKV, list[TConfigOverrideKV]]
) -> None:
    """Applies the number of overrides to the content of the config dictionary."""
    overrides = ensure_list(overrides)
    for key_path, value in overrides:
        c = config
        for key_token in key_path[:-1]:
            c = c[key_token]
        c[key_path[-1]] = value


def parse_arg(arg: Union[str, tuple[str, Any]]) -> TConfigOverrideKV:
    if isinstance(arg, str):
        # raw arg string: "key=value"

        # "--key=value" --> ["--key", "value"]
        key_path, value = arg.split('=', maxsplit=1)

        # "--key" --> "key"
        key_path = key_path.removeprefix('--')

        # parse value represented as str
        value = parse_str(value)
    else:
        # tuple ("key", value) is expected to be already parsed
        key_path, value = arg

    # We parse key tokens as they can represent array indices
    # We skip empty key tokens, e.g. "path..to.key" is the same as "path.to.key"
    key_path = [
        parse_str(key_token)
        for key_token in key_path.split('.')
        if key_token
    ]

    return key_path, value


def parse_str(s: str) -> Any:
    """Parse string value to the most appropriate type."""

    # noinspection PyShadowingNames
    def boolify(s):
        if s in ['True', 'true']:
            return True
        if s in ['False', 'false']:
            return False
        raise ValueError('Not Boolean Value!')

    # NB: try/except is widely accepted pythonic way to parse things
    assert isinstance(s, str)

    # NB: order here is important
    for caster in (boolify, int, float, literal_eval):
        try:
            return caster(s)
        except (ValueError, SyntaxError):
            pass
    return s


def read_config(filepath: str | Path) -> TConfig:
    filepath = Path(filepath)
    with filepath.open('r') as config_io:
        return YAML(typ='safe').load(config_io)
