#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.

import importlib.util
import sys


def lazy_import(name, package=None):
    module = sys.modules.get(name, None)
    if module is not None:
        return module

    spec = importlib.util.find_spec(name, package=package)
    if spec is None:
        raise ModuleNotFoundError(f'No module named {name!r}', name=name)

    loader = importlib.util.LazyLoader(spec.loader)
    spec.loader = loader
    module = importlib.util.module_from_spec(spec)
    sys.modules[name] = module
    loader.exec_module(module)
    return module

# Libraries that are slow at import and are lazily loaded here:
#   - wandb: it is needed only for the runs with logging turned on.
#
#   - matplotlib: DO NOT use lazy loading for it as it cannot be lazily loaded :(
#       Make local imports instead and turn on a headless backend when you use plt
#       solely for wandb plotting (not for popping GUI window).
