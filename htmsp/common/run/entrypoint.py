#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

import os
from argparse import ArgumentParser
from pathlib import Path
from typing import Callable

from htmsp.common.config import (
    TConfig, extracted_type, override_config, parse_arg, read_config
)
from htmsp.common.errors import ConfigError
from htmsp.common.run.runner import Runner
from htmsp.common.run.wandb import set_wandb_entity

TRunnerRegistry = dict[str, Callable[..., Runner]]


def run_experiment(
        *, arg_parser: ArgumentParser, experiment_runner_registry: TRunnerRegistry
) -> None:
    """
    THE MAIN entry point for starting a program.
        1) resolves run args
        2) reads config and applies the overrides
        3) sets any execution params
        4) resolves who will run this experiment — a runner
        5) passes execution handling to the runner.
    """
    args, unknown_args = arg_parser.parse_known_args()

    if args.wandb_entity:
        set_wandb_entity(args.wandb_entity)

    if not args.multithread:
        # prevent math parallelization as it usually only slows things down for us
        set_single_threaded_math()

    config = read_config(Path(args.config_filepath))
    override_config(config, [parse_arg(arg) for arg in unknown_args])

    runner = resolve_runner(config, experiment_runner_registry)
    runner.run()


def resolve_runner(config: TConfig, experiment_runner_registry: TRunnerRegistry) -> Runner:
    """Make the runner of the type specified in the config."""
    runner_args, runner_type = extracted_type(config)
    if runner_type not in experiment_runner_registry:
        raise ConfigError(
            f'Unknown runner type {runner_type!r}; '
            f'supported: {list(experiment_runner_registry.keys())}'
        )

    # runner gets both the config itself (for logging) and its unpacked content
    return experiment_runner_registry[runner_type](config=config, **runner_args)


def set_single_threaded_math():
    os.environ['OMP_NUM_THREADS'] = '1'
    os.environ['MKL_NUM_THREADS'] = '1'


def default_run_arg_parser() -> ArgumentParser:
    """
    Returns default run command parser.

    Instead of creating a new one for your specific purposes, you can create a default one
    and then extend it by adding new arguments.
    """
    parser = ArgumentParser()
    parser.add_argument('-c', '--config', dest='config_filepath', required=True)
    parser.add_argument('-e', '--entity', dest='wandb_entity', required=False, default=None)
    parser.add_argument('--multithread', dest='multithread', action='store_true', default=False)
    return parser
