#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from htmsp.common.run.entrypoint import default_run_arg_parser, run_experiment
from htmsp.experiments.spatial_pooling.runner import SpStatsRunner


def main():
    run_experiment(
        arg_parser=default_run_arg_parser(),
        experiment_runner_registry={
            'sp_stats': SpStatsRunner,
        }
    )


if __name__ == '__main__':
    main()
