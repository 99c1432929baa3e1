#  Copyright (c) 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research
#  Institute" (AIRI); Moscow Institute of Physics and Technology (National Research University).
#  All rights reserved.
#
#  Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
from __future__ import annotations

from typing import TYPE_CHECKING

from htmsp.common.config import TConfig
from htmsp.common.run.wandb import DryWandbLogger, get_logger

if TYPE_CHECKING:
    from wandb.sdk.wandb_run import Run


class Runner:
    config: TConfig
    logger: Run | DryWandbLogger | None

    def __init__(
            self, config: TConfig, log: bool | str = False, project: str = None,
            **unpacked_config
    ):
        self.config = config
        self.logger = get_logger(config=config, log=log, project=project)

    def run(self) -> None:
        ...
