# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Logging setup for hydrotune runs.

Configures the ``hydrotune`` logger hierarchy once per run: a console
handler, an optional file handler under ``OUTPUT_DIR/_logs`` and quieter
third-party loggers.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from hydrotune.core.config.models import HydrotuneConfig

LOG_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] - %(message)s'
CONSOLE_FORMAT = '[%(asctime)s] [%(levelname)s] - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

NOISY_LOGGERS = ['matplotlib', 'urllib3', 'numexpr', 'h5py', 'netCDF4', 'fsspec', 'asyncio']


class LoggingManager:
    """
    Sets up handlers for the ``hydrotune`` logger.

    Args:
        config: HydrotuneConfig, or None for console-only INFO logging
        debug_mode: Force DEBUG level regardless of LOG_LEVEL
    """

    def __init__(self, config: Optional[HydrotuneConfig] = None, debug_mode: bool = False):
        self.config = config
        self.debug_mode = debug_mode
        self.log_file: Optional[Path] = None
        self.logger = self.setup_logging()

    def _level(self) -> int:
        if self.debug_mode:
            return logging.DEBUG
        if self.config is None:
            return logging.INFO
        return getattr(logging, self.config.system.log_level, logging.INFO)

    def setup_logging(self) -> logging.Logger:
        logger = logging.getLogger('hydrotune')
        logger.setLevel(self._level())
        logger.propagate = False

        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

        console = logging.StreamHandler()
        console.setLevel(self._level())
        console.setFormatter(logging.Formatter(
            LOG_FORMAT if self.debug_mode else CONSOLE_FORMAT, datefmt=DATE_FORMAT
        ))
        logger.addHandler(console)

        if self.config is not None and self.config.system.log_to_file:
            log_dir = Path(self.config.system.output_dir) / '_logs'
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            self.log_file = log_dir / f"hydrotune_{self.config.system.experiment_id}_{timestamp}.log"

            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            logger.addHandler(file_handler)
            logger.setLevel(logging.DEBUG)

        for noisy_logger in NOISY_LOGGERS:
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

        if self.log_file is not None:
            logger.debug(f"Logging to {self.log_file}")
        return logger

    def close(self) -> None:
        """Detach and close this run's handlers."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
