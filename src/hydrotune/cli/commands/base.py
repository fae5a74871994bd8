# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Base command class for hydrotune CLI commands.

Provides configuration loading with command-line overrides and the
exception handler shared by every command.
"""

import functools
import sys
from argparse import Namespace
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from hydrotune.core.config.models import HydrotuneConfig
from hydrotune.core.exceptions import HydrotuneError

from ..exit_codes import ExitCode

# argparse dest -> flat configuration key
OVERRIDE_KEYS = {
    'algorithm': 'OPTIMIZATION_ALGORITHM',
    'iterations': 'NUMBER_OF_ITERATIONS',
    'max_evaluations': 'MAX_EVALUATIONS',
    'workers': 'PARALLEL_WORKERS',
    'seed': 'RANDOM_SEED',
    'experiment_id': 'EXPERIMENT_ID',
}


def cli_exception_handler(func: Callable[[Namespace], int]) -> Callable[[Namespace], int]:
    """Turn expected failures of a command into an error message and exit code."""

    @functools.wraps(func)
    def wrapper(args: Namespace) -> int:
        try:
            return func(args)
        except (HydrotuneError, FileNotFoundError) as e:
            BaseCommand.print_error(str(e))
            return ExitCode.GENERAL_ERROR

    return wrapper


class BaseCommand:
    """Shared helpers for command handlers."""

    @staticmethod
    def print_info(message: str) -> None:
        print(message)

    @staticmethod
    def print_error(message: str) -> None:
        print(f"Error: {message}", file=sys.stderr)

    @staticmethod
    def collect_overrides(args: Namespace) -> Dict[str, Any]:
        """Flat config overrides for every option given on the command line."""
        overrides = {}
        for dest, key in OVERRIDE_KEYS.items():
            value = getattr(args, dest, None)
            if value is not None:
                overrides[key] = value
        return overrides

    @staticmethod
    def load_typed_config(
        config_path: str,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> HydrotuneConfig:
        """
        Load a HydrotuneConfig.

        Raises:
            FileNotFoundError: If the file does not exist
            ConfigurationError: If the file is invalid
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return HydrotuneConfig.from_file(path, overrides=overrides)
