# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
hydrotune CLI Argument Parser.

Commands:
    - calibrate: Run a calibration from a configuration file
    - validate: Check a configuration file and its parameter bounds
    - metrics: List goodness-of-fit metrics
    - algorithms: List optimization algorithms
"""

import argparse
from typing import List, Optional

from hydrotune.hydrotune_version import __version__

from .commands import CalibrationCommands


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


class CLIParser:
    """
    Main CLI parser.

    Attributes:
        common_parser: Parent parser with global options (--debug)
        parser: Main argument parser with all subcommands registered
    """

    def __init__(self):
        self.common_parser = self._create_common_parser()
        self.parser = self._create_parser()

    def _create_common_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(add_help=False)
        parser.add_argument('--debug', action='store_true',
                            help='Enable debug output and full tracebacks')
        return parser

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog='hydrotune',
            description='hydrotune - calibration harness for hydrological simulators',
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  hydrotune validate my_config.yaml
  hydrotune calibrate my_config.yaml --algorithm sce-ua --workers 4 --seed 42
  hydrotune calibrate my_config.yaml --algorithm lbfgs --iterations 50
  hydrotune metrics
"""
        )
        parser.add_argument('--version', action='version', version=f'hydrotune {__version__}')

        subparsers = parser.add_subparsers(
            dest='command',
            required=True,
            help='Command',
            metavar='<command>'
        )

        calibrate_parser = subparsers.add_parser(
            'calibrate',
            help='Run a calibration',
            parents=[self.common_parser]
        )
        calibrate_parser.add_argument('config_file', metavar='CONFIG',
                                      help='Path to the YAML configuration file')
        calibrate_parser.add_argument('--algorithm', type=str,
                                      help='Optimization algorithm (overrides OPTIMIZATION_ALGORITHM)')
        calibrate_parser.add_argument('--iterations', type=positive_int,
                                      help='Iterations/cycles (overrides NUMBER_OF_ITERATIONS)')
        calibrate_parser.add_argument('--max-evaluations', type=positive_int, dest='max_evaluations',
                                      help='Evaluation budget (overrides MAX_EVALUATIONS)')
        calibrate_parser.add_argument('--workers', type=positive_int,
                                      help='Concurrent simulator runs (overrides PARALLEL_WORKERS)')
        calibrate_parser.add_argument('--seed', type=int,
                                      help='Random seed (overrides RANDOM_SEED)')
        calibrate_parser.add_argument('--experiment-id', type=str, dest='experiment_id',
                                      help='Experiment identifier (overrides EXPERIMENT_ID)')
        calibrate_parser.add_argument('--no-save', action='store_true', dest='no_save',
                                      help='Do not write result files')
        calibrate_parser.set_defaults(func=CalibrationCommands.calibrate)

        validate_parser = subparsers.add_parser(
            'validate',
            help='Validate a configuration file',
            parents=[self.common_parser]
        )
        validate_parser.add_argument('config_file', metavar='CONFIG',
                                     help='Path to the YAML configuration file')
        validate_parser.set_defaults(func=CalibrationCommands.validate)

        metrics_parser = subparsers.add_parser('metrics', help='List available scoring metrics')
        metrics_parser.set_defaults(func=CalibrationCommands.metrics)

        algorithms_parser = subparsers.add_parser('algorithms', help='List optimization algorithms')
        algorithms_parser.set_defaults(func=CalibrationCommands.algorithms)

        return parser

    def parse_args(self, args: Optional[List[str]] = None) -> argparse.Namespace:
        return self.parser.parse_args(args)
