# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Handlers for calibration commands."""

from argparse import Namespace

from hydrotune.core.exceptions import OptimizationError
from hydrotune.evaluation import get_metric_info, list_available_metrics
from hydrotune.optimization import OptimizationManager
from hydrotune.optimization.core.parameter_space import ParameterSpace
from hydrotune.optimization.optimizers import list_algorithms
from hydrotune.project import LoggingManager

from ..exit_codes import ExitCode
from .base import BaseCommand, cli_exception_handler

ALGORITHM_DESCRIPTIONS = {
    'LBFGS': 'Bounded limited-memory BFGS (deterministic local descent)',
    'SCE-UA': 'Shuffled Complex Evolution (seeded global population search)',
}


class CalibrationCommands(BaseCommand):
    """Handlers for calibrate, validate, metrics and algorithms."""

    @staticmethod
    @cli_exception_handler
    def calibrate(args: Namespace) -> int:
        """
        Execute: hydrotune calibrate CONFIG

        Returns:
            Exit code (0 for success, non-zero for failure)
        """
        config = BaseCommand.load_typed_config(
            args.config_file, overrides=BaseCommand.collect_overrides(args)
        )
        logging_manager = LoggingManager(config, debug_mode=args.debug)
        try:
            manager = OptimizationManager(config, logging_manager.logger)
            try:
                trace = manager.run_calibration(save=not args.no_save)
            except OptimizationError as e:
                if e.trace is not None and e.trace.best is not None:
                    BaseCommand.print_info(
                        f"Best score before failure: {e.trace.best_score:.6g} "
                        f"({e.trace.n_evaluations} evaluations)"
                    )
                raise
        finally:
            logging_manager.close()

        BaseCommand.print_info(
            f"{trace.algorithm}: {trace.termination} ({trace.message}) after "
            f"{trace.n_evaluations} evaluations"
        )
        if trace.best is None:
            BaseCommand.print_error("No evaluation succeeded")
            return ExitCode.GENERAL_ERROR

        metric = manager.objective.metric_name
        BaseCommand.print_info(
            f"Best score: {trace.best_score:.6g} "
            f"({metric} = {manager.objective.raw_metric(trace.best_score):.6g})"
        )
        for name, value in trace.best_vector.items():
            BaseCommand.print_info(f"  {name:<24} {value:.6g}")
        if not args.no_save:
            BaseCommand.print_info(f"Results written to {manager.output_dir}")
        return ExitCode.SUCCESS

    @staticmethod
    @cli_exception_handler
    def validate(args: Namespace) -> int:
        """
        Execute: hydrotune validate CONFIG

        Loads the configuration and builds the parameter space without
        running anything.
        """
        config = BaseCommand.load_typed_config(args.config_file)
        space = ParameterSpace.from_config(config.parameters)

        BaseCommand.print_info(f"Configuration valid: {args.config_file}")
        BaseCommand.print_info(
            f"Algorithm: {config.optimization.algorithm} | Metric: {config.objective.metric} | "
            f"Iterations: {config.optimization.iterations} | Workers: {config.optimization.parallel_workers}"
        )
        BaseCommand.print_info(f"Parameters ({len(space)}):")
        for p in space.parameters:
            BaseCommand.print_info(
                f"  {p.name:<24} [{p.lower:.6g}, {p.upper:.6g}] initial={p.initial:.6g} "
                f"({p.change_mode.value} {p.attribute})"
            )
        return ExitCode.SUCCESS

    @staticmethod
    def metrics(args: Namespace) -> int:
        """Execute: hydrotune metrics"""
        for name in list_available_metrics():
            info = get_metric_info(name)
            BaseCommand.print_info(f"{name:<8} {info.direction:<9} {info.full_name}")
        return ExitCode.SUCCESS

    @staticmethod
    def algorithms(args: Namespace) -> int:
        """Execute: hydrotune algorithms"""
        for name in list_algorithms():
            BaseCommand.print_info(f"{name:<8} {ALGORITHM_DESCRIPTIONS.get(name, '')}")
        return ExitCode.SUCCESS
