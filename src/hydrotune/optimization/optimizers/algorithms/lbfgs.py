# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""Bounded L-BFGS gradient-based optimization.

Limited-memory BFGS approximates the inverse Hessian from a short history
of position and gradient differences. This variant works in the unit
hypercube and keeps every proposal feasible: gradients use one-sided
differences at the bounds, variables pressed against a bound are frozen for
the step, and the line search projects trial points onto the box.

It is deterministic: the same starting point and objective give the same
sequence of evaluations.

Each iteration costs up to 2N evaluations for the gradient (N parameters)
plus the line-search trials.

References:
    Liu, D.C. and Nocedal, J. (1989). On the limited memory BFGS method for
    large scale optimization. Mathematical Programming, 45, 503-528.

    Byrd, R.H., Lu, P., Nocedal, J. and Zhu, C. (1995). A limited memory
    algorithm for bound constrained optimization. SIAM Journal on Scientific
    Computing, 16(5), 1190-1208.
"""

from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Tuple

import numpy as np

from .base_algorithm import OptimizationAlgorithm

_CURVATURE_EPS = 1e-10


class LBFGSAlgorithm(OptimizationAlgorithm):
    """Projected L-BFGS with finite-difference gradients and Armijo backtracking.

    Stopping rules, in the order checked:
        - projected gradient infinity norm <= gtol
        - line search cannot find a decrease
        - relative score reduction <= ftol
        - step infinity norm <= xtol
        - iteration limit (not converged)

    Hyperparameters (from ``optimization.lbfgs``):
        - history_size: # of (s, y) pairs retained (default: 10)
        - lr: largest first step, in normalized units (default: 0.2)
        - c1: Armijo sufficient-decrease constant (default: 1e-4)
        - max_line_search: backtracking halvings per iteration (default: 20)
        - gradient_epsilon: finite-difference step (default: 1e-4)
        - ftol, xtol, gtol: tolerances
    """

    @property
    def name(self) -> str:
        """Algorithm identifier for logging and result tracking."""
        return "LBFGS"

    def _setting(self, attr: str, key: str, default: Any) -> Any:
        return self._get_config_value(
            lambda: getattr(self.config.optimization.lbfgs, attr),
            default=default,
            dict_key=key,
        )

    def optimize(
        self,
        n_params,
        evaluate_solution,
        evaluate_population,
        record_iteration,
        initial_solution=None,
        rng=None,
        **kwargs
    ) -> Dict[str, Any]:
        """Run bounded L-BFGS from the initial solution (midpoint if None)."""
        steps = int(kwargs.get('steps', self.max_iterations))
        history_size = int(self._setting('history_size', 'LBFGS_HISTORY_SIZE', 10))
        lr = float(self._setting('lr', 'LBFGS_LR', 0.2))
        c1 = float(self._setting('c1', 'LBFGS_C1', 1e-4))
        max_ls = int(self._setting('max_line_search', 'LBFGS_MAX_LINE_SEARCH', 20))
        eps = float(self._setting('gradient_epsilon', 'GRADIENT_EPSILON', 1e-4))
        ftol = float(self._setting('ftol', 'LBFGS_FTOL', 1e-8))
        xtol = float(self._setting('xtol', 'LBFGS_XTOL', 1e-8))
        gtol = float(self._setting('gtol', 'LBFGS_GTOL', 1e-6))

        self.logger.info(f"Starting L-BFGS optimization with {n_params} parameters")
        self.logger.debug(f"  Steps: {steps}, LR: {lr}, History size: {history_size}")

        x = self._start_point(n_params, initial_solution)
        f = evaluate_solution(x, 0)
        g = self._compute_gradient(x, f, evaluate_solution, eps, 0)

        s_history: Deque[np.ndarray] = deque(maxlen=history_size)
        y_history: Deque[np.ndarray] = deque(maxlen=history_size)

        best_x, best_f = x.copy(), f
        converged, message = False, f"iteration limit of {steps} reached"
        iteration = 0

        for iteration in range(1, steps + 1):
            if np.max(np.abs(self._projected_gradient(x, g))) <= gtol:
                record_iteration(iteration, best_f)
                converged, message = True, "projected gradient below gtol"
                break

            direction = self._mask_active(x, self._lbfgs_direction(g, s_history, y_history))
            if np.dot(g, direction) >= 0:
                # Curvature history no longer gives descent; restart from steepest descent
                s_history.clear()
                y_history.clear()
                direction = self._mask_active(x, -g)

            if s_history:
                initial_step = 1.0
            else:
                initial_step = min(1.0, lr / max(np.max(np.abs(direction)), 1e-12))

            x_new, f_new = self._line_search(
                x, f, g, direction, initial_step, c1, max_ls, evaluate_solution, iteration
            )
            if x_new is None:
                record_iteration(iteration, best_f)
                converged, message = True, "line search found no further decrease"
                break

            g_new = self._compute_gradient(x_new, f_new, evaluate_solution, eps, iteration)

            s = x_new - x
            y = g_new - g
            if np.dot(s, y) > _CURVATURE_EPS:
                s_history.append(s)
                y_history.append(y)

            f_prev = f
            x, f, g = x_new, f_new, g_new
            if f < best_f:
                best_x, best_f = x.copy(), f

            record_iteration(iteration, best_f)

            if abs(f_prev - f) <= ftol * max(abs(f_prev), abs(f), 1.0):
                converged, message = True, "relative score reduction below ftol"
                break
            if np.max(np.abs(s)) <= xtol:
                converged, message = True, "step size below xtol"
                break

        self.logger.info(f"L-BFGS stopped after {iteration} iterations: {message}")
        return self._result(best_x, best_f, iteration, converged, message)

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _compute_gradient(
        self,
        x: np.ndarray,
        f_x: float,
        evaluate_func: Callable[[np.ndarray, int], float],
        epsilon: float,
        iteration: int,
    ) -> np.ndarray:
        """
        Finite-difference gradient that never leaves [0, 1].

        Central differences in the interior; at a bound the side that would
        leave the box is replaced by the current point (one-sided difference).
        """
        gradient = np.zeros_like(x)
        for i in range(x.size):
            up = min(1.0, x[i] + epsilon)
            down = max(0.0, x[i] - epsilon)
            if up <= down:
                continue

            f_up = f_x
            if up != x[i]:
                x_up = x.copy()
                x_up[i] = up
                f_up = evaluate_func(x_up, iteration)

            f_down = f_x
            if down != x[i]:
                x_down = x.copy()
                x_down[i] = down
                f_down = evaluate_func(x_down, iteration)

            gradient[i] = (f_up - f_down) / (up - down)
        return gradient

    @staticmethod
    def _projected_gradient(x: np.ndarray, g: np.ndarray) -> np.ndarray:
        return np.clip(x - g, 0.0, 1.0) - x

    @staticmethod
    def _mask_active(x: np.ndarray, direction: np.ndarray) -> np.ndarray:
        """Zero the components that would push an active variable out of the box."""
        d = direction.copy()
        d[(x <= 0.0) & (d < 0.0)] = 0.0
        d[(x >= 1.0) & (d > 0.0)] = 0.0
        return d

    @staticmethod
    def _lbfgs_direction(gradient: np.ndarray, s_history, y_history) -> np.ndarray:
        """
        Two-loop recursion; returns the descent direction ``-H g``.
        """
        q = gradient.copy()
        rhos = [1.0 / np.dot(y, s) for s, y in zip(s_history, y_history)]
        alphas = []

        for s, y, rho in reversed(list(zip(s_history, y_history, rhos))):
            alpha = rho * np.dot(s, q)
            alphas.append(alpha)
            q = q - alpha * y
        alphas.reverse()

        if s_history:
            gamma = np.dot(s_history[-1], y_history[-1]) / np.dot(y_history[-1], y_history[-1])
        else:
            gamma = 1.0
        r = gamma * q

        for (s, y, rho), alpha in zip(zip(s_history, y_history, rhos), alphas):
            beta = rho * np.dot(y, r)
            r = r + (alpha - beta) * s

        return -r

    def _line_search(
        self,
        x: np.ndarray,
        f_x: float,
        g_x: np.ndarray,
        direction: np.ndarray,
        initial_step: float,
        c1: float,
        max_iter: int,
        evaluate_func: Callable[[np.ndarray, int], float],
        iteration: int,
    ) -> Tuple[Optional[np.ndarray], Optional[float]]:
        """
        Projected backtracking line search with the Armijo condition.

        Returns:
            (accepted point, its score), or (None, None) if no decrease was found
        """
        step = initial_step
        for _ in range(max_iter):
            x_trial = self._clip_to_bounds(x + step * direction)
            displacement = x_trial - x
            if not np.any(displacement):
                break
            f_trial = evaluate_func(x_trial, iteration)
            if f_trial <= f_x + c1 * np.dot(g_x, displacement):
                return x_trial, f_trial
            step *= 0.5
        return None, None
