# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2024-2026 hydrotune Team

"""
Shuffled Complex Evolution (SCE-UA) Algorithm

Global optimization for conceptual rainfall-runoff calibration, combining
controlled random search, competitive evolution and complex shuffling.

The population is partitioned into complexes. Each complex evolves by
repeatedly drawing a subcomplex (biased towards its better members) and
replacing the subcomplex's worst point with a reflection, a contraction,
or a random point. Complexes are shuffled back together after every cycle.

Here all complexes take their evolution steps in lockstep so that the
reflections (then contractions, then random points) of every complex form
one batch, which the engine can simulate in parallel.

Reference:
    Duan, Q., Sorooshian, S., and Gupta, V.K. (1992). Effective and efficient
    global optimization for conceptual rainfall-runoff models. Water Resources
    Research, 28(4), 1015-1031.

    Duan, Q., Sorooshian, S., and Gupta, V.K. (1994). Optimal use of the SCE-UA
    global optimization method for calibrating watershed models. Journal of
    Hydrology, 158, 265-284.
"""

from typing import Any, Dict, List, Tuple

import numpy as np

from .base_algorithm import OptimizationAlgorithm


class SCEUAAlgorithm(OptimizationAlgorithm):
    """Shuffled Complex Evolution algorithm (minimization, unit hypercube)."""

    @property
    def name(self) -> str:
        """Algorithm identifier for logging and result tracking."""
        return "SCE-UA"

    def _setting(self, attr: str, key: str, default: Any) -> Any:
        return self._get_config_value(
            lambda: getattr(self.config.optimization.sce_ua, attr),
            default=default,
            dict_key=key,
        )

    def _population_sizes(self, n_params: int) -> Tuple[int, int, int, int]:
        ngs = max(1, int(self._setting('number_of_complexes', 'NUMBER_OF_COMPLEXES', 2)))
        npg = int(self._setting('points_per_complex', 'POINTS_PER_COMPLEX', 2 * n_params + 1))
        nps = int(self._setting('points_per_subcomplex', 'POINTS_PER_SUBCOMPLEX', n_params + 1))
        nspl = int(self._setting('number_of_evolution_steps', 'NUMBER_OF_EVOLUTION_STEPS', npg))
        npg = max(npg, 2)
        nps = min(max(nps, 2), npg)
        return ngs, npg, nps, max(nspl, 1)

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
        """
        Run SCE-UA.

        Args:
            n_params: Number of parameters
            evaluate_solution: Single-point evaluation (unused; batches are used)
            evaluate_population: Batch evaluation callback
            record_iteration: Called with (cycle, best, worst) after every shuffle
            initial_solution: Optional normalized point placed in the initial population
            rng: Seeded generator; the only source of randomness
            **kwargs: ``sample_population(n)`` returns an (n, n_params) initial sample

        Returns:
            Optimization result dictionary
        """
        rng = rng if rng is not None else np.random.default_rng()
        ngs, npg, nps, nspl = self._population_sizes(n_params)
        npt = ngs * npg

        tolsteps = int(self._setting('evolution_stagnation', 'EVOLUTION_STAGNATION', 5))
        reltol = float(self._setting('percent_change_threshold', 'PERCENT_CHANGE_THRESHOLD', 0.01))
        peps = float(self._setting('population_convergence', 'POPULATION_CONVERGENCE', 1e-3))

        self.logger.info(
            f"Starting SCE-UA with {ngs} complexes x {npg} points, "
            f"{nps}-point subcomplexes, {nspl} evolution steps per cycle"
        )

        sampler = kwargs.get('sample_population')
        if sampler is not None:
            population = np.asarray(sampler(npt), dtype=float)
        else:
            population = rng.random((npt, n_params))
        if initial_solution is not None:
            population[0] = self._start_point(n_params, initial_solution)

        scores = np.asarray(evaluate_population(population, 0), dtype=float)
        population, scores = self._sort(population, scores)
        record_iteration(0, scores[0], scores[-1])

        prev_best = scores[0]
        stagnant = 0
        converged, message = False, f"iteration limit of {self.max_iterations} reached"
        cycle = 0

        for cycle in range(1, self.max_iterations + 1):
            complexes = [np.arange(k, npt, ngs) for k in range(ngs)]
            cx = [population[idx].copy() for idx in complexes]
            cf = [scores[idx].copy() for idx in complexes]

            for _ in range(nspl):
                self._evolution_step(cx, cf, nps, rng, evaluate_population, cycle)

            population, scores = self._sort(np.vstack(cx), np.concatenate(cf))
            best, worst = scores[0], scores[-1]
            record_iteration(cycle, best, worst)

            improvement = (prev_best - best) / max(abs(prev_best), 1e-12)
            stagnant = stagnant + 1 if improvement < reltol else 0
            prev_best = best

            if stagnant >= tolsteps:
                converged = True
                message = f"best score improved by less than {reltol:.2%} for {tolsteps} cycles"
                break

            spread = np.ptp(population, axis=0)
            if peps > 0 and np.exp(np.mean(np.log(spread + 1e-300))) < peps:
                converged = True
                message = "population collapsed below population_convergence"
                break

        self.logger.info(f"SCE-UA stopped after {cycle} cycles: {message}")
        return self._result(population[0].copy(), scores[0], cycle, converged, message)

    # ------------------------------------------------------------------
    # Competitive complex evolution
    # ------------------------------------------------------------------

    def _evolution_step(
        self,
        cx: List[np.ndarray],
        cf: List[np.ndarray],
        nps: int,
        rng: np.random.Generator,
        evaluate_population,
        cycle: int,
    ) -> None:
        """One lockstep evolution step of every complex, updating cx/cf in place."""
        ngs = len(cx)
        worst_idx = np.empty(ngs, dtype=int)
        centroids = []
        reflections = []
        boxes = []

        for k in range(ngs):
            sub = self._select_subcomplex_indices(len(cf[k]), nps, rng)
            sub = sub[np.argsort(cf[k][sub], kind='stable')]
            worst_idx[k] = sub[-1]
            centroid = cx[k][sub[:-1]].mean(axis=0)
            box = (cx[k].min(axis=0), cx[k].max(axis=0))

            reflection = 2.0 * centroid - cx[k][sub[-1]]
            if np.any(reflection < 0.0) or np.any(reflection > 1.0):
                # Out of bounds: mutate within the complex's bounding box
                reflection = rng.uniform(box[0], box[1])

            centroids.append(centroid)
            reflections.append(reflection)
            boxes.append(box)

        f_reflect = np.asarray(evaluate_population(np.array(reflections), cycle), dtype=float)
        rejected = []
        for k in range(ngs):
            if f_reflect[k] < cf[k][worst_idx[k]]:
                self._replace(cx, cf, k, worst_idx[k], reflections[k], f_reflect[k])
            else:
                rejected.append(k)
        if not rejected:
            return

        contractions = np.array([(centroids[k] + cx[k][worst_idx[k]]) / 2.0 for k in rejected])
        f_contract = np.asarray(evaluate_population(contractions, cycle), dtype=float)
        still_rejected = []
        for j, k in enumerate(rejected):
            if f_contract[j] < cf[k][worst_idx[k]]:
                self._replace(cx, cf, k, worst_idx[k], contractions[j], f_contract[j])
            else:
                still_rejected.append(k)
        if not still_rejected:
            return

        randoms = np.array([rng.uniform(boxes[k][0], boxes[k][1]) for k in still_rejected])
        f_random = np.asarray(evaluate_population(randoms, cycle), dtype=float)
        for j, k in enumerate(still_rejected):
            self._replace(cx, cf, k, worst_idx[k], randoms[j], f_random[j])

    @staticmethod
    def _replace(cx, cf, k: int, idx: int, x: np.ndarray, f: float) -> None:
        cx[k][idx] = np.clip(x, 0.0, 1.0)
        cf[k][idx] = f
        order = np.argsort(cf[k], kind='stable')
        cx[k] = cx[k][order]
        cf[k] = cf[k][order]

    @staticmethod
    def _select_subcomplex_indices(npg: int, nps: int, rng: np.random.Generator) -> np.ndarray:
        """
        Draw a subcomplex with trapezoidal probabilities favouring better points.

        The complex is sorted best first, so rank i gets
        p_i = 2(npg - i) / (npg(npg + 1)).
        """
        ranks = np.arange(npg)
        probs = 2.0 * (npg - ranks) / (npg * (npg + 1))
        probs = probs / probs.sum()
        return rng.choice(npg, size=nps, replace=False, p=probs)

    @staticmethod
    def _sort(population: np.ndarray, scores: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        order = np.argsort(scores, kind='stable')
        return population[order], scores[order]
