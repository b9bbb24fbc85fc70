"""
Tests for the baseline optimizer.

This test suite validates:
- Selection of the best model family against a target baseline
- Physical validity bookkeeping and the fallback ranking
- Family exclusion when a fit fails
- Input validation, determinism and parallel fitting
"""

import sys
import math
from pathlib import Path
import unittest
import warnings

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from acbaseline.config import OptimizerConfig
from acbaseline.exceptions import (
    DegenerateFitError, OptimizationError, PhysicalInvalidityWarning, ValidationError
)
from acbaseline.fitting import CurveFitter
from acbaseline.models import LinearModel, ModelKind, Observation, OptimizationResult
from acbaseline.optimization import BaselineOptimizer, rank_key
from acbaseline.prediction import hours_in_period

BILLS = [
    {"temperature": 10, "totalEnergy": 100, "date": "2024-01"},
    {"temperature": 20, "totalEnergy": 150, "date": "2024-02"},
    {"temperature": 30, "totalEnergy": 220, "date": "2024-03"},
]

SUMMER = [
    {"temperature": 12, "totalEnergy": 410, "date": "2023-01"},
    {"temperature": 15, "totalEnergy": 440, "date": "2023-02"},
    {"temperature": 19, "totalEnergy": 505, "date": "2023-03"},
    {"temperature": 23, "totalEnergy": 590, "date": "2023-04"},
    {"temperature": 27, "totalEnergy": 720, "date": "2023-05"},
    {"temperature": 31, "totalEnergy": 905, "date": "2023-06"},
    {"temperature": 33, "totalEnergy": 1010, "date": "2023-07"},
]


class QuadraticFailingFitter(CurveFitter):
    """Fitter whose quadratic family always fails."""

    def fit(self, points, family):
        if ModelKind.parse(family) is ModelKind.QUADRATIC:
            raise DegenerateFitError("quadratic unavailable")
        return super().fit(points, family)


class TestBaselineOptimizer(unittest.TestCase):
    """End-to-end optimization."""

    def setUp(self):
        self.optimizer = BaselineOptimizer()

    def test_linear_wins_three_months(self):
        outcome = self.optimizer.optimize(BILLS, 50)
        best = outcome.best

        self.assertEqual(best.requested_kind, ModelKind.LINEAR)
        self.assertEqual(best.model.kind, ModelKind.LINEAR)
        self.assertEqual(best.invalid_count, 0)
        self.assertTrue(best.is_valid)
        self.assertGreater(best.model.r_squared, 0.95)
        self.assertIs(outcome.candidates[0], best)

        for row in best.monthly_results:
            self.assertTrue(row.is_valid)
            self.assertGreater(row.expected_ac_energy, 0)
            self.assertLess(row.expected_ac_energy, row.total_energy)

    def test_every_family_is_a_candidate(self):
        outcome = self.optimizer.optimize(BILLS, 50)

        self.assertEqual(len(outcome.candidates), 4)
        self.assertEqual(
            {result.requested_kind for result in outcome.candidates}, set(ModelKind)
        )
        self.assertEqual(outcome.excluded, {})

        quadratic = outcome.candidate("quadratic")
        self.assertEqual(quadratic.model.kind, ModelKind.LINEAR)
        self.assertEqual(quadratic.model.fallback_reason, "insufficient_points")

    def test_deviation_aggregates(self):
        outcome = self.optimizer.optimize(BILLS, 50)

        for result in outcome.candidates:
            deviations = [row.deviation for row in result.monthly_results]
            self.assertAlmostEqual(result.total_deviation, sum(deviations))
            self.assertAlmostEqual(result.mean_deviation, sum(deviations) / 3)
            self.assertAlmostEqual(
                result.rmse, math.sqrt(sum(d * d for d in deviations) / 3)
            )
            self.assertEqual(result.max_deviation, max(deviations))
            self.assertEqual(result.min_deviation, min(deviations))

            for row in result.monthly_results:
                self.assertAlmostEqual(row.non_ac_energy, row.total_energy - row.expected_ac_energy)
                self.assertAlmostEqual(row.deviation, abs(row.non_ac_energy - 50))

    def test_candidates_sorted(self):
        outcome = self.optimizer.optimize(SUMMER, 350)
        keys = [rank_key(result) for result in outcome.candidates]
        self.assertEqual(keys, sorted(keys))

    def test_invalid_count_matches_rows(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", PhysicalInvalidityWarning)
            outcome = self.optimizer.optimize(SUMMER, 500)

        for result in outcome.candidates:
            invalid = sum(
                1 for row in result.monthly_results
                if not 0 < row.expected_ac_energy < row.total_energy
            )
            self.assertEqual(result.invalid_count, invalid)
            self.assertEqual(
                invalid, sum(1 for row in result.monthly_results if not row.is_valid)
            )

    def test_fewest_invalid_periods_when_none_valid(self):
        # A month with no usage can never have AC usage inside (0, total).
        data = [dict(row) for row in SUMMER]
        data[0]["totalEnergy"] = 0

        with self.assertWarns(PhysicalInvalidityWarning):
            outcome = self.optimizer.optimize(data, 350)

        fewest = min(result.invalid_count for result in outcome.candidates)
        tied = [r for r in outcome.candidates if r.invalid_count == fewest]

        self.assertFalse(outcome.best.is_valid)
        self.assertEqual(outcome.best.invalid_count, fewest)
        self.assertEqual(
            outcome.best.mean_deviation, min(r.mean_deviation for r in tied)
        )

    def test_no_warning_when_best_is_valid(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", PhysicalInvalidityWarning)
            self.optimizer.optimize(BILLS, 50)

    def test_deterministic(self):
        first = self.optimizer.optimize(SUMMER, 350).to_dict()
        second = BaselineOptimizer().optimize(SUMMER, 350).to_dict()
        self.assertEqual(first, second)

    def test_parallel_matches_sequential(self):
        parallel = BaselineOptimizer(config=OptimizerConfig(parallel=True, max_workers=2))
        self.assertEqual(
            parallel.optimize(SUMMER, 350).to_dict(),
            self.optimizer.optimize(SUMMER, 350).to_dict()
        )

    def test_failed_family_excluded(self):
        optimizer = BaselineOptimizer(fitter=QuadraticFailingFitter())
        outcome = optimizer.optimize(BILLS, 50)

        self.assertEqual(len(outcome.candidates), 3)
        self.assertIsNone(outcome.candidate(ModelKind.QUADRATIC))
        self.assertIn(ModelKind.QUADRATIC, outcome.excluded)
        self.assertEqual(outcome.to_dict()["excluded"], {"quadratic": "quadratic unavailable"})

    def test_overflowing_exponential_excluded(self):
        # Synthetic power drops from 1 kW to e^-20 kW over one degree.
        data = [
            {"temperature": 40, "totalEnergy": 50 + 744, "date": "2024-01"},
            {"temperature": 41, "totalEnergy": 50 + 696 * math.exp(-20), "date": "2024-02"},
        ]
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", PhysicalInvalidityWarning)
            outcome = self.optimizer.optimize(data, 50)

        self.assertIsNone(outcome.candidate("exponential"))
        self.assertIn("overflowed", outcome.excluded[ModelKind.EXPONENTIAL])
        self.assertEqual(
            {result.requested_kind for result in outcome.candidates},
            {ModelKind.LINEAR, ModelKind.QUADRATIC, ModelKind.LOGARITHMIC}
        )

    def test_no_family_fits(self):
        data = [
            {"temperature": 20, "totalEnergy": 300, "date": "2024-01"},
            {"temperature": 20, "totalEnergy": 350, "date": "2024-02"},
            {"temperature": 20, "totalEnergy": 400, "date": "2024-03"},
        ]
        with self.assertRaises(OptimizationError):
            self.optimizer.optimize(data, 100)

    def test_family_subset(self):
        optimizer = BaselineOptimizer(
            config=OptimizerConfig(families=["exponential", "linear", "linear"])
        )
        outcome = optimizer.optimize(BILLS, 50)

        self.assertEqual(
            [result.requested_kind for result in outcome.candidates],
            [ModelKind.LINEAR, ModelKind.EXPONENTIAL]
        )

    def test_hourly_observations(self):
        data = [
            Observation(
                temperature=row["temperature"],
                total_energy=row["totalEnergy"],
                date=row["date"],
                hourly_temperatures=tuple([float(row["temperature"])] * hours_in_period(row["date"]))
            )
            for row in BILLS
        ]
        hourly = self.optimizer.optimize(data, 50)
        monthly = self.optimizer.optimize(BILLS, 50)

        self.assertTrue(all(row.used_hourly_data for row in hourly.best.monthly_results))
        self.assertAlmostEqual(hourly.best.mean_deviation, monthly.best.mean_deviation, places=6)

    def test_legacy_observation_keys(self):
        data = [
            {"temperature": row["temperature"], "kwh": row["totalEnergy"], "date": row["date"]}
            for row in BILLS
        ]
        outcome = self.optimizer.optimize(data, 50)
        self.assertEqual(outcome.best.requested_kind, ModelKind.LINEAR)


class TestOptimizerValidation(unittest.TestCase):
    """Rejected inputs."""

    def setUp(self):
        self.optimizer = BaselineOptimizer()

    def test_empty_observations(self):
        with self.assertRaises(ValidationError):
            self.optimizer.optimize([], 50)

    def test_not_a_list(self):
        with self.assertRaises(ValidationError):
            self.optimizer.optimize(None, 50)
        with self.assertRaises(ValidationError):
            self.optimizer.optimize({"temperature": 10}, 50)

    def test_negative_target(self):
        with self.assertRaises(ValidationError):
            self.optimizer.optimize(BILLS, -1)

    def test_non_numeric_target(self):
        with self.assertRaises(ValidationError):
            self.optimizer.optimize(BILLS, "50")

    def test_malformed_observations(self):
        bad_rows = [
            {"totalEnergy": 100, "date": "2024-01"},
            {"temperature": 10, "date": "2024-01"},
            {"temperature": 10, "totalEnergy": 100},
            {"temperature": float("nan"), "totalEnergy": 100, "date": "2024-01"},
            {"temperature": 10, "totalEnergy": "100", "date": "2024-01"},
            {"temperature": 10, "totalEnergy": 100, "date": "someday"},
            {"temperature": 10, "totalEnergy": 100, "date": "2024-01", "hourlyTemperatures": "hot"},
        ]
        for row in bad_rows:
            with self.subTest(row=row):
                with self.assertRaises(ValidationError):
                    self.optimizer.optimize([row] + BILLS, 50)


class TestRanking(unittest.TestCase):
    """Ordering of candidate results."""

    def _result(self, kind, invalid_count, mean_deviation):
        return OptimizationResult(
            model=LinearModel(slope=1.0, intercept=0.0, r_squared=1.0, requested_kind=kind),
            requested_kind=kind,
            monthly_results=(),
            total_deviation=mean_deviation,
            mean_deviation=mean_deviation,
            rmse=mean_deviation,
            max_deviation=mean_deviation,
            min_deviation=mean_deviation,
            invalid_count=invalid_count
        )

    def test_valid_beats_lower_deviation(self):
        valid = self._result(ModelKind.EXPONENTIAL, 0, 40.0)
        invalid = self._result(ModelKind.LINEAR, 1, 1.0)
        self.assertEqual(sorted([invalid, valid], key=rank_key)[0], valid)

    def test_fewest_invalid_then_deviation(self):
        results = [
            self._result(ModelKind.LINEAR, 2, 1.0),
            self._result(ModelKind.QUADRATIC, 1, 5.0),
            self._result(ModelKind.LOGARITHMIC, 1, 3.0),
        ]
        best = sorted(results, key=rank_key)[0]
        self.assertEqual(best.requested_kind, ModelKind.LOGARITHMIC)

    def test_ties_keep_fit_order(self):
        results = [
            self._result(ModelKind.LINEAR, 0, 2.0),
            self._result(ModelKind.QUADRATIC, 0, 2.0),
        ]
        self.assertEqual(sorted(results, key=rank_key)[0].requested_kind, ModelKind.LINEAR)

    def test_nan_deviation_ranks_last(self):
        results = [
            self._result(ModelKind.LINEAR, 0, float("nan")),
            self._result(ModelKind.QUADRATIC, 0, 9.0),
        ]
        self.assertEqual(sorted(results, key=rank_key)[0].requested_kind, ModelKind.QUADRATIC)


if __name__ == "__main__":
    unittest.main()
