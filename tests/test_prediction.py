"""
Tests for period usage prediction.
"""

import sys
import math
from datetime import date
from pathlib import Path
import unittest

# Add the src directory to the path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from acbaseline.config import PredictionConfig
from acbaseline.exceptions import PredictionError, ValidationError, ValidationRangeError
from acbaseline.models import ExponentialModel, LinearModel, LogarithmicModel, Observation
from acbaseline.prediction import UsagePredictor, hours_in_period, period_start


class TestHoursInPeriod(unittest.TestCase):
    """Calendar hours per billing month."""

    def test_month_lengths(self):
        self.assertEqual(hours_in_period("2024-01"), 744)
        self.assertEqual(hours_in_period("2024-04"), 720)
        self.assertEqual(hours_in_period("2023-02"), 672)

    def test_leap_february(self):
        self.assertEqual(hours_in_period("2024-02"), 696)
        self.assertEqual(hours_in_period(date(2024, 2, 17)), 696)

    def test_period_start(self):
        start = period_start("2024-07-19")
        self.assertEqual((start.year, start.month, start.day), (2024, 7, 1))

    def test_unparseable_period(self):
        with self.assertRaises(ValidationError):
            hours_in_period("not-a-date")


class TestUsagePredictor(unittest.TestCase):
    """Monthly and hourly prediction modes."""

    def setUp(self):
        self.predictor = UsagePredictor()
        # 1 kW at 20°C, 2 kW at 30°C, negative below 10°C.
        self.model = LinearModel(slope=0.1, intercept=-1.0, r_squared=1.0)

    def test_monthly_mode(self):
        self.assertAlmostEqual(self.predictor.predict(self.model, 20, 744), 744.0)

    def test_monthly_power_clamped(self):
        self.assertEqual(self.predictor.predict(self.model, 5, 744), 0.0)

    def test_hourly_mode_clamps_each_hour(self):
        self.assertAlmostEqual(self.predictor.predict(self.model, [20, 5, 30], 3), 3.0)

    def test_hourly_matches_monthly_for_constant_temperature(self):
        monthly = self.predictor.predict(self.model, 25, 744)
        hourly = self.predictor.predict(self.model, [25.0] * 744, 744)
        self.assertAlmostEqual(hourly, monthly, places=8)

    def test_empty_hourly_sequence(self):
        with self.assertRaises(PredictionError):
            self.predictor.predict(self.model, [], 744)

    def test_invalid_hours(self):
        with self.assertRaises(ValidationRangeError):
            self.predictor.predict(self.model, 20, -1)
        with self.assertRaises(ValidationError):
            self.predictor.predict(self.model, 20, float("nan"))

    def test_logarithmic_outside_domain(self):
        model = LogarithmicModel(a=1.0, b=1.0, r_squared=1.0)
        self.assertEqual(self.predictor.predict(model, -3, 744), 0.0)

    def test_exponential_overflow(self):
        model = ExponentialModel(a=1.0, b=1000.0, r_squared=1.0)
        self.assertEqual(self.predictor.predict(model, 10, 744), math.inf)

    def test_zero_hours_uses_no_energy(self):
        model = ExponentialModel(a=1.0, b=1000.0, r_squared=1.0)
        self.assertEqual(self.predictor.predict(model, 10, 0), 0.0)
        self.assertEqual(self.predictor.predict(self.model, 30, 0), 0.0)

    def test_hourly_coverage_rule(self):
        half = Observation(30, 2000, "2024-01", hourly_temperatures=tuple([30.0] * 372))
        short = Observation(30, 2000, "2024-01", hourly_temperatures=tuple([30.0] * 371))

        self.assertTrue(self.predictor.uses_hourly(half))
        self.assertFalse(self.predictor.uses_hourly(short))
        self.assertFalse(self.predictor.uses_hourly(Observation(30, 2000, "2024-01")))

    def test_predict_observation(self):
        full = Observation(20, 2000, "2024-01", hourly_temperatures=tuple([30.0] * 744))
        energy, used_hourly = self.predictor.predict_observation(self.model, full)
        self.assertTrue(used_hourly)
        self.assertAlmostEqual(energy, 2 * 744, places=6)

        sparse = Observation(20, 2000, "2024-01", hourly_temperatures=(30.0, 30.0))
        energy, used_hourly = self.predictor.predict_observation(self.model, sparse)
        self.assertFalse(used_hourly)
        self.assertAlmostEqual(energy, 744.0)

    def test_coverage_is_configurable(self):
        predictor = UsagePredictor(PredictionConfig(min_hourly_coverage=0.9))
        observation = Observation(30, 2000, "2024-01", hourly_temperatures=tuple([30.0] * 600))
        self.assertFalse(predictor.uses_hourly(observation))


if __name__ == "__main__":
    unittest.main()
