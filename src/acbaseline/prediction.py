"""Expected AC energy for a billing period from a fitted model."""

from typing import Optional, Sequence, Tuple, Union
import logging
import math
import numbers

import pandas as pd

from .config import PredictionConfig
from .exceptions import PredictionError, ValidationError
from .models import DateLike, Observation, RegressionModel
from .validation import Validator

HOURS_PER_DAY = 24


def period_start(period: DateLike) -> pd.Timestamp:
    """First instant of the month a period label or date falls in."""
    try:
        timestamp = pd.Timestamp(period)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Unrecognized period date {period!r}: {e}")
    if pd.isna(timestamp):
        raise ValidationError(f"Unrecognized period date {period!r}")
    return timestamp.normalize().replace(day=1)


def hours_in_period(period: DateLike) -> int:
    """Hours in the calendar month of ``period`` (leap years included)."""
    return period_start(period).days_in_month * HOURS_PER_DAY


class UsagePredictor:
    """Evaluates regression models over billing periods.

    A model maps temperature to average AC power (kW). Monthly mode evaluates
    it once at the period's average temperature and scales by the hours in
    the period; hourly mode sums one evaluation per hourly temperature. Each
    evaluated power is clamped at zero before it is accumulated.
    """

    def __init__(self, config: Optional[PredictionConfig] = None):
        self.config = config or PredictionConfig()
        self.logger = logging.getLogger("acbaseline.prediction")

    hours_in_period = staticmethod(hours_in_period)

    def predict(
        self,
        model: RegressionModel,
        temperature: Union[float, Sequence[float]],
        hours_in_period: float
    ) -> float:
        """Expected energy (kWh) for one period.

        Args:
            model: Fitted model
            temperature: Period average, or one temperature per hour
            hours_in_period: Hours the average temperature stands for
                (ignored in hourly mode)
        """
        if isinstance(temperature, numbers.Real):
            hours = Validator.validate_finite(hours_in_period, "hoursInPeriod")
            Validator.validate_range(hours, min_value=0)
            power = self._power(model, Validator.validate_finite(temperature, "temperature"))
            if hours == 0:
                # An empty window uses no energy, even at infinite power.
                return 0.0
            return power * hours

        temperatures = list(temperature)
        if not temperatures:
            raise PredictionError("Hourly mode needs at least one temperature")

        return math.fsum(
            self._power(model, Validator.validate_finite(temp, f"hourly temperature {i}"))
            for i, temp in enumerate(temperatures)
        )

    def uses_hourly(self, observation: Observation, hours: Optional[int] = None) -> bool:
        """Whether an observation has enough hourly temperatures for hourly mode."""
        if not observation.hourly_temperatures:
            return False
        hours = hours if hours is not None else hours_in_period(observation.date)
        coverage = len(observation.hourly_temperatures) / hours
        return coverage >= self.config.min_hourly_coverage

    def predict_observation(
        self,
        model: RegressionModel,
        observation: Observation
    ) -> Tuple[float, bool]:
        """Expected AC energy for an observation and whether hourly mode was used."""
        hours = hours_in_period(observation.date)

        if self.uses_hourly(observation, hours):
            return self.predict(model, observation.hourly_temperatures, hours), True

        if observation.hourly_temperatures:
            self.logger.debug(
                f"{observation.label}: {len(observation.hourly_temperatures)}/{hours} hourly "
                f"temperatures below coverage {self.config.min_hourly_coverage:.0%}, "
                f"using monthly average"
            )
        return self.predict(model, observation.temperature, hours), False

    @staticmethod
    def _power(model: RegressionModel, temperature: float) -> float:
        power = model.evaluate(temperature)
        if math.isnan(power):
            return math.inf
        return max(0.0, power)
