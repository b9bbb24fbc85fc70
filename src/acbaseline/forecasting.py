"""Forecast projections of AC usage from a saved baseline model."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence
import logging

import numpy as np
import pandas as pd

from .exceptions import ForecastError
from .models import Observation, RegressionModel
from .prediction import UsagePredictor, hours_in_period, period_start

@dataclass(frozen=True)
class Projection:
    """Projected AC usage for one month."""
    label: str  # e.g. "Jan 2024"
    period: str  # e.g. "2024-01"
    value: float  # kWh
    temperature: float  # average °C
    used_hourly_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "period": self.period,
            "value": self.value,
            "temperature": self.temperature,
            "usedHourlyData": self.used_hourly_data
        }

class ForecastProjector:
    """Projects monthly AC usage from temperature readings."""

    def __init__(self, predictor: Optional[UsagePredictor] = None):
        self.predictor = predictor or UsagePredictor()
        self.logger = logging.getLogger("acbaseline.forecasting")

    def project_month(
        self,
        model: RegressionModel,
        year: int,
        month: int,
        temperatures: Sequence[float],
        hourly_temperatures: Optional[Sequence[float]] = None
    ) -> Projection:
        """Project one month's AC usage.

        ``temperatures`` are raw readings for the month and are averaged; if
        ``hourly_temperatures`` cover enough of the month they are used
        hour by hour instead.
        """
        if not 1 <= month <= 12:
            raise ForecastError(f"Month must be between 1 and 12, got {month}")

        readings = np.asarray(list(temperatures), dtype=float)
        if readings.size == 0:
            raise ForecastError(f"No temperature data available for {year}-{month:02d}")
        if not np.all(np.isfinite(readings)):
            raise ForecastError(f"Temperature readings for {year}-{month:02d} contain non-finite values")

        start = pd.Timestamp(year=year, month=month, day=1)
        observation = Observation(
            temperature=float(np.mean(readings)),
            total_energy=0.0,
            date=start.strftime("%Y-%m"),
            hourly_temperatures=tuple(hourly_temperatures) if hourly_temperatures else None
        )
        value, used_hourly = self.predictor.predict_observation(model, observation)

        self.logger.debug(
            f"Projected {observation.label}: {value:.2f} kWh at {observation.temperature:.1f}°C "
            f"over {hours_in_period(start)} hours"
        )

        return Projection(
            label=start.strftime("%b %Y"),
            period=observation.label,
            value=value,
            temperature=observation.temperature,
            used_hourly_data=used_hourly
        )

    def project_previous_month(
        self,
        model: RegressionModel,
        temperatures: Sequence[float],
        today: Optional[date] = None
    ) -> Projection:
        """Project the calendar month before ``today``."""
        current = period_start(today or date.today())
        previous = current - pd.DateOffset(months=1)
        return self.project_month(model, previous.year, previous.month, temperatures)

    def project_months(
        self,
        model: RegressionModel,
        monthly_temperatures: Mapping[str, Sequence[float]]
    ) -> List[Projection]:
        """Project several months keyed by period label (e.g. ``"2024-07"``)."""
        projections = []
        for period in sorted(monthly_temperatures, key=lambda p: period_start(p)):
            start = period_start(period)
            projections.append(
                self.project_month(model, start.year, start.month, monthly_temperatures[period])
            )
        return projections
