"""Core baseline engine wiring fitter, predictor and optimizer together."""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union
import logging
import numbers

from .analysis import BillAnalysis, BillAnalyzer, parse_bill_table, parse_hourly_temperatures
from .config import BaselineConfig, ValidationLevel
from .exceptions import ConfigurationError, ValidationError
from .fitting import CurveFitter
from .forecasting import ForecastProjector
from .models import ModelKind, Observation, OptimizationOutcome, RegressionModel, regression_model_from_dict
from .optimization import BaselineOptimizer
from .prediction import UsagePredictor

class BaselineEngine:
    """Entry point for baseline modelling.

    All collaborators are built from one configuration; dict-level methods
    accept and return the camelCase payloads used by HTTP callers.
    """

    def __init__(self, config: Optional[BaselineConfig] = None):
        """Initialize engine with configuration."""
        self.config = config or BaselineConfig()
        self.logger = logging.getLogger("acbaseline.engine")

        if self.config.monitoring.configure_logging:
            self.config.setup_logging()

        self._check_config()

        self.fitter = CurveFitter(self.config.fitting)
        self.predictor = UsagePredictor(self.config.prediction)
        self.optimizer = BaselineOptimizer(self.fitter, self.predictor, self.config.optimizer)
        self.projector = ForecastProjector(self.predictor)
        self.analyzer = BillAnalyzer(self.predictor, self.config.analysis)

    def _check_config(self) -> None:
        level = self.config.validation_level
        if level is ValidationLevel.PERMISSIVE:
            return

        result = self.config.validate()
        for warning in result.warnings:
            self.logger.warning(f"Configuration warning: {warning}")

        if result.is_valid:
            return
        if level is ValidationLevel.STRICT:
            raise ConfigurationError("; ".join(result.errors))
        for error in result.errors:
            self.logger.warning(f"Configuration error ignored: {error}")

    def fit(self, points: Iterable[Any], family: Union[str, ModelKind]) -> RegressionModel:
        """Fit one model family to (temperature, energy) pairs."""
        return self.fitter.fit(points, family)

    def predict(
        self,
        model: RegressionModel,
        temperature: Union[float, Sequence[float]],
        hours_in_period: float
    ) -> float:
        """Expected non-negative energy for one period."""
        return self.predictor.predict(model, temperature, hours_in_period)

    def optimize(
        self,
        observations: Iterable[Union[Observation, Mapping[str, Any]]],
        target_non_ac_energy: float
    ) -> OptimizationOutcome:
        """Rank model families against a target non-AC baseline."""
        return self.optimizer.optimize(observations, target_non_ac_energy)

    def analyze_bill(
        self,
        bill_text: str,
        model: Union[RegressionModel, Mapping[str, Any]],
        hourly_text: Optional[str] = None
    ) -> BillAnalysis:
        """Split a pasted bill table into AC and non-AC usage."""
        if not isinstance(model, RegressionModel):
            model = regression_model_from_dict(model)
        rows = parse_bill_table(bill_text)
        hourly = parse_hourly_temperatures(hourly_text) if hourly_text else None
        return self.analyzer.analyze(rows, model, hourly)

    def optimize_payload(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """``{"observations": [...], "targetNonACEnergy": n}`` -> candidates and best."""
        payload = self._require_mapping(payload)
        observations = payload.get("observations", payload.get("data"))
        if not isinstance(observations, list) or not observations:
            raise ValidationError("Invalid data: must provide array of observations")

        target = payload.get("targetNonACEnergy", payload.get("targetNonACKwh"))
        if target is None:
            raise ValidationError("Missing targetNonACEnergy")

        return self.optimize(observations, target).to_dict()

    def fit_payload(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """``{"points": [{"x", "y"}], "family": name}`` -> model.

        A quadratic request on fewer than ``min_quadratic_points`` points
        comes back as a linear model with ``requestedType: "quadratic"``.
        """
        payload = self._require_mapping(payload)
        if "family" not in payload:
            raise ValidationError("Missing model family")
        points = payload.get("points")
        if not isinstance(points, list):
            raise ValidationError("Points must be an array of {x, y} objects")
        return self.fit(points, payload["family"]).to_dict()

    def predict_payload(self, payload: Mapping[str, Any]) -> float:
        """``{"model": {...}, "temperature": n | [n], "hoursInPeriod": h}`` -> energy."""
        payload = self._require_mapping(payload)
        model = regression_model_from_dict(payload.get("model"))

        temperature = payload.get("temperature")
        if temperature is None:
            raise ValidationError("Missing temperature")
        if not isinstance(temperature, (numbers.Real, list, tuple)):
            raise ValidationError("Temperature must be a number or an array of numbers")

        hours = payload.get("hoursInPeriod")
        if hours is None:
            if isinstance(temperature, numbers.Real):
                raise ValidationError("Missing hoursInPeriod")
            hours = len(temperature)

        return self.predict(model, temperature, hours)

    def project_payload(self, payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """``{"model": {...}, "months": {"2024-07": [temps]}}`` -> projections."""
        payload = self._require_mapping(payload)
        model = regression_model_from_dict(payload.get("model"))
        months = payload.get("months")
        if not isinstance(months, Mapping) or not months:
            raise ValidationError("Months must map period labels to temperature readings")
        return [p.to_dict() for p in self.projector.project_months(model, months)]

    @staticmethod
    def _require_mapping(payload: Any) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping):
            raise ValidationError(f"Payload must be an object, got {type(payload).__name__}")
        return payload
