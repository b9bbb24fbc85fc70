"""
Baseline optimization: choose the AC model that best reproduces a target
non-AC (base-load) energy across historical billing periods.

The optimizer reverse-engineers the AC share each period would need for the
remaining usage to equal the target, fits every model family to that series
against temperature, and scores each fit by re-predicting the original
periods.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
import logging
import math
import time
import warnings

from .config import FitConfig, OptimizerConfig, PredictionConfig
from .exceptions import FitError, OptimizationError, PhysicalInvalidityWarning, ValidationError
from .fitting import CurveFitter
from .models import (
    ModelKind,
    Observation,
    OptimizationOutcome,
    OptimizationResult,
    PeriodResult,
    RegressionModel,
)
from .prediction import UsagePredictor, hours_in_period
from .validation import ObservationValidator, Validator


def rank_key(result: OptimizationResult) -> Tuple[int, float]:
    """Sort key: fully valid families first, then fewest invalid periods,
    then lowest mean deviation. Ties keep fit order."""
    deviation = result.mean_deviation
    return result.invalid_count, (math.inf if math.isnan(deviation) else deviation)


class BaselineOptimizer:
    """Ranks regression families against a target non-AC baseline."""

    def __init__(
        self,
        fitter: Optional[CurveFitter] = None,
        predictor: Optional[UsagePredictor] = None,
        config: Optional[OptimizerConfig] = None
    ):
        self.fitter = fitter or CurveFitter(FitConfig())
        self.predictor = predictor or UsagePredictor(PredictionConfig())
        self.config = config or OptimizerConfig()
        self.logger = logging.getLogger("acbaseline.optimization")

    def optimize(
        self,
        observations: Iterable[Union[Observation, Mapping[str, Any]]],
        target_non_ac_energy: float
    ) -> OptimizationOutcome:
        """Fit, score and rank every enabled model family.

        Args:
            observations: One entry per billing period
            target_non_ac_energy: Assumed constant base load per period (kWh)

        Returns:
            OptimizationOutcome with candidates sorted best-first

        Raises:
            ValidationError: empty input, negative target or malformed observation
            OptimizationError: no family could be fitted
        """
        start_time = time.time()
        data = self._validate(observations)
        target = ObservationValidator.validate_target(target_non_ac_energy)

        points = self._synthetic_points(data, target)
        models, excluded = self._fit_families(points)

        results = [
            self._evaluate(models[kind], kind, data, target)
            for kind in self.config.kinds
            if kind in models
        ]

        if not results:
            reasons = "; ".join(f"{kind.value}: {reason}" for kind, reason in excluded.items())
            raise OptimizationError(f"No model family could be fitted ({reasons})")

        candidates = tuple(sorted(results, key=rank_key))
        best = candidates[0]

        if not best.is_valid:
            message = (
                f"Best model ({best.model.kind.value}) predicts AC usage outside "
                f"(0, total) for {best.invalid_count} of {len(data)} periods"
            )
            self.logger.warning(message)
            warnings.warn(message, PhysicalInvalidityWarning, stacklevel=2)

        self.logger.info(
            f"Optimized {len(results)} families over {len(data)} periods in "
            f"{(time.time() - start_time) * 1000:.1f}ms: best={best.requested_kind.value} "
            f"({best.model.equation}), mean deviation={best.mean_deviation:.3f}"
        )

        return OptimizationOutcome(
            candidates=candidates,
            best=best,
            target_non_ac_energy=target,
            excluded=excluded
        )

    def _validate(
        self,
        observations: Iterable[Union[Observation, Mapping[str, Any]]]
    ) -> List[Observation]:
        if observations is None or isinstance(observations, (str, bytes, Mapping)):
            raise ValidationError("Observations must be a list of periods")

        data = []
        for index, item in enumerate(observations):
            observation = item if isinstance(item, Observation) else Observation.from_dict(item)
            Validator.validate_finite(observation.temperature, f"observation {index} temperature")
            Validator.validate_finite(observation.total_energy, f"observation {index} totalEnergy")
            ObservationValidator.validate_hourly(observation.hourly_temperatures)
            hours_in_period(observation.date)
            data.append(observation)

        if not data:
            raise ValidationError("Invalid data: must provide at least one observation")

        return data

    @staticmethod
    def _synthetic_points(data: Sequence[Observation], target: float) -> List[Tuple[float, float]]:
        """Average AC power each period needs for its non-AC energy to equal the target."""
        return [
            (obs.temperature, (obs.total_energy - target) / hours_in_period(obs.date))
            for obs in data
        ]

    def _fit_families(
        self,
        points: List[Tuple[float, float]]
    ) -> Tuple[Dict[ModelKind, RegressionModel], Dict[ModelKind, str]]:
        kinds = self.config.kinds
        models: Dict[ModelKind, RegressionModel] = {}
        excluded: Dict[ModelKind, str] = {}

        if self.config.parallel:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {kind: executor.submit(self.fitter.fit, points, kind) for kind in kinds}
                for kind, future in futures.items():
                    try:
                        models[kind] = future.result()
                    except FitError as e:
                        excluded[kind] = str(e)
        else:
            for kind in kinds:
                try:
                    models[kind] = self.fitter.fit(points, kind)
                except FitError as e:
                    excluded[kind] = str(e)

        for kind, reason in excluded.items():
            self.logger.warning(f"Excluding {kind.value} family: {reason}")

        return models, excluded

    def _evaluate(
        self,
        model: RegressionModel,
        requested: ModelKind,
        data: Sequence[Observation],
        target: float
    ) -> OptimizationResult:
        rows = []
        deviations = []
        invalid_count = 0

        for obs in data:
            expected, used_hourly = self.predictor.predict_observation(model, obs)
            non_ac = obs.total_energy - expected
            deviation = abs(non_ac - target)

            is_valid = 0 < expected < obs.total_energy
            if not is_valid:
                invalid_count += 1

            rows.append(PeriodResult(
                date=obs.label,
                total_energy=obs.total_energy,
                expected_ac_energy=expected,
                non_ac_energy=non_ac,
                deviation=deviation,
                temperature=obs.temperature,
                is_valid=is_valid,
                used_hourly_data=used_hourly
            ))
            deviations.append(deviation)

        n = len(deviations)
        total_deviation = math.fsum(deviations)
        result = OptimizationResult(
            model=model,
            requested_kind=requested,
            monthly_results=tuple(rows),
            total_deviation=total_deviation,
            mean_deviation=total_deviation / n,
            rmse=math.sqrt(math.fsum(d * d for d in deviations) / n),
            max_deviation=max(deviations),
            min_deviation=min(deviations),
            invalid_count=invalid_count
        )

        self.logger.debug(
            f"{requested.value}: fitted {model.kind.value}, mean deviation "
            f"{result.mean_deviation:.3f}, invalid periods {invalid_count}/{n}"
        )
        return result
