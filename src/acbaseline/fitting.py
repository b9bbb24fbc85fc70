"""Least-squares curve fitting of AC power against outdoor temperature.

Every family is solved in closed form from the normal equations:

* linear       y = slope * x + intercept
* quadratic    y = a * x^2 + b * x + c   (3x3 system, LU with partial pivoting)
* logarithmic  y = a * ln(x) + b         (points with x <= 0 dropped)
* exponential  y = a * e^(b * x)         (points with y <= 0 dropped, fit in ln(y))

Quadratic, logarithmic and exponential fits fall back to a linear fit when
their own system cannot be solved; the returned model records both the
requested family and the reason for the fallback.
"""

from dataclasses import replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union
import logging

import numpy as np

from .config import FitConfig
from .exceptions import DegenerateFitError, FitError, InsufficientDataError
from .models import (
    MODEL_KINDS,
    ExponentialModel,
    LinearModel,
    LogarithmicModel,
    ModelKind,
    QuadraticModel,
    RegressionModel,
)
from .validation import PointValidator

# Relative tolerance on Σ(x - x̄)² below which x carries no spread.
DEGENERATE_TOLERANCE = 1e-12

MIN_FIT_POINTS = 2


def least_squares_line(x: np.ndarray, y: np.ndarray) -> Tuple[float, float]:
    """Return (slope, intercept) of the ordinary least-squares line."""
    x_mean = float(np.mean(x))
    y_mean = float(np.mean(y))
    dx = x - x_mean
    sxx = float(np.dot(dx, dx))

    if sxx <= DEGENERATE_TOLERANCE * float(np.dot(x, x)):
        raise DegenerateFitError(
            f"x values have no usable spread (n={len(x)}, mean={x_mean}, "
            f"sum of squared deviations={sxx:.3g}); slope is undefined"
        )

    slope = float(np.dot(dx, y - y_mean)) / sxx
    intercept = y_mean - slope * x_mean
    return slope, intercept


def r_squared(actual: np.ndarray, predicted: np.ndarray) -> float:
    """Coefficient of determination, 1 - SSres / SStot."""
    residual = actual - predicted
    ss_res = float(np.dot(residual, residual))
    centered = actual - np.mean(actual)
    ss_tot = float(np.dot(centered, centered))

    if ss_tot == 0:
        # Constant response: only a perfect fit explains it.
        scale = max(1.0, float(np.dot(actual, actual)))
        return 1.0 if ss_res <= DEGENERATE_TOLERANCE * scale else 0.0

    return 1.0 - ss_res / ss_tot


class CurveFitter:
    """Fits regression models to (temperature, energy) pairs."""

    def __init__(self, config: Optional[FitConfig] = None):
        self.config = config or FitConfig()
        self.logger = logging.getLogger("acbaseline.fitting")

    def fit(self, points: Iterable[Any], family: Union[str, ModelKind]) -> RegressionModel:
        """Fit one model family.

        Args:
            points: ``(x, y)`` pairs or ``{"x": ..., "y": ...}`` mappings
            family: Requested model family

        Returns:
            The fitted model. ``model.kind`` is the family actually fitted,
            ``model.requested`` the one asked for.
            Quadratic requests with fewer than
            ``FitConfig.min_quadratic_points`` (default 4) points return a
            linear model with ``fallback_reason="insufficient_points"``:
            three coefficients through three points interpolate exactly.

        Raises:
            ValidationError: unknown family or non-finite coordinates
            InsufficientDataError: fewer than two points
            DegenerateFitError: no unique solution, even after fallback
            FitError: exponential parameters are not finite
        """
        kind = ModelKind.parse(family)
        pairs = PointValidator.validate_points(points)

        if len(pairs) < MIN_FIT_POINTS:
            raise InsufficientDataError(
                f"At least {MIN_FIT_POINTS} points are required, got {len(pairs)}"
            )

        x = np.array([pair[0] for pair in pairs], dtype=float)
        y = np.array([pair[1] for pair in pairs], dtype=float)

        fitters = {
            ModelKind.LINEAR: self._fit_linear,
            ModelKind.QUADRATIC: self._fit_quadratic,
            ModelKind.LOGARITHMIC: self._fit_logarithmic,
            ModelKind.EXPONENTIAL: self._fit_exponential,
        }
        model = fitters[kind](x, y)

        if self.config.uniform_r_squared:
            predicted = np.array([model.evaluate(value) for value in x])
            model = replace(model, r_squared=r_squared(y, predicted))

        self.logger.debug(
            f"Fitted {model.kind.value} (requested {kind.value}) to {len(pairs)} points: "
            f"{model.equation}, R²={model.r_squared:.4f}"
        )
        return model

    def fit_all(
        self,
        points: Iterable[Any],
        families: Optional[Iterable[Union[str, ModelKind]]] = None
    ) -> Tuple[Dict[ModelKind, RegressionModel], Dict[ModelKind, str]]:
        """Fit several families, collecting failures instead of raising."""
        pairs = PointValidator.validate_points(points)
        kinds = [ModelKind.parse(f) for f in families] if families is not None else list(MODEL_KINDS)

        models: Dict[ModelKind, RegressionModel] = {}
        failures: Dict[ModelKind, str] = {}
        for kind in kinds:
            try:
                models[kind] = self.fit(pairs, kind)
            except FitError as e:
                self.logger.warning(f"Could not fit {kind.value} model: {e}")
                failures[kind] = str(e)

        return models, failures

    def _fit_linear(
        self,
        x: np.ndarray,
        y: np.ndarray,
        requested: ModelKind = ModelKind.LINEAR,
        reason: Optional[str] = None
    ) -> LinearModel:
        if reason:
            self.logger.info(f"{requested.value} fit falling back to linear: {reason}")

        slope, intercept = least_squares_line(x, y)
        return LinearModel(
            slope=slope,
            intercept=intercept,
            r_squared=r_squared(y, slope * x + intercept),
            requested_kind=requested,
            fallback_reason=reason,
            n_points=len(x)
        )

    def _fit_quadratic(self, x: np.ndarray, y: np.ndarray) -> RegressionModel:
        n = len(x)
        if n < self.config.min_quadratic_points:
            # Three coefficients through three points interpolate, they do not regress.
            return self._fit_linear(x, y, ModelKind.QUADRATIC, "insufficient_points")

        # [n     Σx    Σx² ] [c]   [Σy   ]
        # [Σx    Σx²   Σx³ ] [b] = [Σxy  ]
        # [Σx²   Σx³   Σx⁴ ] [a]   [Σx²y ]
        power_sums = [float(np.sum(x ** k)) for k in range(5)]
        matrix = np.array([
            [power_sums[0], power_sums[1], power_sums[2]],
            [power_sums[1], power_sums[2], power_sums[3]],
            [power_sums[2], power_sums[3], power_sums[4]],
        ])
        rhs = np.array([np.sum(y), np.sum(x * y), np.sum(x * x * y)])

        determinant = float(np.linalg.det(matrix))
        if not np.isfinite(determinant) or abs(determinant) < self.config.singular_threshold:
            return self._fit_linear(x, y, ModelKind.QUADRATIC, "singular_matrix")

        try:
            c, b, a = np.linalg.solve(matrix, rhs)
        except np.linalg.LinAlgError:
            return self._fit_linear(x, y, ModelKind.QUADRATIC, "singular_matrix")

        predicted = a * x * x + b * x + c
        return QuadraticModel(
            a=float(a),
            b=float(b),
            c=float(c),
            r_squared=r_squared(y, predicted),
            requested_kind=ModelKind.QUADRATIC,
            n_points=n
        )

    def _fit_logarithmic(self, x: np.ndarray, y: np.ndarray) -> RegressionModel:
        mask = x > 0
        if np.count_nonzero(mask) < MIN_FIT_POINTS:
            return self._fit_linear(x, y, ModelKind.LOGARITHMIC, "insufficient_positive_x")

        ln_x = np.log(x[mask])
        valid_y = y[mask]
        try:
            a, b = least_squares_line(ln_x, valid_y)
        except DegenerateFitError:
            return self._fit_linear(x, y, ModelKind.LOGARITHMIC, "degenerate_positive_x")

        return LogarithmicModel(
            a=a,
            b=b,
            r_squared=r_squared(valid_y, a * ln_x + b),
            requested_kind=ModelKind.LOGARITHMIC,
            n_points=len(valid_y)
        )

    def _fit_exponential(self, x: np.ndarray, y: np.ndarray) -> RegressionModel:
        mask = y > 0
        if np.count_nonzero(mask) < MIN_FIT_POINTS:
            return self._fit_linear(x, y, ModelKind.EXPONENTIAL, "insufficient_positive_y")

        valid_x = x[mask]
        valid_y = y[mask]
        try:
            b, ln_a = least_squares_line(valid_x, np.log(valid_y))
        except DegenerateFitError:
            return self._fit_linear(x, y, ModelKind.EXPONENTIAL, "degenerate_positive_y")

        with np.errstate(over="ignore", invalid="ignore"):
            a = float(np.exp(ln_a))
            predicted = a * np.exp(b * valid_x)

        if not np.isfinite(a) or not np.all(np.isfinite(predicted)):
            raise FitError(f"Exponential fit overflowed (ln a={ln_a:.4g}, b={b:.4g})")

        return ExponentialModel(
            a=a,
            b=b,
            r_squared=r_squared(valid_y, predicted),
            requested_kind=ModelKind.EXPONENTIAL,
            n_points=len(valid_y)
        )
