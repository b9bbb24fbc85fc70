"""Data models for the AC baseline library."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union
import math

from .exceptions import ValidationError
from .validation import ObservationValidator, Validator

class ModelKind(str, Enum):
    """Regression model families."""
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    LOGARITHMIC = "logarithmic"
    EXPONENTIAL = "exponential"

    @classmethod
    def parse(cls, value: Union[str, "ModelKind"]) -> "ModelKind":
        """Resolve a family name, raising ValidationError for unknown names."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(kind.value for kind in cls)
            raise ValidationError(f"Unknown model family '{value}'. Must be one of: {valid}")

# Fit order; earlier families win ranking ties.
MODEL_KINDS: Tuple[ModelKind, ...] = (
    ModelKind.LINEAR,
    ModelKind.QUADRATIC,
    ModelKind.LOGARITHMIC,
    ModelKind.EXPONENTIAL,
)

DateLike = Union[str, date, datetime]

@dataclass(frozen=True)
class Observation:
    """One billing period of historical usage."""
    temperature: float  # °C, period average
    total_energy: float  # kWh
    date: DateLike
    hourly_temperatures: Optional[Tuple[float, ...]] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Observation":
        """Create from the camelCase wire shape."""
        if not isinstance(data, Mapping):
            raise ValidationError(f"Observation must be an object, got {type(data).__name__}")

        energy = data.get("totalEnergy", data.get("kwh"))
        if energy is None:
            raise ValidationError("Observation is missing 'totalEnergy'")
        if "temperature" not in data:
            raise ValidationError("Observation is missing 'temperature'")
        if data.get("date") is None:
            raise ValidationError("Observation is missing 'date'")
        Validator.validate_type(data["date"], (str, date, datetime))

        hourly = data.get("hourlyTemperatures", data.get("hourlyTemps"))
        return cls(
            temperature=Validator.validate_finite(data["temperature"], "temperature"),
            total_energy=Validator.validate_finite(energy, "totalEnergy"),
            date=data["date"],
            hourly_temperatures=ObservationValidator.validate_hourly(hourly) or None,
        )

    @property
    def label(self) -> str:
        """Period label as it appears in diagnostics."""
        if isinstance(self.date, (date, datetime)):
            return self.date.strftime("%Y-%m")
        return str(self.date)

def _format_number(value: float) -> str:
    return f"{value:.4f}"

def _signed(value: float) -> str:
    return f"- {_format_number(abs(value))}" if value < 0 else f"+ {_format_number(value)}"

class RegressionModel(ABC):
    """A fitted temperature -> AC power model.

    Variants carry only the coefficients of their family. ``requested_kind``
    records which family the caller asked for; when it differs from ``kind``
    the fitter fell back to a simpler model and ``fallback_reason`` says why.
    """

    kind: ClassVar[ModelKind]
    r_squared: float
    requested_kind: Optional[ModelKind]
    fallback_reason: Optional[str]
    n_points: int

    @abstractmethod
    def evaluate(self, x: float) -> float:
        """Instantaneous AC power at temperature ``x``."""
        pass

    @property
    @abstractmethod
    def equation(self) -> str:
        """Human-readable formula."""
        pass

    @abstractmethod
    def _parameters(self) -> Dict[str, Any]:
        pass

    @property
    def requested(self) -> ModelKind:
        return self.requested_kind or self.kind

    @property
    def fell_back(self) -> bool:
        return self.requested != self.kind

    @property
    def clamped_r_squared(self) -> float:
        """R² clamped to [0, 1] for display."""
        if math.isnan(self.r_squared):
            return 0.0
        return min(1.0, max(0.0, self.r_squared))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored-baseline shape."""
        return {
            "type": self.kind.value,
            "requestedType": self.requested.value,
            **self._parameters(),
            "rSquared": self.r_squared,
            "equation": self.equation,
            "fallbackReason": self.fallback_reason,
            "nPoints": self.n_points,
        }

@dataclass(frozen=True)
class LinearModel(RegressionModel):
    """y = slope * x + intercept"""
    slope: float
    intercept: float
    r_squared: float
    requested_kind: Optional[ModelKind] = None
    fallback_reason: Optional[str] = None
    n_points: int = 0

    kind: ClassVar[ModelKind] = ModelKind.LINEAR

    def evaluate(self, x: float) -> float:
        return self.slope * x + self.intercept

    @property
    def equation(self) -> str:
        return f"y = {_format_number(self.slope)}x {_signed(self.intercept)}"

    def _parameters(self) -> Dict[str, Any]:
        return {"slope": self.slope, "intercept": self.intercept}

@dataclass(frozen=True)
class QuadraticModel(RegressionModel):
    """y = a * x^2 + b * x + c"""
    a: float
    b: float
    c: float
    r_squared: float
    requested_kind: Optional[ModelKind] = None
    fallback_reason: Optional[str] = None
    n_points: int = 0

    kind: ClassVar[ModelKind] = ModelKind.QUADRATIC

    def evaluate(self, x: float) -> float:
        return self.a * x * x + self.b * x + self.c

    @property
    def equation(self) -> str:
        return f"y = {_format_number(self.a)}x² {_signed(self.b)}x {_signed(self.c)}"

    def _parameters(self) -> Dict[str, Any]:
        return {"coefficients": {"a": self.a, "b": self.b, "c": self.c}}

@dataclass(frozen=True)
class LogarithmicModel(RegressionModel):
    """y = a * ln(x) + b, zero for x <= 0"""
    a: float
    b: float
    r_squared: float
    requested_kind: Optional[ModelKind] = None
    fallback_reason: Optional[str] = None
    n_points: int = 0

    kind: ClassVar[ModelKind] = ModelKind.LOGARITHMIC

    def evaluate(self, x: float) -> float:
        if x <= 0:
            return 0.0
        return self.a * math.log(x) + self.b

    @property
    def equation(self) -> str:
        return f"y = {_format_number(self.a)}ln(x) {_signed(self.b)}"

    def _parameters(self) -> Dict[str, Any]:
        return {"coefficients": {"a": self.a, "b": self.b}}

@dataclass(frozen=True)
class ExponentialModel(RegressionModel):
    """y = a * e^(b * x)"""
    a: float
    b: float
    r_squared: float
    requested_kind: Optional[ModelKind] = None
    fallback_reason: Optional[str] = None
    n_points: int = 0

    kind: ClassVar[ModelKind] = ModelKind.EXPONENTIAL

    def evaluate(self, x: float) -> float:
        try:
            return self.a * math.exp(self.b * x)
        except OverflowError:
            return math.copysign(math.inf, self.a)

    @property
    def equation(self) -> str:
        return f"y = {_format_number(self.a)}e^({_format_number(self.b)}x)"

    def _parameters(self) -> Dict[str, Any]:
        return {"coefficients": {"a": self.a, "b": self.b}}

def regression_model_from_dict(data: Mapping[str, Any]) -> RegressionModel:
    """Rebuild a model from its stored-baseline shape."""
    if not isinstance(data, Mapping):
        raise ValidationError(f"Model must be an object, got {type(data).__name__}")

    kind = ModelKind.parse(data.get("type"))
    requested = data.get("requestedType")
    common = {
        "r_squared": float(data["rSquared"]) if data.get("rSquared") is not None else math.nan,
        "requested_kind": ModelKind.parse(requested) if requested else None,
        "fallback_reason": data.get("fallbackReason"),
        "n_points": int(data.get("nPoints") or 0),
    }
    coefficients = data.get("coefficients") or {}

    def coefficient(name: str) -> float:
        if name not in coefficients:
            raise ValidationError(f"{kind.value} model is missing coefficient '{name}'")
        return Validator.validate_finite(coefficients[name], f"coefficient {name}")

    if kind is ModelKind.LINEAR:
        if "slope" not in data or "intercept" not in data:
            raise ValidationError("linear model requires 'slope' and 'intercept'")
        return LinearModel(
            slope=Validator.validate_finite(data["slope"], "slope"),
            intercept=Validator.validate_finite(data["intercept"], "intercept"),
            **common
        )
    if kind is ModelKind.QUADRATIC:
        return QuadraticModel(
            a=coefficient("a"), b=coefficient("b"), c=coefficient("c"), **common
        )
    if kind is ModelKind.LOGARITHMIC:
        return LogarithmicModel(a=coefficient("a"), b=coefficient("b"), **common)
    return ExponentialModel(a=coefficient("a"), b=coefficient("b"), **common)

@dataclass(frozen=True)
class PeriodResult:
    """Diagnostic row for one observation under one model."""
    date: str
    total_energy: float
    expected_ac_energy: float
    non_ac_energy: float
    deviation: float
    temperature: float
    is_valid: bool
    used_hourly_data: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "totalEnergy": self.total_energy,
            "expectedACEnergy": self.expected_ac_energy,
            "nonACEnergy": self.non_ac_energy,
            "deviationFromTarget": self.deviation,
            "temperature": self.temperature,
            "isValid": self.is_valid,
            "usedHourlyData": self.used_hourly_data,
        }

@dataclass(frozen=True)
class OptimizationResult:
    """Evaluation of one model family against the target baseline."""
    model: RegressionModel
    requested_kind: ModelKind
    monthly_results: Tuple[PeriodResult, ...]
    total_deviation: float
    mean_deviation: float
    rmse: float
    max_deviation: float
    min_deviation: float
    invalid_count: int

    @property
    def is_valid(self) -> bool:
        return self.invalid_count == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": self.model.to_dict(),
            "requestedType": self.requested_kind.value,
            "monthlyResults": [row.to_dict() for row in self.monthly_results],
            "totalDeviation": self.total_deviation,
            "meanDeviation": self.mean_deviation,
            "rmse": self.rmse,
            "maxDeviation": self.max_deviation,
            "minDeviation": self.min_deviation,
            "invalidCount": self.invalid_count,
            "isValid": self.is_valid,
        }

@dataclass(frozen=True)
class OptimizationOutcome:
    """Ranked candidates for one optimization call."""
    candidates: Tuple[OptimizationResult, ...]
    best: OptimizationResult
    target_non_ac_energy: float
    excluded: Dict[ModelKind, str] = field(default_factory=dict)

    def candidate(self, kind: Union[str, ModelKind]) -> Optional[OptimizationResult]:
        """Result for a requested family, if it was fitted."""
        kind = ModelKind.parse(kind)
        for result in self.candidates:
            if result.requested_kind is kind:
                return result
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidates": [result.to_dict() for result in self.candidates],
            "best": self.best.to_dict(),
            "targetNonACEnergy": self.target_non_ac_energy,
            "excluded": {kind.value: reason for kind, reason in self.excluded.items()},
        }
