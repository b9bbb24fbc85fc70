"""AC baseline library initialization."""

from .core import BaselineEngine
from .config import BaselineConfig
from .exceptions import (
    BaselineError,
    ValidationError,
    FitError,
    OptimizationError,
    PhysicalInvalidityWarning
)
from .models import (
    ModelKind,
    Observation,
    RegressionModel,
    LinearModel,
    QuadraticModel,
    LogarithmicModel,
    ExponentialModel,
    OptimizationResult,
    OptimizationOutcome
)
from .fitting import CurveFitter
from .prediction import UsagePredictor
from .optimization import BaselineOptimizer

__version__ = "0.1.0"
__license__ = "MIT"

__all__ = [
    "BaselineEngine",
    "BaselineConfig",
    "BaselineError",
    "ValidationError",
    "FitError",
    "OptimizationError",
    "PhysicalInvalidityWarning",
    "ModelKind",
    "Observation",
    "RegressionModel",
    "LinearModel",
    "QuadraticModel",
    "LogarithmicModel",
    "ExponentialModel",
    "OptimizationResult",
    "OptimizationOutcome",
    "CurveFitter",
    "UsagePredictor",
    "BaselineOptimizer"
]
