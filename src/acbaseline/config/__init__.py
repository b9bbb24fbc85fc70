"""
Configuration package for the AC baseline library.
Provides hierarchical, validatable configuration management.
"""

from .base import (
    BaseConfig,
    ConfigFormat,
    ValidationLevel,
    ConfigValidationResult
)

from .engine_config import (
    FitConfig,
    PredictionConfig,
    OptimizerConfig,
    AnalysisConfig,
    MonitoringConfig,
    BaselineConfig
)

__all__ = [
    # Base configuration classes
    "BaseConfig",
    "ConfigFormat",
    "ValidationLevel",
    "ConfigValidationResult",

    # Component configurations
    "FitConfig",
    "PredictionConfig",
    "OptimizerConfig",
    "AnalysisConfig",
    "MonitoringConfig",

    # Main configuration class
    "BaselineConfig"
]
