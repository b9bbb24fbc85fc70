"""
Main baseline configuration class that integrates all configuration components.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List
import logging

from .base import BaseConfig, ConfigValidationResult, ValidationLevel
from ..models import MODEL_KINDS, ModelKind


@dataclass
class FitConfig:
    """Configuration for curve fitting."""
    singular_threshold: float = 1e-10
    min_quadratic_points: int = 4
    uniform_r_squared: bool = False

    def validate(self) -> ConfigValidationResult:
        """Validate fit configuration."""
        result = ConfigValidationResult(is_valid=True)

        if self.singular_threshold < 0:
            result.add_error(f"Singular threshold must be >= 0, got {self.singular_threshold}")

        if self.min_quadratic_points < 3:
            result.add_error(
                f"Quadratic fits need at least 3 points, got {self.min_quadratic_points}"
            )

        if self.uniform_r_squared:
            result.add_warning("R² is reported over the full data set for every family")

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "singular_threshold": self.singular_threshold,
            "min_quadratic_points": self.min_quadratic_points,
            "uniform_r_squared": self.uniform_r_squared
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FitConfig':
        return cls(
            singular_threshold=data.get("singular_threshold", 1e-10),
            min_quadratic_points=data.get("min_quadratic_points", 4),
            uniform_r_squared=data.get("uniform_r_squared", False)
        )


@dataclass
class PredictionConfig:
    """Configuration for usage prediction."""
    min_hourly_coverage: float = 0.5  # share of the period's hours

    def validate(self) -> ConfigValidationResult:
        """Validate prediction configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not 0 < self.min_hourly_coverage <= 1:
            result.add_error(
                f"Hourly coverage must be in (0, 1], got {self.min_hourly_coverage}"
            )

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {"min_hourly_coverage": self.min_hourly_coverage}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PredictionConfig':
        return cls(min_hourly_coverage=data.get("min_hourly_coverage", 0.5))


@dataclass
class OptimizerConfig:
    """Configuration for the baseline optimizer."""
    families: List[str] = field(default_factory=lambda: [kind.value for kind in MODEL_KINDS])
    parallel: bool = False
    max_workers: int = 4

    def validate(self) -> ConfigValidationResult:
        """Validate optimizer configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.families:
            result.add_error("At least one model family must be enabled")

        valid = {kind.value for kind in ModelKind}
        seen = set()
        for family in self.families:
            if family not in valid:
                result.add_error(f"Unknown model family: {family}")
            elif family in seen:
                result.add_warning(f"Duplicate model family: {family}")
            seen.add(family)

        if self.max_workers <= 0:
            result.add_error(f"Max workers must be > 0, got {self.max_workers}")

        return result

    @property
    def kinds(self) -> List[ModelKind]:
        """Enabled families in fit order, duplicates removed."""
        enabled = {ModelKind.parse(family) for family in self.families}
        return [kind for kind in MODEL_KINDS if kind in enabled]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "families": list(self.families),
            "parallel": self.parallel,
            "max_workers": self.max_workers
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OptimizerConfig':
        return cls(
            families=data.get("families", [kind.value for kind in MODEL_KINDS]),
            parallel=data.get("parallel", False),
            max_workers=data.get("max_workers", 4)
        )


@dataclass
class AnalysisConfig:
    """Configuration for bill analysis and reporting."""
    timezone: str = "UTC"
    trailing_months: int = 12

    def validate(self) -> ConfigValidationResult:
        """Validate analysis configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.timezone:
            result.add_error("Timezone cannot be empty")

        if self.trailing_months <= 0:
            result.add_error(f"Trailing months must be > 0, got {self.trailing_months}")

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {"timezone": self.timezone, "trailing_months": self.trailing_months}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisConfig':
        return cls(
            timezone=data.get("timezone", "UTC"),
            trailing_months=data.get("trailing_months", 12)
        )


@dataclass
class MonitoringConfig:
    """Configuration for logging."""
    configure_logging: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    def validate(self) -> ConfigValidationResult:
        """Validate monitoring configuration."""
        result = ConfigValidationResult(is_valid=True)

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            result.add_error(f"Invalid log level: {self.log_level}")

        return result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "configure_logging": self.configure_logging,
            "log_level": self.log_level,
            "log_file": self.log_file
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MonitoringConfig':
        return cls(
            configure_logging=data.get("configure_logging", False),
            log_level=data.get("log_level", "INFO"),
            log_file=data.get("log_file")
        )


@dataclass
class BaselineConfig(BaseConfig):
    """Main baseline engine configuration."""

    name: str = "AC Baseline"
    validation_level: ValidationLevel = ValidationLevel.STRICT

    fitting: FitConfig = field(default_factory=FitConfig)
    prediction: PredictionConfig = field(default_factory=PredictionConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    config_version: str = "1.0"

    def setup_logging(self) -> logging.Logger:
        """Setup logging based on monitoring configuration."""
        logger = logging.getLogger("acbaseline")
        logger.setLevel(getattr(logging, self.monitoring.log_level))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        # Console handler
        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        # File handler if specified
        if self.monitoring.log_file:
            file_handler = logging.FileHandler(self.monitoring.log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger

    def validate(self) -> ConfigValidationResult:
        """Validate the entire configuration."""
        result = ConfigValidationResult(is_valid=True)

        if not self.name:
            result.add_error("Configuration name cannot be empty")

        components = [
            ("fitting", self.fitting),
            ("prediction", self.prediction),
            ("optimizer", self.optimizer),
            ("analysis", self.analysis),
            ("monitoring", self.monitoring)
        ]

        for component_name, component in components:
            result.extend(component.validate(), component_name)

        return result

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "name": self.name,
            "validation_level": self.validation_level.value,
            "fitting": self.fitting.to_dict(),
            "prediction": self.prediction.to_dict(),
            "optimizer": self.optimizer.to_dict(),
            "analysis": self.analysis.to_dict(),
            "monitoring": self.monitoring.to_dict(),
            "config_version": self.config_version
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BaselineConfig':
        """Create configuration from dictionary."""
        return cls(
            name=data.get("name", "AC Baseline"),
            validation_level=ValidationLevel.parse(data.get("validation_level", "strict")),
            fitting=FitConfig.from_dict(cls.section(data, "fitting")),
            prediction=PredictionConfig.from_dict(cls.section(data, "prediction")),
            optimizer=OptimizerConfig.from_dict(cls.section(data, "optimizer")),
            analysis=AnalysisConfig.from_dict(cls.section(data, "analysis")),
            monitoring=MonitoringConfig.from_dict(cls.section(data, "monitoring")),
            config_version=data.get("config_version", "1.0")
        )

    def validate_and_log(self) -> bool:
        """Validate configuration and log results."""
        result = self.validate()

        logger = logging.getLogger("acbaseline.config")

        if result.is_valid:
            logger.info("Configuration validation passed")
        else:
            logger.error("Configuration validation failed")
            for error in result.errors:
                logger.error(f"Validation error: {error}")

        for warning in result.warnings:
            logger.warning(f"Validation warning: {warning}")

        return result.is_valid
