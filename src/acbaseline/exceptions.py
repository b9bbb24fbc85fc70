"""Custom exceptions for the AC baseline library."""

class BaselineError(Exception):
    """Base exception for baseline errors."""
    pass

class ValidationError(BaselineError):
    """Base exception for validation errors."""
    pass

class ValidationTypeError(ValidationError):
    """Exception raised for type validation errors."""
    pass

class ValidationRangeError(ValidationError):
    """Exception raised for range validation errors."""
    pass

class FitError(BaselineError):
    """Exception raised when a regression family cannot be fitted."""
    pass

class DegenerateFitError(FitError):
    """Exception raised when the least-squares system has no unique solution."""
    pass

class InsufficientDataError(FitError):
    """Exception raised when too few points are available for a fit."""
    pass

class OptimizationError(BaselineError):
    """Exception raised for optimization-related errors."""
    pass

class PredictionError(BaselineError):
    """Exception raised when a usage prediction cannot be made."""
    pass

class ForecastError(BaselineError):
    """Exception raised for forecasting errors."""
    pass

class AnalysisError(BaselineError):
    """Exception raised for bill analysis errors."""
    pass

class ConfigurationError(BaselineError):
    """Exception raised for configuration errors."""
    pass

class PhysicalInvalidityWarning(UserWarning):
    """Issued when a model predicts AC usage outside (0, total usage)."""
    pass
