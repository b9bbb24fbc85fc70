"""Validation utilities for observations and fit inputs."""

from typing import Any, Iterable, Optional, Sequence, Tuple, Type, Union
import math
import numbers

from .exceptions import ValidationError, ValidationTypeError, ValidationRangeError

class Validator:
    """Base validator class."""

    @staticmethod
    def validate_type(value: Any, expected_type: Union[Type, Tuple[Type, ...]]) -> None:
        """Validate value type."""
        if not isinstance(value, expected_type):
            names = (
                ", ".join(t.__name__ for t in expected_type)
                if isinstance(expected_type, tuple) else expected_type.__name__
            )
            raise ValidationTypeError(
                f"Expected type {names}, got {type(value).__name__}"
            )

    @staticmethod
    def validate_range(
        value: Union[int, float],
        min_value: Optional[Union[int, float]] = None,
        max_value: Optional[Union[int, float]] = None
    ) -> None:
        """Validate numeric range."""
        if min_value is not None and value < min_value:
            raise ValidationRangeError(f"Value {value} is below minimum {min_value}")

        if max_value is not None and value > max_value:
            raise ValidationRangeError(f"Value {value} exceeds maximum {max_value}")

    @staticmethod
    def validate_finite(value: Any, name: str = "value") -> float:
        """Validate that value is a real, finite number and return it as float."""
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ValidationTypeError(
                f"{name} must be a number, got {type(value).__name__}"
            )
        value = float(value)
        if not math.isfinite(value):
            raise ValidationRangeError(f"{name} must be finite, got {value}")
        return value

class PointValidator(Validator):
    """Validator for (x, y) fit inputs."""

    @staticmethod
    def validate_points(points: Iterable[Any]) -> Tuple[Tuple[float, float], ...]:
        """Normalize points given as pairs or {"x", "y"} mappings."""
        normalized = []
        for index, point in enumerate(points):
            if isinstance(point, dict):
                if "x" not in point or "y" not in point:
                    raise ValidationError(f"Point {index} is missing 'x' or 'y'")
                x, y = point["x"], point["y"]
            else:
                try:
                    x, y = point
                except (TypeError, ValueError):
                    raise ValidationError(f"Point {index} is not an (x, y) pair")
            normalized.append((
                Validator.validate_finite(x, f"point {index} x"),
                Validator.validate_finite(y, f"point {index} y"),
            ))
        return tuple(normalized)

class ObservationValidator(Validator):
    """Validator for optimizer inputs."""

    @staticmethod
    def validate_target(target: Any) -> float:
        """Validate the non-AC baseline target."""
        target = Validator.validate_finite(target, "targetNonACEnergy")
        if target < 0:
            raise ValidationRangeError(
                f"targetNonACEnergy must be a non-negative number, got {target}"
            )
        return target

    @staticmethod
    def validate_hourly(temperatures: Optional[Sequence[Any]]) -> Optional[Tuple[float, ...]]:
        """Validate an optional hourly temperature sequence."""
        if temperatures is None:
            return None
        if isinstance(temperatures, (str, bytes)):
            raise ValidationTypeError("hourlyTemperatures must be a sequence of numbers")
        return tuple(
            Validator.validate_finite(temp, f"hourly temperature {i}")
            for i, temp in enumerate(temperatures)
        )

