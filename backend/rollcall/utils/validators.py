"""Validation utilities and error types for the application."""
from typing import Dict, List, Any


class RollCallError(Exception):
    """Base error for unexpected conditions outside check-in validation."""
    pass


class ValidationError(RollCallError):
    """Custom validation error."""
    pass


class InvalidNameError(ValidationError):
    """A course or student name failed validation."""
    pass


class Validator:
    """Validation helper class."""

    @staticmethod
    def validate_name(name: str, min_length: int = 1, max_length: int = 100) -> Dict[str, Any]:
        """Validate a course or student name."""
        errors = []
        stripped = name.strip() if isinstance(name, str) else ''

        if not stripped:
            errors.append("Name is required")
        elif len(stripped) < min_length:
            errors.append(f"Name must be at least {min_length} characters long")
        elif len(stripped) > max_length:
            errors.append("Name is too long")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }

    @staticmethod
    def validate_required_fields(data: Dict, required_fields: List[str]) -> Dict[str, Any]:
        """Validate required fields in data."""
        errors = []

        for field in required_fields:
            if field not in data or data[field] in (None, ''):
                errors.append(f"{field} is required")

        return {
            "is_valid": len(errors) == 0,
            "errors": errors
        }
