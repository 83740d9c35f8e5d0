"""constraintkit: declarative constraint validation for Python object graphs."""
from constraintkit.core.errors import (
    ConfigurationError,
    ConstraintKitError,
    EvaluationError,
)
from constraintkit.validation import *  # noqa: F403
from constraintkit.validation import __all__ as _validation_all

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "ConstraintKitError",
    "EvaluationError",
    *_validation_all,
]
