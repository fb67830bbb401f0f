"""
Shared validation utilities for the @tool decorator.

All validators return True if valid, False if invalid (with logging).
"""

import inspect
import logging
from typing import Any, Callable, get_type_hints

# =============================================================================
# TYPE HINTS CACHE - Avoids expensive re-parsing of type hints
# =============================================================================
_type_hints_cache: dict[int, dict] = {}  # keyed by id(func)


def get_cached_type_hints(func: Callable) -> dict:
    """
    Get type hints for a function with caching.

    The same handler is inspected during decoration and again during
    schema generation, so results are cached by function identity.

    Args:
        func: Function to get type hints for

    Returns:
        dict: Type hints for the function (empty dict if resolution fails)
    """
    func_id = id(func)
    if func_id not in _type_hints_cache:
        try:
            _type_hints_cache[func_id] = get_type_hints(func)
        except (NameError, TypeError, AttributeError):
            # Unresolvable forward references (e.g. a TYPE_CHECKING-only ctx type):
            # keep the annotations that are already real types
            raw = getattr(func, "__annotations__", {})
            _type_hints_cache[func_id] = {
                k: v for k, v in raw.items() if not isinstance(v, str)
            }
    return _type_hints_cache[func_id]


def clear_type_hints_cache() -> None:
    """Clear the type hints cache (useful for testing or reloading)."""
    _type_hints_cache.clear()


def validate_callable(func: Any, decorator_name: str, logger: logging.Logger) -> bool:
    """Validate that the decorated object is callable."""
    if not callable(func):
        logger.error(
            "@%s decorator can only be applied to functions, got %s",
            decorator_name,
            type(func).__name__,
        )
        return False
    return True


def validate_has_name(
    func: Callable, decorator_name: str, logger: logging.Logger
) -> bool:
    """Validate that function has __name__ attribute."""
    if not hasattr(func, "__name__"):
        logger.error(
            "@%s decorator requires function to have __name__ attribute", decorator_name
        )
        return False
    return True


def check_docstring(func: Callable, logger: logging.Logger) -> bool:
    """
    Check if function has docstring, warn if missing.

    Returns:
        True (always - this is just a warning, not a validation failure)
    """
    if not inspect.getdoc(func):
        logger.warning(
            "'%s' has no docstring - description will be empty", func.__name__
        )
    return True


def check_return_type(func: Callable, expected_type: type, logger: logging.Logger) -> bool:
    """
    Check that the return annotation mentions the expected type.

    Only the raw annotation string is compared, so forward references
    never need resolving here.

    Returns:
        True (always - this is just a warning, not a validation failure)
    """
    raw_annotations = getattr(func, "__annotations__", {})
    if "return" not in raw_annotations:
        logger.warning(
            "'%s' has no return type annotation (should be '-> %s')",
            func.__name__,
            expected_type.__name__,
        )
        return True

    return_annotation = raw_annotations["return"]
    annotation_name = getattr(return_annotation, "__name__", str(return_annotation))
    if expected_type.__name__ not in annotation_name:
        logger.warning(
            "'%s' should return '%s', got '%s'",
            func.__name__,
            expected_type.__name__,
            return_annotation,
        )
    return True
