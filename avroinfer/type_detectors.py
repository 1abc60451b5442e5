"""Detectors that classify JSON string values as special kinds.

A detector decides whether a string (or every string in an array) carries a
special meaning, such as being an identifier or a symbol of a closed set.
The inference engine consults detectors in descending priority order and
commits to the first one that matches, so new kinds are added by passing
another detector to the engine.
"""

import re
from typing import Any, List, Optional, Sequence


class TypeDetector:
    """Base class for string type detectors.

    Attributes:
        logical_type: Avro logical type assigned to matching values, or None
            if the detector only classifies arrays as enumerations
        priority: Detectors with higher priority are consulted first
    """

    logical_type: Optional[str] = None
    priority: int = 0

    def matches(self, value: Any) -> bool:
        """Checks if a single value matches this detector."""
        raise NotImplementedError

    def matches_array(self, values: Sequence[Any]) -> bool:
        """Checks if all non-null values of an array match this detector.

        Args:
            values: The array elements

        Returns:
            True if there is at least one non-null element and every
            non-null element is a matching string
        """
        non_null = [value for value in values if value is not None]
        if not non_null:
            return False
        return all(isinstance(value, str) and self.matches(value) for value in non_null)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(priority={self.priority}, logical_type={self.logical_type!r})"


class RegexTypeDetector(TypeDetector):
    """Matches strings of a minimum length against a regular expression."""

    def __init__(self, pattern: str, priority: int = 0, logical_type: Optional[str] = None, min_length: int = 1):
        self.regex = re.compile(pattern)
        self.priority = priority
        self.logical_type = logical_type
        self.min_length = min_length

    def matches(self, value: Any) -> bool:
        if not isinstance(value, str) or len(value) < self.min_length:
            return False
        return self.regex.fullmatch(value) is not None


class UuidDetector(RegexTypeDetector):
    """Detects UUIDs in the canonical 8-4-4-4-12 hexadecimal form."""

    UUID_PATTERN = r'[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'

    def __init__(self):
        super().__init__(self.UUID_PATTERN, priority=100, logical_type='uuid')


class EnumDetector(RegexTypeDetector):
    """Detects enumeration symbols written in UPPER_SNAKE_CASE.

    Examples: SUCCESS, OK, STATUS_ACTIVE, ERROR_CODE_404. Single characters
    are too ambiguous and never match.
    """

    ENUM_PATTERN = r'[A-Z][A-Z0-9]*(_[A-Z0-9]+)*'

    def __init__(self):
        super().__init__(self.ENUM_PATTERN, priority=50, min_length=2)


def default_detectors() -> List[TypeDetector]:
    """Returns new instances of the detectors used by default."""
    return [UuidDetector(), EnumDetector()]
