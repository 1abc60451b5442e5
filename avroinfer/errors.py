"""
Exceptions raised while inferring, mapping and rendering Avro schemas.
"""

from typing import Optional


class AvroInferError(Exception):
    """
    Base exception for all avroinfer failures.

    Attributes:
        message: Human-readable error description
        context: Optional name of the field, schema or type the error refers to
    """

    def __init__(self, message: str, context: Optional[str] = None) -> None:
        self.message = message
        self.context = context
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


class InputNotFoundError(AvroInferError):
    """Raised when a source document or a requested schema does not exist."""


class InputParseError(AvroInferError):
    """Raised when a source document cannot be decoded as JSON or YAML."""


class UnsupportedDeclarationError(AvroInferError):
    """Raised in strict mode for OpenAPI declarations without a mapping rule."""


class UnresolvedReferenceError(AvroInferError):
    """Raised when a $ref cannot be resolved in the local component table."""


class CyclicReferenceError(UnresolvedReferenceError):
    """
    Raised when a $ref points back at a schema that is still being resolved.

    Attributes:
        cycle_path: List of schema names forming the cycle
    """

    def __init__(self, cycle_path: list) -> None:
        self.cycle_path = cycle_path
        cycle_str = ' -> '.join(cycle_path)
        super().__init__(f"Circular schema reference detected: {cycle_str}", cycle_path[-1] if cycle_path else None)


class NamedTypeConflictError(AvroInferError):
    """Raised when two different types claim the same qualified name."""


class PatternEscapingError(AvroInferError):
    """Raised when a pattern cannot be embedded into schema text."""


class SchemaValidationError(AvroInferError):
    """Raised when rendered schema text is rejected by the Avro schema parser."""


class InvalidTypeModelError(AvroInferError, ValueError):
    """Raised when a type model node is constructed with an invalid combination of attributes."""
