"""Infers Avro type models from sample JSON values.

Unlike the OpenAPI mapper, which follows explicit declarations, this engine
guesses types from the values it sees:

- null values are modeled as nullable strings
- numbers are modeled as strings, preserving their exact textual form
- strings and string arrays are classified by the configured type detectors
- objects become records named after the field they were found in
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from avroinfer.common import JsonNode, capitalize_name, unique_field_name
from avroinfer.type_detectors import TypeDetector, default_detectors
from avroinfer.typemodel import (
    STRING_TYPE,
    AvroKind,
    AvroTypeInfo,
    make_nullable,
    nullable_string,
    union_of,
)

logger = logging.getLogger(__name__)


class TypeInferenceEngine:
    """Infers an `AvroTypeInfo` tree from a parsed JSON value."""

    def __init__(self, type_detectors: Optional[Iterable[TypeDetector]] = None):
        """Initialize the inference engine.

        Args:
            type_detectors: Detectors for special string kinds. Defaults to
                the UUID and enum detectors. They are consulted in descending
                priority order.
        """
        detectors = list(type_detectors) if type_detectors is not None else default_detectors()
        self.type_detectors: List[TypeDetector] = sorted(detectors, key=lambda d: d.priority, reverse=True)

    def infer_type(self, value: JsonNode, field_name: str) -> AvroTypeInfo:
        """Infers the type of a JSON value.

        Args:
            value: The parsed JSON value
            field_name: Name of the field the value was found under, used
                to name records, enums and logical types

        Returns:
            The inferred type model
        """
        if value is None:
            return nullable_string()
        if isinstance(value, bool):
            return AvroTypeInfo(AvroKind.BOOLEAN)
        if isinstance(value, (int, float)):
            # numbers are kept as strings to preserve their textual form
            return STRING_TYPE
        if isinstance(value, str):
            return self._infer_string_type(value, field_name)
        if isinstance(value, list):
            return self._infer_array_type(value, field_name)
        if isinstance(value, dict):
            return self._infer_record_type(value, field_name)
        logger.warning("Unexpected value of type %s for field '%s', using string", type(value).__name__, field_name)
        return STRING_TYPE

    def _infer_string_type(self, value: str, field_name: str) -> AvroTypeInfo:
        """Runs the detectors over a string value."""
        for detector in self.type_detectors:
            if detector.logical_type and detector.matches(value):
                return AvroTypeInfo(AvroKind.STRING, logical_type=detector.logical_type, name=capitalize_name(field_name))
        return STRING_TYPE

    def _infer_array_type(self, values: List[Any], field_name: str) -> AvroTypeInfo:
        """Infers an array type from all of its elements.

        Arrays whose elements all satisfy one detector collapse into a
        homogeneous item type. Other arrays get the de-duplicated element
        types as items, combined into a union if more than one remains.
        """
        if not values:
            return AvroTypeInfo(AvroKind.ARRAY, item_type=STRING_TYPE)

        has_null = any(value is None for value in values)

        for detector in self.type_detectors:
            if detector.matches_array(values):
                logger.debug("Array '%s' matched %r", field_name, detector)
                if detector.logical_type:
                    item_type = AvroTypeInfo(AvroKind.STRING, logical_type=detector.logical_type)
                else:
                    symbols = [value for value in values if isinstance(value, str)]
                    item_type = AvroTypeInfo(AvroKind.ENUM, name=capitalize_name(field_name), enum_symbols=tuple(symbols))
                if has_null:
                    item_type = make_nullable(item_type)
                return AvroTypeInfo(AvroKind.ARRAY, item_type=item_type)

        item_types: List[AvroTypeInfo] = []
        seen: set[Tuple[AvroKind, Optional[str]]] = set()
        for value in values:
            if value is None:
                continue
            element_type = self.infer_type(value, field_name + "Item")
            key = (element_type.kind, element_type.logical_type)
            if key not in seen:
                seen.add(key)
                item_types.append(element_type)

        if not item_types:
            return AvroTypeInfo(AvroKind.ARRAY, item_type=nullable_string())

        if len(item_types) == 1:
            item_type = item_types[0]
            if has_null:
                item_type = make_nullable(item_type)
        else:
            if has_null:
                item_types.insert(0, AvroTypeInfo(AvroKind.NULL))
            item_type = union_of(item_types)
        return AvroTypeInfo(AvroKind.ARRAY, item_type=item_type)

    def _infer_record_type(self, value: Dict[str, Any], field_name: str) -> AvroTypeInfo:
        """Infers a record type, recursing into every property."""
        record_name = capitalize_name(field_name)
        fields: Dict[str, AvroTypeInfo] = {}
        for key, property_value in value.items():
            if property_value is None:
                # a single null says nothing about the real type
                field_type = nullable_string()
            else:
                field_type = self.infer_type(property_value, key)
            fields[unique_field_name(key, fields, record_name)] = field_type
        return AvroTypeInfo(AvroKind.RECORD, name=record_name, fields=fields)


def infer_avro_type_from_json(value: JsonNode, type_name: str = 'Root',
                              type_detectors: Optional[Iterable[TypeDetector]] = None) -> AvroTypeInfo:
    """Infers a type model from a single JSON value.

    Args:
        value: The parsed JSON value
        type_name: Name for the root type
        type_detectors: Detectors to use instead of the defaults

    Returns:
        The inferred type model
    """
    return TypeInferenceEngine(type_detectors).infer_type(value, type_name)
