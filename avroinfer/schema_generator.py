"""Generates self-contained Avro schemas from type models.

Every nested record and enum is inlined where it is first used. Avro
rejects a second definition of the same name within one document, so a
named type that occurs again in the same tree is emitted as a reference to
its qualified name instead.
"""

import logging
from typing import Any, Dict, List, Optional

from avroinfer.common import DEFAULT_NAMESPACE, JsonNode, avro_namespace, primitive_schema, schema_to_json
from avroinfer.errors import NamedTypeConflictError
from avroinfer.typemodel import AvroKind, AvroTypeInfo

logger = logging.getLogger(__name__)


class SchemaGenerator:
    """Renders a type model as one Avro schema with nested types inlined."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        """Initialize the generator.

        Args:
            namespace: Default namespace for generated named types
        """
        self.namespace = namespace

    def generate_schema(self, root_type: AvroTypeInfo, namespace: Optional[str] = None) -> JsonNode:
        """Generates the Avro schema for a type model.

        Args:
            root_type: The root of the type model
            namespace: Namespace for named types, defaults to the generator's

        Returns:
            The Avro schema as a JSON value

        Raises:
            NamedTypeConflictError: If two different types share a qualified name
            PatternEscapingError: If a pattern can't be embedded
        """
        if namespace is None:
            namespace = self.namespace
        namespace = avro_namespace(namespace)
        # named types already emitted in this document, by qualified name
        defined_types: Dict[str, AvroTypeInfo] = {}
        return self._generate_type_schema(root_type, namespace, '', defined_types)

    def generate_schema_json(self, root_type: AvroTypeInfo, namespace: Optional[str] = None) -> str:
        """Generates the Avro schema text for a type model."""
        return schema_to_json(self.generate_schema(root_type, namespace))

    def _generate_type_schema(self, type_info: AvroTypeInfo, namespace: str, enclosing_namespace: str,
                              defined_types: Dict[str, AvroTypeInfo]) -> JsonNode:
        """Generates the schema for any type.

        `enclosing_namespace` is the namespace in effect at this point of the
        document; named types only declare their namespace where it differs.
        """
        primitive = primitive_schema(type_info)
        if primitive is not None:
            return primitive
        if type_info.kind == AvroKind.ARRAY:
            assert type_info.item_type is not None
            return {
                "type": "array",
                "items": self._generate_type_schema(type_info.item_type, namespace, enclosing_namespace, defined_types)
            }
        if type_info.kind == AvroKind.UNION:
            return [self._generate_type_schema(alternative, namespace, enclosing_namespace, defined_types)
                    for alternative in type_info.alternatives]

        qualified_name = type_info.qualified_name(namespace)
        if qualified_name in defined_types:
            if defined_types[qualified_name] != type_info:
                raise NamedTypeConflictError(
                    f"Type '{qualified_name}' is defined twice with different structures", qualified_name)
            return qualified_name
        defined_types[qualified_name] = type_info

        schema: Dict[str, Any] = {
            "type": type_info.kind.value,
            "name": type_info.name
        }
        if namespace != enclosing_namespace:
            schema["namespace"] = namespace
        if type_info.doc:
            schema["doc"] = type_info.doc
        if type_info.kind == AvroKind.ENUM:
            schema["symbols"] = list(type_info.enum_symbols)
        else:
            schema["fields"] = self._generate_fields(type_info, namespace, defined_types)
        return schema

    def _generate_fields(self, type_info: AvroTypeInfo, namespace: str,
                         defined_types: Dict[str, AvroTypeInfo]) -> List[Dict[str, Any]]:
        """Generates the field list of a record, with null defaults for nullable fields."""
        fields: List[Dict[str, Any]] = []
        for field_name, field_type in type_info.fields.items():
            field: Dict[str, Any] = {
                "name": field_name,
                "type": self._generate_type_schema(field_type, namespace, namespace, defined_types)
            }
            if field_type.doc:
                field["doc"] = field_type.doc
            if field_type.is_nullable:
                field["default"] = None
            fields.append(field)
        return fields


def generate_avro_schema(root_type: AvroTypeInfo, namespace: str = DEFAULT_NAMESPACE) -> JsonNode:
    """Generates a self-contained Avro schema for a type model."""
    return SchemaGenerator(namespace).generate_schema(root_type)
