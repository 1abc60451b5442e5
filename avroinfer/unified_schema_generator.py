"""Generates unified Avro schemas with every named type defined once.

A unified schema is a list of top-level type definitions. Avro requires
that a type is defined before it is used, so dependencies are collected
depth-first and each record is registered only after everything it refers
to. Inside the definitions, records and enums are referenced by their
qualified name.
"""

import logging
from typing import Any, Dict, List, Optional

from avroinfer.common import DEFAULT_NAMESPACE, JsonNode, avro_namespace, primitive_schema, schema_to_json
from avroinfer.errors import NamedTypeConflictError
from avroinfer.typemodel import AvroKind, AvroTypeInfo

logger = logging.getLogger(__name__)


class UnifiedSchemaGenerator:
    """Renders a type model as a list of named type definitions."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        self.namespace = namespace

    def generate_unified_schema(self, root_type: AvroTypeInfo, namespace: Optional[str] = None) -> List[JsonNode]:
        """Generates a unified Avro schema for a type model.

        Args:
            root_type: The root of the type model
            namespace: Namespace for named types, defaults to the generator's

        Returns:
            The type definitions in dependency order. If the root itself is not
            a named type, its structural form is the last element. The unnamed
            alternatives of a root union are appended one by one.

        Raises:
            NamedTypeConflictError: If two different types share a qualified name
            PatternEscapingError: If a pattern can't be embedded
        """
        if namespace is None:
            namespace = self.namespace
        namespace = avro_namespace(namespace)
        named_types: Dict[str, AvroTypeInfo] = {}
        self._collect_named_types(root_type, namespace, named_types)
        logger.debug("Collected %d named types: %s", len(named_types), ', '.join(named_types))

        unified_schema: List[JsonNode] = [self._generate_definition(type_info, namespace)
                                          for type_info in named_types.values()]
        if root_type.kind == AvroKind.UNION:
            # unions can't nest, so the root alternatives join the top-level list
            unified_schema.extend(self._generate_reference(alternative, namespace)
                                  for alternative in root_type.alternatives if not alternative.is_named)
        elif not root_type.is_named:
            unified_schema.append(self._generate_reference(root_type, namespace))
        return unified_schema

    def generate_unified_schema_json(self, root_type: AvroTypeInfo, namespace: Optional[str] = None) -> str:
        """Generates the unified Avro schema text for a type model."""
        return schema_to_json(self.generate_unified_schema(root_type, namespace))

    def _collect_named_types(self, type_info: AvroTypeInfo, namespace: str,
                             named_types: Dict[str, AvroTypeInfo]) -> None:
        """Registers all records and enums of a subtree, dependencies first."""
        if type_info.kind == AvroKind.ARRAY:
            assert type_info.item_type is not None
            self._collect_named_types(type_info.item_type, namespace, named_types)
            return
        if type_info.kind == AvroKind.UNION:
            for alternative in type_info.alternatives:
                self._collect_named_types(alternative, namespace, named_types)
            return
        if not type_info.is_named:
            return

        qualified_name = type_info.qualified_name(namespace)
        if qualified_name in named_types:
            if named_types[qualified_name] != type_info:
                raise NamedTypeConflictError(
                    f"Type '{qualified_name}' is defined twice with different structures", qualified_name)
            return
        if type_info.kind == AvroKind.RECORD:
            for field_type in type_info.fields.values():
                self._collect_named_types(field_type, namespace, named_types)
            # a nested record may already claim the same name
            if qualified_name in named_types:
                raise NamedTypeConflictError(
                    f"Type '{qualified_name}' is defined twice with different structures", qualified_name)
        named_types[qualified_name] = type_info

    def _generate_definition(self, type_info: AvroTypeInfo, namespace: str) -> Dict[str, Any]:
        """Generates the top-level definition of a record or enum."""
        definition: Dict[str, Any] = {
            "type": type_info.kind.value,
            "name": type_info.name
        }
        if namespace:
            definition["namespace"] = namespace
        if type_info.doc:
            definition["doc"] = type_info.doc
        if type_info.kind == AvroKind.ENUM:
            definition["symbols"] = list(type_info.enum_symbols)
            return definition

        fields: List[Dict[str, Any]] = []
        for field_name, field_type in type_info.fields.items():
            field: Dict[str, Any] = {
                "name": field_name,
                "type": self._generate_reference(field_type, namespace)
            }
            if field_type.doc:
                field["doc"] = field_type.doc
            if field_type.is_nullable:
                field["default"] = None
            fields.append(field)
        definition["fields"] = fields
        return definition

    def _generate_reference(self, type_info: AvroTypeInfo, namespace: str) -> JsonNode:
        """Generates a type as used inside a definition, with named types as references."""
        if type_info.is_named:
            return type_info.qualified_name(namespace)
        primitive = primitive_schema(type_info)
        if primitive is not None:
            return primitive
        if type_info.kind == AvroKind.ARRAY:
            assert type_info.item_type is not None
            return {"type": "array", "items": self._generate_reference(type_info.item_type, namespace)}
        return [self._generate_reference(alternative, namespace) for alternative in type_info.alternatives]


def generate_unified_avro_schema(root_type: AvroTypeInfo, namespace: str = DEFAULT_NAMESPACE) -> List[JsonNode]:
    """Generates a unified Avro schema for a type model."""
    return UnifiedSchemaGenerator(namespace).generate_unified_schema(root_type)
