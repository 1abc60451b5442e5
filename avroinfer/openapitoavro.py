"""
OpenAPI to Avro converter.

This module maps the schemas declared in an OpenAPI 3.x (`components.schemas`)
or Swagger 2.0 (`definitions`) document onto the Avro type model and renders
them with the standard or unified schema generator.
"""

# pylint: disable=line-too-long

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlparse

import jsonpointer
import yaml
from jsonpointer import JsonPointer, JsonPointerException

from avroinfer.common import DEFAULT_NAMESPACE, JsonNode, capitalize_name, fetch_content, schema_to_json, unique_field_name, write_schema_file
from avroinfer.errors import (
    CyclicReferenceError,
    InputNotFoundError,
    InputParseError,
    UnresolvedReferenceError,
    UnsupportedDeclarationError,
)
from avroinfer.schema_generator import SchemaGenerator
from avroinfer.schemaloader import parse_avro_schema
from avroinfer.typemodel import NULL_TYPE, STRING_TYPE, AvroKind, AvroTypeInfo, make_nullable
from avroinfer.unified_schema_generator import UnifiedSchemaGenerator

logger = logging.getLogger(__name__)

ENUM_SYMBOL_PATTERN = re.compile(r'[A-Za-z_][A-Za-z0-9_]*')


def load_openapi_document(location: str) -> Dict[str, Any]:
    """
    Load an OpenAPI or Swagger document from a file path or URL.

    JSON is tried first, then YAML.

    Args:
        location: Local path, file:// URL or http(s):// URL of the document.

    Returns:
        The parsed document.

    Raises:
        InputNotFoundError: If the document can't be read.
        InputParseError: If the document is neither JSON nor YAML, or is not an OpenAPI document.
    """
    content = fetch_content(location)
    try:
        openapi_doc = json.loads(content)
    except json.JSONDecodeError:
        try:
            openapi_doc = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise InputParseError(f"Failed to parse OpenAPI document as JSON or YAML: {e}", location) from e

    if not isinstance(openapi_doc, dict):
        raise InputParseError("Not a valid OpenAPI document: expected an object at the top level", location)
    if 'openapi' not in openapi_doc and 'swagger' not in openapi_doc:
        raise InputParseError("Not a valid OpenAPI document: missing 'openapi' or 'swagger' version field", location)
    logger.debug("Loaded OpenAPI document %s (version %s)", location, openapi_doc.get('openapi', openapi_doc.get('swagger')))
    return openapi_doc


def get_component_schemas(openapi_doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get the named schemas of an OpenAPI or Swagger document.

    Args:
        openapi_doc: The parsed document.

    Returns:
        The `components.schemas` table for OpenAPI 3.x, the `definitions` table
        for Swagger 2.0, or an empty dict if the document declares none.
    """
    components = openapi_doc.get('components') or {}
    schemas = components.get('schemas') if isinstance(components, dict) else None
    if not schemas:
        schemas = openapi_doc.get('definitions')
    return schemas if isinstance(schemas, dict) else {}


class OpenApiToAvroTypeMapper:
    """
    Maps OpenAPI schema objects onto the Avro type model.

    Unlike JSON inference, the mapping follows the declarations: `$ref`,
    `enum`, `type`, `format`, `pattern`, `required` and `description`.

    Attributes:
        openapi_doc: The document that `$ref` pointers are resolved against.
        strict: Raise on declarations without a mapping instead of falling back to string.
    """

    def __init__(self, openapi_doc: Dict[str, Any], strict: bool = False) -> None:
        self.openapi_doc = openapi_doc
        self.strict = strict

    def map_schema(self, schema: Any, field_name: str) -> AvroTypeInfo:
        """
        Map a schema object onto a type model.

        Args:
            schema: The schema object, may be None.
            field_name: The naming context used for enums and records.

        Returns:
            The type model.

        Raises:
            UnresolvedReferenceError: If a `$ref` can't be resolved.
            CyclicReferenceError: If a `$ref` leads back to a schema being mapped.
            UnsupportedDeclarationError: In strict mode, for declarations without a mapping.
        """
        return self._map_schema(schema, field_name, ())

    def map_component_schema(self, schema_name: str) -> AvroTypeInfo:
        """
        Map one of the document's named schemas onto a type model.

        Args:
            schema_name: Key of the schema in the component table.

        Returns:
            The type model, named after the schema.

        Raises:
            InputNotFoundError: If the document has no schema with that name.
        """
        schemas = get_component_schemas(self.openapi_doc)
        if schema_name not in schemas:
            raise InputNotFoundError(
                f"Schema '{schema_name}' not found in OpenAPI document. Available schemas: {', '.join(schemas) or 'none'}")
        return self._map_schema(schemas[schema_name], schema_name, (schema_name,))

    def _map_schema(self, schema: Any, field_name: str, resolving: Tuple[str, ...]) -> AvroTypeInfo:
        """
        Map a schema object, tracking the names of the referenced schemas
        that enclose it so that circular references can be detected.
        """
        if schema is None:
            return STRING_TYPE
        if not isinstance(schema, dict):
            return self._unsupported(f"Schema must be an object, got {type(schema).__name__}", field_name)
        if '$ref' in schema:
            return self._map_reference(schema['$ref'], resolving)

        nullable = schema.get('nullable') is True
        schema_type = schema.get('type')
        if isinstance(schema_type, list):
            # OpenAPI 3.1 allows ["string", "null"]
            non_null_types = [t for t in schema_type if t != 'null']
            nullable = nullable or len(non_null_types) < len(schema_type)
            schema_type = non_null_types if len(non_null_types) > 1 else (non_null_types or ['null'])[0]

        if schema.get('enum'):
            type_info = self._map_enum(schema, field_name)
        elif isinstance(schema_type, list):
            type_info = self._unsupported(f"Multiple types {schema_type} are not supported", field_name)
        else:
            type_info = self._map_declared_type(schema, schema_type, field_name, resolving)
        return make_nullable(type_info) if nullable else type_info

    def _map_declared_type(self, schema: Dict[str, Any], schema_type: Any, field_name: str,
                           resolving: Tuple[str, ...]) -> AvroTypeInfo:
        """Dispatch on the declared `type` of a schema object."""
        description = schema.get('description') or None
        type_name = schema_type.lower() if isinstance(schema_type, str) else None
        if type_name == 'string':
            return self._map_string_type(schema, description)
        if type_name == 'integer':
            if schema.get('format') in ('int64', 'long'):
                return AvroTypeInfo(AvroKind.LONG, doc=description)
            return AvroTypeInfo(AvroKind.INT, doc=description)
        if type_name == 'number':
            if schema.get('format') == 'double':
                return AvroTypeInfo(AvroKind.DOUBLE, doc=description)
            return AvroTypeInfo(AvroKind.FLOAT, doc=description)
        if type_name == 'boolean':
            return AvroTypeInfo(AvroKind.BOOLEAN, doc=description)
        if type_name == 'null':
            return NULL_TYPE
        if type_name == 'array':
            item_type = self._map_schema(schema.get('items'), field_name + "Item", resolving)
            return AvroTypeInfo(AvroKind.ARRAY, item_type=item_type, doc=description)
        if type_name == 'object':
            return self._map_object_type(schema, field_name, resolving)
        if schema_type is None:
            return self._unsupported("Schema declares no type", field_name)
        return self._unsupported(f"Unsupported type '{schema_type}'", field_name)

    def _map_string_type(self, schema: Dict[str, Any], description: Optional[str]) -> AvroTypeInfo:
        """Map a string schema, where a date format wins over the pattern."""
        string_format = schema.get('format')
        string_format = string_format.lower() if isinstance(string_format, str) else None
        if string_format in ('date', 'date-time'):
            return AvroTypeInfo(AvroKind.LONG, logical_type='timestamp-millis', doc=description)
        logical_type = 'uuid' if string_format == 'uuid' else None
        pattern = schema.get('pattern') or None
        return AvroTypeInfo(AvroKind.STRING, logical_type=logical_type, pattern=pattern, doc=description)

    def _map_enum(self, schema: Dict[str, Any], field_name: str) -> AvroTypeInfo:
        """Map an `enum` list onto an Avro enum named after the field."""
        enum_name = capitalize_name(field_name) + "Enum"
        symbols: List[str] = [str(value) for value in schema['enum'] if value is not None]
        if not symbols:
            return self._unsupported("Enum declares no non-null values", enum_name)
        for symbol in symbols:
            if not ENUM_SYMBOL_PATTERN.fullmatch(symbol):
                logger.warning("Enum symbol '%s' of %s is not a valid Avro name", symbol, enum_name)
        return AvroTypeInfo(AvroKind.ENUM, name=enum_name, enum_symbols=tuple(symbols),
                            doc=schema.get('description') or None)

    def _map_object_type(self, schema: Dict[str, Any], field_name: str, resolving: Tuple[str, ...]) -> AvroTypeInfo:
        """Map an object schema onto a record; properties not in `required` become nullable."""
        record_name = capitalize_name(field_name) + "Record"
        properties = schema.get('properties') or {}
        required = set(schema.get('required') or [])
        fields: Dict[str, AvroTypeInfo] = {}
        for prop_name, prop_schema in properties.items():
            field_type = self._map_schema(prop_schema, prop_name, resolving)
            if prop_name not in required:
                field_type = make_nullable(field_type)
            fields[unique_field_name(prop_name, fields, record_name)] = field_type
        return AvroTypeInfo(AvroKind.RECORD, name=record_name, fields=fields,
                            doc=schema.get('description') or None)

    def _map_reference(self, ref: Any, resolving: Tuple[str, ...]) -> AvroTypeInfo:
        """
        Resolve a `$ref` against the local component table and map its target
        under the name of the referenced schema.
        """
        if not isinstance(ref, str):
            raise UnresolvedReferenceError(f"Reference must be a string, got {type(ref).__name__}")
        url = urlparse(ref)
        if url.scheme or url.path or not url.fragment:
            raise UnresolvedReferenceError("References to other documents are not supported", ref)

        pointer = unquote(url.fragment)
        try:
            parts = JsonPointer(pointer).parts
        except JsonPointerException as e:
            raise UnresolvedReferenceError(f"Invalid JSON pointer: {e}", ref) from e
        if len(parts) == 3 and parts[:2] == ['components', 'schemas']:
            schema_name = parts[2]
        elif len(parts) == 2 and parts[0] == 'definitions':
            schema_name = parts[1]
        else:
            raise UnresolvedReferenceError("Only references to the document's component schemas are supported", ref)

        if schema_name in resolving:
            raise CyclicReferenceError(list(resolving) + [schema_name])

        try:
            target = jsonpointer.resolve_pointer(self.openapi_doc, pointer)
        except JsonPointerException as e:
            raise UnresolvedReferenceError(f"Referenced schema '{schema_name}' does not exist", ref) from e
        if not isinstance(target, dict):
            raise UnresolvedReferenceError(f"Referenced schema '{schema_name}' is not a schema object", ref)
        if '$ref' in target:
            raise UnresolvedReferenceError(f"Referenced schema '{schema_name}' is itself a reference", ref)

        logger.debug("Resolved %s", ref)
        return self._map_schema(target, schema_name, resolving + (schema_name,))

    def _unsupported(self, message: str, context: str) -> AvroTypeInfo:
        """Handle a declaration without a mapping rule."""
        if self.strict:
            raise UnsupportedDeclarationError(message, context)
        logger.warning("%s for '%s', using string", message, context)
        return STRING_TYPE


class OpenApiToAvroConverter:
    """
    Converts the schemas of an OpenAPI document to Avro schema files.

    Attributes:
        namespace: Namespace for the generated named types.
        strict: Raise on declarations without a mapping instead of falling back to string.
    """

    def __init__(self, namespace: str = DEFAULT_NAMESPACE, strict: bool = False) -> None:
        self.namespace = namespace
        self.strict = strict

    def convert_schema(self, openapi_doc: Dict[str, Any], schema_name: str, namespace: Optional[str] = None,
                       unified: bool = False) -> JsonNode:
        """
        Convert one named schema of a parsed document to a validated Avro schema.

        Args:
            openapi_doc: The parsed OpenAPI document.
            schema_name: Name of the schema in the component table.
            namespace: Namespace for the named types, defaults to the converter's.
            unified: Emit a list of named type definitions instead of inlining them.

        Returns:
            The Avro schema as a JSON value.
        """
        if namespace is None:
            namespace = self.namespace
        type_info = OpenApiToAvroTypeMapper(openapi_doc, self.strict).map_component_schema(schema_name)
        if unified:
            avro_schema = UnifiedSchemaGenerator(namespace).generate_unified_schema(type_info)
        else:
            avro_schema = SchemaGenerator(namespace).generate_schema(type_info)
        parse_avro_schema(avro_schema)
        return avro_schema

    def convert(self, openapi_file: str, schema_name: str, avro_schema_file: str, namespace: Optional[str] = None,
                unified: bool = False) -> None:
        """
        Convert one named schema of an OpenAPI file to an Avro schema file.

        Args:
            openapi_file: Path or URL of the OpenAPI document.
            schema_name: Name of the schema in the component table.
            avro_schema_file: Path of the output .avsc file.
            namespace: Namespace for the named types, defaults to the converter's.
            unified: Emit a list of named type definitions instead of inlining them.
        """
        openapi_doc = load_openapi_document(openapi_file)
        avro_schema = self.convert_schema(openapi_doc, schema_name, namespace, unified)
        write_schema_file(schema_to_json(avro_schema), avro_schema_file)
        logger.info("Converted schema '%s' to %s", schema_name, avro_schema_file)

    def convert_all(self, openapi_file: str, output_dir: str, namespace: Optional[str] = None,
                    unified: bool = False) -> List[str]:
        """
        Convert every component schema that maps to a record to its own .avsc file.

        All schemas are rendered and validated before the first file is
        written.

        Args:
            openapi_file: Path or URL of the OpenAPI document.
            output_dir: Directory for the `<SchemaName>.avsc` files.
            namespace: Namespace for the named types, defaults to the converter's.
            unified: Emit lists of named type definitions instead of inlining them.

        Returns:
            The paths of the written files.

        Raises:
            InputNotFoundError: If the document declares no schemas.
        """
        if namespace is None:
            namespace = self.namespace
        openapi_doc = load_openapi_document(openapi_file)
        schemas = get_component_schemas(openapi_doc)
        if not schemas:
            raise InputNotFoundError("No schemas found in OpenAPI document", openapi_file)

        mapper = OpenApiToAvroTypeMapper(openapi_doc, self.strict)
        rendered: Dict[str, str] = {}
        for schema_name in schemas:
            type_info = mapper.map_component_schema(schema_name)
            if type_info.is_nullable and len(type_info.alternatives) == 2 \
                    and type_info.alternatives[1].kind == AvroKind.RECORD:
                # a nullable object component is written as its record
                type_info = type_info.alternatives[1]
            if type_info.kind != AvroKind.RECORD:
                logger.warning("Skipping schema '%s': it maps to %s, not to a record", schema_name, type_info.kind.value)
                continue
            if unified:
                avro_schema = UnifiedSchemaGenerator(namespace).generate_unified_schema(type_info)
            else:
                avro_schema = SchemaGenerator(namespace).generate_schema(type_info)
            parse_avro_schema(avro_schema)
            rendered[schema_name] = schema_to_json(avro_schema)

        written: List[str] = []
        for schema_name, schema_json in rendered.items():
            output_path = os.path.join(output_dir, schema_name + ".avsc")
            write_schema_file(schema_json, output_path)
            logger.info("Generated %s", output_path)
            written.append(output_path)
        return written


def convert_openapi_to_avro(openapi_file: str, avro_schema_path: str, schema_name: Optional[str] = None,
                            namespace: str = DEFAULT_NAMESPACE, unified: bool = False, strict: bool = False) -> None:
    """
    Convert an OpenAPI document to Avro schema files.

    Args:
        openapi_file: Path or URL of the OpenAPI document.
        avro_schema_path: Output .avsc file if `schema_name` is given, otherwise the output directory.
        schema_name: Name of the schema to convert. All record schemas are converted if omitted.
        namespace: Namespace for the named types.
        unified: Emit lists of named type definitions instead of inlining them.
        strict: Raise on declarations without a mapping instead of falling back to string.
    """
    converter = OpenApiToAvroConverter(namespace, strict)
    if schema_name:
        converter.convert(openapi_file, schema_name, avro_schema_path, unified=unified)
    else:
        converter.convert_all(openapi_file, avro_schema_path, unified=unified)
