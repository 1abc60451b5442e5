"""
Loads and validates generated Avro schemas with fastavro.
"""

import json
import logging
from typing import Any, Dict, Optional

from fastavro.schema import SchemaParseException, UnknownType, parse_schema

from avroinfer.common import JsonNode, fetch_content
from avroinfer.errors import InputParseError, SchemaValidationError

logger = logging.getLogger(__name__)


def parse_avro_schema(schema: JsonNode, named_schemas: Optional[Dict[str, Any]] = None) -> Any:
    """
    Validate an Avro schema by parsing it with fastavro.

    Unified schemas are lists, which fastavro parses as a union of all the
    definitions; every reference must point at an earlier definition.

    Args:
        schema: The Avro schema as a JSON value.
        named_schemas: Receives the parsed named types by qualified name.

    Returns:
        The parsed schema.

    Raises:
        SchemaValidationError: If fastavro rejects the schema.
    """
    if named_schemas is None:
        named_schemas = {}
    try:
        return parse_schema(schema, named_schemas)
    except (SchemaParseException, UnknownType, ValueError, TypeError, KeyError) as e:
        raise SchemaValidationError(f"Invalid Avro schema: {e}") from e


def load_avro_schema(avsc_path: str, schema_name: Optional[str] = None) -> Any:
    """
    Load a single or unified Avro schema file.

    Args:
        avsc_path: Path or URL of the .avsc file.
        schema_name: For unified files, the qualified or simple name of the
            type to return. The last definition is returned if omitted.

    Returns:
        The parsed schema of the requested type.

    Raises:
        InputNotFoundError: If the file doesn't exist.
        InputParseError: If the file is not JSON.
        SchemaValidationError: If the schema is invalid or the type is not defined in it.
    """
    try:
        avro_schema = json.loads(fetch_content(avsc_path))
    except json.JSONDecodeError as e:
        raise InputParseError(f"Avro schema is not valid JSON: {e}", avsc_path) from e

    named_schemas: Dict[str, Any] = {}
    parsed_schema = parse_avro_schema(avro_schema, named_schemas)
    if not isinstance(avro_schema, list):
        return parsed_schema
    if not schema_name:
        return parsed_schema[-1]

    if schema_name in named_schemas:
        return named_schemas[schema_name]
    for qualified_name, named_schema in named_schemas.items():
        if qualified_name.split('.')[-1] == schema_name:
            return named_schema
    raise SchemaValidationError(
        f"Type '{schema_name}' not found in unified schema. Available types: {', '.join(named_schemas) or 'none'}",
        avsc_path)
