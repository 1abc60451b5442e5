"""
Common utility functions for avroinfer.
"""

# pylint: disable=line-too-long

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

import requests

from avroinfer.errors import InputNotFoundError, InputParseError, PatternEscapingError
from avroinfer.typemodel import AvroKind, AvroTypeInfo

logger = logging.getLogger(__name__)

JsonNode = Union[Dict[str, Any], List[Any], str, bool, int, float, None]

DEFAULT_NAMESPACE = 'com.example.generated'


def avro_name(name):
    """Convert a name into an Avro name."""
    if isinstance(name, int):
        name = '_'+str(name)
    val = re.sub(r'[^a-zA-Z0-9_]', '_', name)
    if not val:
        return '_'
    if re.match(r'^[0-9]', val):
        val = '_' + val
    return val


def avro_namespace(name: str) -> str:
    """Convert a dotted name into an Avro namespace, sanitizing each segment."""
    val = '.'.join(avro_name(part) for part in name.split('.') if part)
    if val != name:
        logger.warning("Namespace '%s' is not a valid Avro namespace, using '%s'", name, val)
    return val


def capitalize_name(name: str) -> str:
    """
    Sanitize a field name and upper-case its first character to form a type name.

    Args:
        name (str): The field name.

    Returns:
        str: The type name, e.g. 'userId' becomes 'UserId'.
    """
    val = avro_name(name)
    return val[0].upper() + val[1:]


def unique_field_name(name: str, taken: Dict[str, Any], context: str = '') -> str:
    """
    Sanitize a property name and make sure it doesn't collide with a field
    already collected for the same record.

    Args:
        name (str): The original property name.
        taken (Dict[str, Any]): The fields collected so far.
        context (str): The record name, used for log messages.

    Returns:
        str: A sanitized field name that is not yet in `taken`.
    """
    field_name = avro_name(name)
    if field_name not in taken:
        return field_name
    suffix = 1
    while f"{field_name}_{suffix}" in taken:
        suffix += 1
    unique_name = f"{field_name}_{suffix}"
    logger.warning("Property '%s' of %s collides with an existing field after sanitization, renamed to '%s'", name, context or 'record', unique_name)
    return unique_name


def check_pattern(pattern: Any, context: str = '') -> str:
    """
    Make sure a regular expression can be embedded into schema text.

    Escaping of backslashes and quotes is left to the JSON serializer; this
    only rejects content no serializer can represent faithfully.

    Args:
        pattern (Any): The pattern attached to a string type.
        context (str): The type name, used for error messages.

    Returns:
        str: The pattern, unchanged.

    Raises:
        PatternEscapingError: If the pattern is not text or contains unpaired surrogates.
    """
    if not isinstance(pattern, str):
        raise PatternEscapingError(f"Pattern must be a string, got {type(pattern).__name__}", context)
    try:
        pattern.encode('utf-8')
    except UnicodeEncodeError as e:
        raise PatternEscapingError(f"Pattern contains characters that can't be encoded: {e.reason}", context) from e
    return pattern


def primitive_schema(type_info: AvroTypeInfo) -> Optional[JsonNode]:
    """
    Render a non-composite type model node as an Avro schema value.

    Args:
        type_info (AvroTypeInfo): The node to render.

    Returns:
        Optional[JsonNode]: The Avro schema for primitive, logical and pattern
        string types, None for arrays, enums, records and unions.
    """
    kind = type_info.kind
    if kind in (AvroKind.NULL, AvroKind.BOOLEAN, AvroKind.INT, AvroKind.FLOAT, AvroKind.DOUBLE):
        return kind.value
    if kind == AvroKind.LONG:
        if type_info.logical_type:
            return {"type": "long", "logicalType": type_info.logical_type}
        return "long"
    if kind == AvroKind.STRING:
        return string_schema(type_info)
    return None


def string_schema(type_info: AvroTypeInfo) -> JsonNode:
    """ Renders a string type, with its logical type and pattern if present. """
    context = type_info.name or 'string'
    pattern = check_pattern(type_info.pattern, context) if type_info.pattern else None
    if type_info.name and type_info.logical_type:
        schema: Dict[str, Any] = {
            "name": type_info.name,
            "type": "string",
            "logicalType": type_info.logical_type
        }
        if pattern:
            schema["pattern"] = pattern
        return schema
    if pattern:
        schema = {"type": "string", "pattern": pattern}
        if type_info.logical_type:
            schema["logicalType"] = type_info.logical_type
        return schema
    if type_info.logical_type:
        return {"type": "string", "logicalType": type_info.logical_type}
    return "string"


def schema_to_json(schema: JsonNode) -> str:
    """ Serializes an Avro schema value into schema text. """
    return json.dumps(schema, indent=2)


def fetch_content(url: str) -> str:
    """
    Fetch content from a URL or file path.

    Args:
        url: The URL or file path to fetch content from.

    Returns:
        The content as a string.

    Raises:
        InputNotFoundError: If the file does not exist or the URL can't be retrieved.
        InputParseError: If the file is not valid UTF-8.
    """
    parsed_url = urlparse(url)
    if parsed_url.scheme in ['http', 'https']:
        try:
            response = requests.get(url, timeout=30)
            response.raise_for_status()
        except requests.RequestException as e:
            raise InputNotFoundError(f"Could not retrieve {url}: {e}") from e
        return response.text
    if parsed_url.scheme == 'file' or len(parsed_url.scheme) <= 1:
        # Handle file URLs, local paths and Windows drive letters
        file_path = parsed_url.path if parsed_url.scheme == 'file' else url
        if os.name == 'nt' and parsed_url.scheme == 'file' and file_path.startswith('/'):
            file_path = file_path[1:]
        if not os.path.isfile(file_path):
            raise InputNotFoundError(f"Input file {file_path} not found")
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return f.read()
        except OSError as e:
            raise InputNotFoundError(f"Input file {file_path} can't be read: {e}") from e
        except UnicodeDecodeError as e:
            raise InputParseError(f"Input file is not valid UTF-8: {e}", file_path) from e
    raise InputNotFoundError(f"Unsupported URL scheme: {parsed_url.scheme}")


def write_schema_file(schema_json: str, output_path: str) -> None:
    """
    Write schema text to a file, creating the directory if needed.

    Args:
        schema_json (str): The schema text.
        output_path (str): The output file path.
    """
    output_dir = os.path.dirname(output_path)
    if output_dir and not os.path.exists(output_dir):
        os.makedirs(output_dir, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(schema_json)
    logger.debug("Wrote schema to %s", output_path)
