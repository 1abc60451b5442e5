"""Converts a JSON sample or an OpenAPI document, whichever the input is."""

import json
import logging
from typing import Optional

import yaml

from avroinfer.common import DEFAULT_NAMESPACE, fetch_content
from avroinfer.jsontoavro import convert_json_to_avro
from avroinfer.openapitoavro import convert_openapi_to_avro

logger = logging.getLogger(__name__)


def is_openapi_document(content: str) -> bool:
    """Checks if text is an OpenAPI or Swagger document (JSON or YAML)."""
    try:
        document = json.loads(content)
    except json.JSONDecodeError:
        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError:
            return False
    return isinstance(document, dict) and ('openapi' in document or 'swagger' in document)


def convert_document(input_file: str, output_file: str, type_name: Optional[str] = None,
                     namespace: str = DEFAULT_NAMESPACE, unified: bool = False) -> None:
    """Converts a JSON sample or an OpenAPI document to Avro.

    Args:
        input_file: Path or URL of the input document
        output_file: Output .avsc file, or the output directory when converting
            all schemas of an OpenAPI document
        type_name: Root type name for JSON samples, schema name for OpenAPI
            documents. All record schemas of an OpenAPI document are converted
            if omitted.
        namespace: Namespace for generated named types
        unified: Emit a list of named type definitions instead of inlining them
    """
    if is_openapi_document(fetch_content(input_file)):
        logger.debug("%s is an OpenAPI document", input_file)
        convert_openapi_to_avro(input_file, output_file, type_name, namespace, unified)
    else:
        logger.debug("%s is a JSON sample", input_file)
        convert_json_to_avro(input_file, output_file, type_name or 'Root', namespace, unified)
