"""Infers Avro schemas from JSON sample documents.

This module provides:
- JsonToAvroConverter: infer and render the schema of one JSON document
- convert_json_to_avro: infer the schema of a JSON file and write it to an .avsc file
"""

import json
import logging
from typing import Iterable, Optional

from avroinfer.common import DEFAULT_NAMESPACE, JsonNode, fetch_content, schema_to_json, write_schema_file
from avroinfer.errors import InputParseError
from avroinfer.schema_generator import SchemaGenerator
from avroinfer.schema_inference import TypeInferenceEngine
from avroinfer.schemaloader import parse_avro_schema
from avroinfer.type_detectors import TypeDetector
from avroinfer.unified_schema_generator import UnifiedSchemaGenerator

logger = logging.getLogger(__name__)


class JsonToAvroConverter:
    """Converts JSON sample documents to Avro schemas."""

    def __init__(self, detectors: Optional[Iterable[TypeDetector]] = None):
        """Initialize the converter.

        Args:
            detectors: Type detectors for the inference engine, defaults to UUID and enum detection
        """
        self.inference_engine = TypeInferenceEngine(detectors)

    def convert_from_string(self, json_text: str, type_name: str = 'Root', namespace: str = DEFAULT_NAMESPACE,
                            unified: bool = False) -> JsonNode:
        """Infers the Avro schema of a JSON document.

        Args:
            json_text: The JSON document
            type_name: Name for the root type
            namespace: Namespace for generated named types
            unified: Emit a list of named type definitions instead of inlining them

        Returns:
            The validated Avro schema as a JSON value

        Raises:
            InputParseError: If the text is not valid JSON
        """
        try:
            value = json.loads(json_text)
        except json.JSONDecodeError as e:
            raise InputParseError(f"Invalid JSON: {e}") from e

        type_info = self.inference_engine.infer_type(value, type_name)
        if unified:
            avro_schema = UnifiedSchemaGenerator(namespace).generate_unified_schema(type_info)
        else:
            avro_schema = SchemaGenerator(namespace).generate_schema(type_info)
        parse_avro_schema(avro_schema)
        return avro_schema

    def convert(self, input_path: str, output_path: str, type_name: str = 'Root', namespace: str = DEFAULT_NAMESPACE,
                unified: bool = False) -> None:
        """Infers the Avro schema of a JSON file and writes it to an .avsc file.

        Args:
            input_path: Path or URL of the JSON document
            output_path: Path of the output .avsc file
            type_name: Name for the root type
            namespace: Namespace for generated named types
            unified: Emit a list of named type definitions instead of inlining them
        """
        json_text = fetch_content(input_path)
        try:
            avro_schema = self.convert_from_string(json_text, type_name, namespace, unified)
        except InputParseError as e:
            raise InputParseError(e.message, input_path) from e
        write_schema_file(schema_to_json(avro_schema), output_path)
        logger.info("Inferred schema of %s and wrote it to %s", input_path, output_path)


def convert_json_to_avro(
    input_file: str,
    avro_schema_file: str,
    type_name: str = 'Root',
    namespace: str = DEFAULT_NAMESPACE,
    unified: bool = False
) -> None:
    """Infers an Avro schema from a JSON file.

    Args:
        input_file: Path or URL of the JSON document
        avro_schema_file: Output path for the Avro schema
        type_name: Name for the root type
        namespace: Namespace for generated Avro types
        unified: Emit a list of named type definitions instead of inlining them
    """
    JsonToAvroConverter().convert(input_file, avro_schema_file, type_name, namespace, unified)
