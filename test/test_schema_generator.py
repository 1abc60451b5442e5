import json
import os
import sys
import unittest

import pytest
from fastavro.schema import parse_schema
from jsoncomparison import NO_DIFF, Compare

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from avroinfer.errors import NamedTypeConflictError, PatternEscapingError
from avroinfer.schema_generator import SchemaGenerator, generate_avro_schema
from avroinfer.schema_inference import infer_avro_type_from_json
from avroinfer.typemodel import STRING_TYPE, AvroKind, AvroTypeInfo, make_nullable

USER_SAMPLE = {
    "id": "12345",
    "userId": "550e8400-e29b-41d4-a716-446655440000",
    "tags": ["TAG_PREMIUM", "TAG_VERIFIED"],
    "optionalField": None
}


def address_record(fields=None):
    return AvroTypeInfo(AvroKind.RECORD, name="Address", fields=fields or {"city": STRING_TYPE})


class TestSchemaGenerator(unittest.TestCase):

    def test_user_sample_matches_reference(self):
        schema = generate_avro_schema(infer_avro_type_from_json(USER_SAMPLE))
        with open(os.path.join(os.path.dirname(__file__), 'json', 'user-ref.avsc'), 'r', encoding='utf-8') as ref:
            expected = json.load(ref)
        assert Compare().check(schema, expected) == NO_DIFF
        parse_schema(schema)

    def test_nullable_field_has_null_default(self):
        schema = generate_avro_schema(infer_avro_type_from_json(USER_SAMPLE))
        optional_field = next(f for f in schema["fields"] if f["name"] == "optionalField")
        assert optional_field["type"] == ["null", "string"]
        assert "default" in optional_field and optional_field["default"] is None
        id_field = next(f for f in schema["fields"] if f["name"] == "id")
        assert "default" not in id_field

    def test_rendering_is_idempotent(self):
        type_info = infer_avro_type_from_json(USER_SAMPLE)
        generator = SchemaGenerator()
        first = generator.generate_schema_json(type_info)
        second = generator.generate_schema_json(type_info)
        assert first == second

    def test_pattern_is_escaped(self):
        phone = AvroTypeInfo(AvroKind.STRING, pattern=r'^\+?[1-9]\d{1,14}$')
        record = AvroTypeInfo(AvroKind.RECORD, name="Contact", fields={"phoneNumber": phone})
        schema_json = SchemaGenerator().generate_schema_json(record)
        assert r'"pattern": "^\\+?[1-9]\\d{1,14}$"' in schema_json
        assert json.loads(schema_json)["fields"][0]["type"]["pattern"] == r'^\+?[1-9]\d{1,14}$'

    def test_pattern_with_quotes_is_escaped(self):
        quoted = AvroTypeInfo(AvroKind.STRING, pattern='^"[a-z]+"$')
        schema_json = SchemaGenerator().generate_schema_json(quoted)
        assert '"pattern": "^\\"[a-z]+\\"$"' in schema_json

    def test_unencodable_pattern_is_rejected(self):
        with pytest.raises(PatternEscapingError):
            generate_avro_schema(AvroTypeInfo(AvroKind.STRING, pattern='[\ud800]'))
        with pytest.raises(PatternEscapingError):
            generate_avro_schema(AvroTypeInfo(AvroKind.STRING, pattern=123))

    def test_logical_types(self):
        assert generate_avro_schema(AvroTypeInfo(AvroKind.LONG, logical_type="timestamp-millis")) == \
            {"type": "long", "logicalType": "timestamp-millis"}
        assert generate_avro_schema(AvroTypeInfo(AvroKind.STRING, logical_type="uuid")) == \
            {"type": "string", "logicalType": "uuid"}
        assert generate_avro_schema(AvroTypeInfo(AvroKind.STRING, logical_type="uuid", name="UserId")) == \
            {"name": "UserId", "type": "string", "logicalType": "uuid"}
        assert generate_avro_schema(AvroTypeInfo(AvroKind.STRING, logical_type="uuid", pattern="[0-9a-f-]+")) == \
            {"type": "string", "pattern": "[0-9a-f-]+", "logicalType": "uuid"}

    def test_primitives(self):
        for kind in (AvroKind.NULL, AvroKind.BOOLEAN, AvroKind.INT, AvroKind.LONG,
                     AvroKind.FLOAT, AvroKind.DOUBLE, AvroKind.STRING):
            assert generate_avro_schema(AvroTypeInfo(kind)) == kind.value

    def test_repeated_named_type_is_referenced(self):
        record = AvroTypeInfo(AvroKind.RECORD, name="Order", fields={
            "billing": address_record(),
            "shipping": make_nullable(address_record())
        })
        schema = generate_avro_schema(record, "com.example")
        billing, shipping = schema["fields"]
        assert billing["type"]["name"] == "Address"
        assert "namespace" not in billing["type"]
        assert shipping["type"] == ["null", "com.example.Address"]
        assert shipping["default"] is None
        parse_schema(schema)

    def test_conflicting_named_types_are_rejected(self):
        record = AvroTypeInfo(AvroKind.RECORD, name="Order", fields={
            "billing": address_record(),
            "shipping": address_record({"street": STRING_TYPE})
        })
        with pytest.raises(NamedTypeConflictError):
            generate_avro_schema(record)

    def test_root_carries_namespace(self):
        schema = generate_avro_schema(address_record(), "com.example")
        assert schema["namespace"] == "com.example"

    def test_invalid_namespace_is_sanitized(self):
        schema = generate_avro_schema(address_record(), "my-ns.1st")
        assert schema["namespace"] == "my_ns._1st"
        parse_schema(schema)

    def test_empty_namespace_segments_are_dropped(self):
        assert generate_avro_schema(address_record(), "com..example.")["namespace"] == "com.example"

    def test_records_in_root_array_carry_namespace(self):
        array = AvroTypeInfo(AvroKind.ARRAY, item_type=address_record())
        schema = generate_avro_schema(array, "com.example")
        assert schema["items"]["namespace"] == "com.example"
        parse_schema(schema)

    def test_docs_are_emitted(self):
        limit = make_nullable(AvroTypeInfo(AvroKind.INT, doc="Spending limit"))
        record = AvroTypeInfo(AvroKind.RECORD, name="Card", doc="A payment card", fields={"limit": limit})
        schema = generate_avro_schema(record)
        assert schema["doc"] == "A payment card"
        assert schema["fields"][0] == {"name": "limit", "type": ["null", "int"], "doc": "Spending limit", "default": None}

    def test_cache_is_per_call(self):
        generator = SchemaGenerator("com.example")
        first = generator.generate_schema(address_record())
        second = generator.generate_schema(address_record())
        assert first == second
        assert isinstance(second, dict)


if __name__ == '__main__':
    unittest.main()
