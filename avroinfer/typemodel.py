"""Type model shared by the JSON inference engine, the OpenAPI mapper and the schema generators.

An `AvroTypeInfo` tree is built bottom-up by one of the front ends and is
never modified afterwards. Builders collect children in local lists and
dicts and construct each node exactly once; the constructor validates that
the combination of attributes makes sense for the node's kind.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from avroinfer.errors import InvalidTypeModelError


class AvroKind(Enum):
    """The Avro type kinds a type model node can take."""
    NULL = 'null'
    BOOLEAN = 'boolean'
    INT = 'int'
    LONG = 'long'
    FLOAT = 'float'
    DOUBLE = 'double'
    STRING = 'string'
    ARRAY = 'array'
    ENUM = 'enum'
    RECORD = 'record'
    UNION = 'union'


NAMED_KINDS = (AvroKind.ENUM, AvroKind.RECORD)
LOGICAL_KINDS = (AvroKind.STRING, AvroKind.LONG)
FIELD_NAME_PATTERN = re.compile(r'[A-Za-z0-9_]+')


@dataclass(frozen=True)
class AvroTypeInfo:
    """Describes one inferred or mapped Avro type.

    Attributes:
        kind: The Avro type kind
        logical_type: Semantic refinement of a STRING or LONG (e.g. 'uuid')
        pattern: Validation regular expression, STRING only
        doc: Human-readable description
        name: Type name, required for ENUM and RECORD
        fields: Ordered mapping of sanitized field name to field type, RECORD only
        item_type: Item type, ARRAY only
        enum_symbols: Ordered, duplicate-free symbols, ENUM only
        alternatives: Ordered union members, UNION only
    """
    kind: AvroKind
    logical_type: Optional[str] = None
    pattern: Optional[str] = None
    doc: Optional[str] = None
    name: Optional[str] = None
    fields: Mapping[str, 'AvroTypeInfo'] = field(default_factory=dict)
    item_type: Optional['AvroTypeInfo'] = None
    enum_symbols: Tuple[str, ...] = ()
    alternatives: Tuple['AvroTypeInfo', ...] = ()

    def __post_init__(self):
        if not isinstance(self.kind, AvroKind):
            raise InvalidTypeModelError(f"Unknown type kind {self.kind!r}")
        label = self.name or self.kind.value

        # freeze the collections so the node can't be changed after construction
        object.__setattr__(self, 'fields', MappingProxyType(dict(self.fields)))
        object.__setattr__(self, 'enum_symbols', tuple(dict.fromkeys(self.enum_symbols)))
        object.__setattr__(self, 'alternatives', tuple(self.alternatives))

        if self.kind in NAMED_KINDS and not self.name:
            raise InvalidTypeModelError(f"A {self.kind.value} type requires a name")
        if self.pattern is not None and self.kind != AvroKind.STRING:
            raise InvalidTypeModelError("Patterns can only be attached to string types", label)
        if self.logical_type is not None and self.kind not in LOGICAL_KINDS:
            raise InvalidTypeModelError("Logical types can only refine string or long types", label)

        if self.kind == AvroKind.RECORD:
            for field_name in self.fields:
                if not FIELD_NAME_PATTERN.fullmatch(field_name):
                    raise InvalidTypeModelError(f"Invalid field name '{field_name}'", label)
        elif self.fields:
            raise InvalidTypeModelError("Only record types can have fields", label)

        if self.kind == AvroKind.ARRAY:
            if self.item_type is None:
                raise InvalidTypeModelError("An array type requires an item type", label)
        elif self.item_type is not None:
            raise InvalidTypeModelError("Only array types can have an item type", label)

        if self.kind == AvroKind.ENUM:
            if not self.enum_symbols:
                raise InvalidTypeModelError("An enum type requires at least one symbol", label)
        elif self.enum_symbols:
            raise InvalidTypeModelError("Only enum types can have symbols", label)

        if self.kind == AvroKind.UNION:
            if not self.alternatives:
                raise InvalidTypeModelError("A union type requires at least one alternative", label)
            for index, alternative in enumerate(self.alternatives):
                if alternative.kind == AvroKind.UNION:
                    raise InvalidTypeModelError("Unions can't directly contain unions", label)
                if alternative.kind == AvroKind.NULL and index > 0:
                    raise InvalidTypeModelError("null may only be the first alternative of a union", label)
        elif self.alternatives:
            raise InvalidTypeModelError("Only union types can have alternatives", label)

    @property
    def is_nullable(self) -> bool:
        """True for a union whose first alternative is null."""
        return self.kind == AvroKind.UNION and self.alternatives[0].kind == AvroKind.NULL

    @property
    def is_named(self) -> bool:
        """True for enums and records."""
        return self.kind in NAMED_KINDS

    def qualified_name(self, namespace: str) -> str:
        """Returns the namespace-qualified name of a named type."""
        return f"{namespace}.{self.name}" if namespace else str(self.name)


NULL_TYPE = AvroTypeInfo(AvroKind.NULL)
STRING_TYPE = AvroTypeInfo(AvroKind.STRING)


def make_nullable(type_info: AvroTypeInfo) -> AvroTypeInfo:
    """Wraps a type into a union with null as first alternative.

    Nullable unions are returned unchanged and other unions get null
    prepended, so the result never nests unions. The doc of the wrapped
    type is kept on the union.

    Args:
        type_info: The type to make nullable

    Returns:
        A nullable union type
    """
    if type_info.is_nullable:
        return type_info
    if type_info.kind == AvroKind.NULL:
        return AvroTypeInfo(AvroKind.UNION, alternatives=(NULL_TYPE, STRING_TYPE), doc=type_info.doc)
    if type_info.kind == AvroKind.UNION:
        return AvroTypeInfo(AvroKind.UNION, alternatives=(NULL_TYPE,) + type_info.alternatives, doc=type_info.doc)
    return AvroTypeInfo(AvroKind.UNION, alternatives=(NULL_TYPE, type_info), doc=type_info.doc)


def nullable_string() -> AvroTypeInfo:
    """The placeholder used for values that are only ever seen as null."""
    return make_nullable(STRING_TYPE)


def union_of(alternatives: Iterable[AvroTypeInfo], doc: Optional[str] = None) -> AvroTypeInfo:
    """Creates a union, moving a null alternative to the front."""
    alternatives = list(alternatives)
    has_null = any(a.kind == AvroKind.NULL for a in alternatives)
    members = [a for a in alternatives if a.kind != AvroKind.NULL]
    if has_null:
        members.insert(0, NULL_TYPE)
    return AvroTypeInfo(AvroKind.UNION, alternatives=tuple(members), doc=doc)
