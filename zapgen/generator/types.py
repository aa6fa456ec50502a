"""Type definitions for schema loading and code generation."""

from dataclasses import dataclass, field
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin

from .naming import GoNameScope, go_camel_case


class SchemaError(RuntimeError):
    """Raised when the input schema is malformed or self-inconsistent."""


class FieldKind(StrEnum):
    """Logical kind of a field, independent of its wire encoding."""

    BOOL = auto()
    INT32 = auto()
    UINT32 = auto()
    INT64 = auto()
    UINT64 = auto()
    FLOAT = auto()
    DOUBLE = auto()
    STRING = auto()
    BYTES = auto()
    ENUM = auto()
    MESSAGE = auto()
    GROUP = auto()

    @property
    def is_scalar(self) -> bool:
        return self not in (FieldKind.ENUM, FieldKind.MESSAGE, FieldKind.GROUP)

    @property
    def is_message(self) -> bool:
        return self in (FieldKind.MESSAGE, FieldKind.GROUP)


class Cardinality(StrEnum):
    """How many values a field holds."""

    SINGULAR = auto()
    REPEATED = auto()
    MAP = auto()


# Scalar type names as written in .proto sources. Zig-zag and fixed width
# variants share the logical kind of their plain counterpart.
SCALAR_KINDS: dict[str, FieldKind] = {
    "bool": FieldKind.BOOL,
    "int32": FieldKind.INT32,
    "sint32": FieldKind.INT32,
    "sfixed32": FieldKind.INT32,
    "uint32": FieldKind.UINT32,
    "fixed32": FieldKind.UINT32,
    "int64": FieldKind.INT64,
    "sint64": FieldKind.INT64,
    "sfixed64": FieldKind.INT64,
    "uint64": FieldKind.UINT64,
    "fixed64": FieldKind.UINT64,
    "float": FieldKind.FLOAT,
    "double": FieldKind.DOUBLE,
    "string": FieldKind.STRING,
    "bytes": FieldKind.BYTES,
}


def scalar_kind(name: str) -> FieldKind | None:
    """Return the kind of a scalar type name, or None for user-defined types."""
    return SCALAR_KINDS.get(name)


@dataclass
class Field(DataClassJsonMixin):
    """Represents a field of a message type.

    For enum, message and group kinds `type_name` is the fully-qualified name
    of the referenced type. For map fields it names the synthetic entry type.
    """

    name: str
    number: int
    kind: FieldKind
    cardinality: Cardinality = Cardinality.SINGULAR
    type_name: str | None = None
    weak: bool = False
    go_name: str = ""
    json_name: str = ""
    oneof: str | None = None
    has_presence: bool = False

    def __post_init__(self) -> None:
        if not self.go_name:
            self.go_name = go_camel_case(self.name)
        if not self.json_name:
            self.json_name = json_camel_case(self.name)


@dataclass
class EnumValue(DataClassJsonMixin):
    """Represents a single enum value."""

    name: str
    number: int


@dataclass
class EnumType(DataClassJsonMixin):
    """Represents an enum type definition."""

    full_name: str
    name: str
    values: list[EnumValue] = field(default_factory=list)
    go_name: str = ""

    def __post_init__(self) -> None:
        if not self.go_name:
            self.go_name = go_camel_case(self.name)


@dataclass
class MessageType(DataClassJsonMixin):
    """Represents a message type with its fields and nested declarations.

    Field order is the declaration order and is preserved in generated code.
    """

    full_name: str
    name: str
    fields: list[Field] = field(default_factory=list)
    nested: list["MessageType"] = field(default_factory=list)
    enums: list[EnumType] = field(default_factory=list)
    is_map_entry: bool = False
    go_name: str = ""

    def __post_init__(self) -> None:
        if not self.go_name:
            self.go_name = go_camel_case(self.name)
        self.resolve_field_names()

    def resolve_field_names(self) -> None:
        """Suffix field Go names that clash on the generated struct."""
        scope = GoNameScope()
        oneofs: set[str] = set()
        for f in self.fields:
            f.go_name = scope.unique(f.go_name)
            # A oneof takes its name when its first member is declared.
            if f.oneof is not None and f.oneof not in oneofs:
                oneofs.add(f.oneof)
                scope.unique(go_camel_case(f.oneof), has_getter=False)


@dataclass
class ProtoFile(DataClassJsonMixin):
    """Represents one .proto file."""

    path: str
    package: str = ""
    syntax: str = "proto2"
    go_package: str | None = None
    deprecated: bool = False
    dependencies: list[str] = field(default_factory=list)
    messages: list[MessageType] = field(default_factory=list)
    enums: list[EnumType] = field(default_factory=list)


class Severity(StrEnum):
    """Severity of a generation diagnostic."""

    WARNING = auto()
    ERROR = auto()


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while generating code for one field."""

    severity: Severity
    message: str
    type_name: str
    field_name: str | None = None

    def __str__(self) -> str:
        where = self.type_name if self.field_name is None else f"{self.type_name}.{self.field_name}"
        return f"{where}: {self.message}"


def json_camel_case(name: str) -> str:
    """Return the default JSON name protoc assigns to a field."""
    out: list[str] = []
    upper = False
    for c in name:
        if c == "_":
            upper = True
        elif upper:
            out.append(c.upper())
            upper = False
        else:
            out.append(c)
    return "".join(out)
