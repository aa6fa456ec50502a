"""Mapping from field kinds to zap encoder methods."""

from enum import StrEnum, auto
from typing import NamedTuple

from .types import FieldKind


class UnknownKindError(ValueError):
    """Raised when a field kind has no encoder method."""


class EncoderMethod(StrEnum):
    """Logical zap encoder operation, named by its Add/Append suffix."""

    BOOL = "Bool"
    INT32 = "Int32"
    UINT32 = "Uint32"
    INT64 = "Int64"
    UINT64 = "Uint64"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    STRING = "String"
    BINARY = "Binary"
    OBJECT = "Object"

    @property
    def add(self) -> str:
        """ObjectEncoder method name."""
        return f"Add{self.value}"

    @property
    def append(self) -> str:
        """ArrayEncoder method name."""
        # ArrayEncoder has no AppendBinary
        if self is EncoderMethod.BINARY:
            return "AppendByteString"
        return f"Append{self.value}"


class ValueTransform(StrEnum):
    """Transform applied to a field value before it reaches the encoder."""

    IDENTITY = auto()
    ENUM_TEXT = auto()
    DELEGATE = auto()

    def apply(self, expr: str) -> str:
        if self is ValueTransform.ENUM_TEXT:
            return f"{expr}.String()"
        # Message pointers implement zapcore.ObjectMarshaler themselves.
        return expr


class Classification(NamedTuple):
    method: EncoderMethod
    accessor: ValueTransform


CLASSIFICATIONS: dict[FieldKind, Classification] = {
    FieldKind.BOOL: Classification(EncoderMethod.BOOL, ValueTransform.IDENTITY),
    FieldKind.ENUM: Classification(EncoderMethod.STRING, ValueTransform.ENUM_TEXT),
    FieldKind.INT32: Classification(EncoderMethod.INT32, ValueTransform.IDENTITY),
    FieldKind.UINT32: Classification(EncoderMethod.UINT32, ValueTransform.IDENTITY),
    FieldKind.INT64: Classification(EncoderMethod.INT64, ValueTransform.IDENTITY),
    FieldKind.UINT64: Classification(EncoderMethod.UINT64, ValueTransform.IDENTITY),
    FieldKind.FLOAT: Classification(EncoderMethod.FLOAT32, ValueTransform.IDENTITY),
    FieldKind.DOUBLE: Classification(EncoderMethod.FLOAT64, ValueTransform.IDENTITY),
    FieldKind.STRING: Classification(EncoderMethod.STRING, ValueTransform.IDENTITY),
    FieldKind.BYTES: Classification(EncoderMethod.BINARY, ValueTransform.IDENTITY),
    FieldKind.MESSAGE: Classification(EncoderMethod.OBJECT, ValueTransform.DELEGATE),
    FieldKind.GROUP: Classification(EncoderMethod.OBJECT, ValueTransform.DELEGATE),
}


def classify(kind: FieldKind) -> Classification:
    """Return the encoder method and value transform for a field kind."""
    try:
        return CLASSIFICATIONS[kind]
    except (KeyError, TypeError):
        raise UnknownKindError(f"no encoder method for field kind {kind!r}") from None
