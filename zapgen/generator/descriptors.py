"""Conversion of protoc descriptors into generator types."""

from collections.abc import Iterable

from google.protobuf import descriptor_pb2

from .naming import go_camel_case
from .schema import Schema
from .types import (
    Cardinality,
    EnumType,
    EnumValue,
    Field,
    FieldKind,
    MessageType,
    ProtoFile,
    SchemaError,
)

FieldDescriptorProto = descriptor_pb2.FieldDescriptorProto

DESCRIPTOR_KINDS: dict[int, FieldKind] = {
    FieldDescriptorProto.TYPE_BOOL: FieldKind.BOOL,
    FieldDescriptorProto.TYPE_INT32: FieldKind.INT32,
    FieldDescriptorProto.TYPE_SINT32: FieldKind.INT32,
    FieldDescriptorProto.TYPE_SFIXED32: FieldKind.INT32,
    FieldDescriptorProto.TYPE_UINT32: FieldKind.UINT32,
    FieldDescriptorProto.TYPE_FIXED32: FieldKind.UINT32,
    FieldDescriptorProto.TYPE_INT64: FieldKind.INT64,
    FieldDescriptorProto.TYPE_SINT64: FieldKind.INT64,
    FieldDescriptorProto.TYPE_SFIXED64: FieldKind.INT64,
    FieldDescriptorProto.TYPE_UINT64: FieldKind.UINT64,
    FieldDescriptorProto.TYPE_FIXED64: FieldKind.UINT64,
    FieldDescriptorProto.TYPE_FLOAT: FieldKind.FLOAT,
    FieldDescriptorProto.TYPE_DOUBLE: FieldKind.DOUBLE,
    FieldDescriptorProto.TYPE_STRING: FieldKind.STRING,
    FieldDescriptorProto.TYPE_BYTES: FieldKind.BYTES,
    FieldDescriptorProto.TYPE_ENUM: FieldKind.ENUM,
    FieldDescriptorProto.TYPE_MESSAGE: FieldKind.MESSAGE,
    FieldDescriptorProto.TYPE_GROUP: FieldKind.GROUP,
}


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def _qualify_go(go_scope: str, name: str) -> str:
    return go_camel_case(f"{go_scope}.{name}" if go_scope else name)


def _field_kind(fd: FieldDescriptorProto, owner: str) -> FieldKind:
    try:
        return DESCRIPTOR_KINDS[fd.type]
    except KeyError:
        raise SchemaError(f"{owner}.{fd.name} has unknown descriptor type {fd.type}") from None


def _load_enum(ed: descriptor_pb2.EnumDescriptorProto, scope: str, go_scope: str) -> EnumType:
    return EnumType(
        full_name=_qualify(scope, ed.name),
        name=ed.name,
        values=[EnumValue(name=v.name, number=v.number) for v in ed.value],
        go_name=_qualify_go(go_scope, ed.name),
    )


def _load_field(
    fd: FieldDescriptorProto,
    message: descriptor_pb2.DescriptorProto,
    full_name: str,
    map_entries: set[str],
    syntax: str,
) -> Field:
    kind = _field_kind(fd, full_name)
    # Type names in descriptors are fully-qualified with a leading dot.
    type_name = fd.type_name.lstrip(".") or None

    cardinality = Cardinality.SINGULAR
    if fd.label == FieldDescriptorProto.LABEL_REPEATED:
        if kind == FieldKind.MESSAGE and type_name in map_entries:
            cardinality = Cardinality.MAP
        else:
            cardinality = Cardinality.REPEATED

    oneof = None
    if fd.HasField("oneof_index") and not fd.proto3_optional:
        oneof = message.oneof_decl[fd.oneof_index].name

    has_presence = cardinality == Cardinality.SINGULAR and (
        fd.proto3_optional
        or (syntax != "proto3" and fd.label != FieldDescriptorProto.LABEL_REPEATED)
        or kind.is_message
    )

    return Field(
        name=fd.name,
        number=fd.number,
        kind=kind,
        cardinality=cardinality,
        type_name=type_name,
        weak=fd.options.weak,
        json_name=fd.json_name,
        oneof=oneof,
        has_presence=has_presence,
    )


def _load_message(
    md: descriptor_pb2.DescriptorProto, scope: str, go_scope: str, syntax: str
) -> MessageType:
    full_name = _qualify(scope, md.name)
    go_path = f"{go_scope}.{md.name}" if go_scope else md.name
    map_entries = {
        _qualify(full_name, nested.name) for nested in md.nested_type if nested.options.map_entry
    }
    return MessageType(
        full_name=full_name,
        name=md.name,
        fields=[_load_field(fd, md, full_name, map_entries, syntax) for fd in md.field],
        nested=[_load_message(n, full_name, go_path, syntax) for n in md.nested_type],
        enums=[_load_enum(e, full_name, go_path) for e in md.enum_type],
        is_map_entry=md.options.map_entry,
        go_name=_qualify_go(go_scope, md.name),
    )


def load_file(fdp: descriptor_pb2.FileDescriptorProto) -> ProtoFile:
    """Convert one FileDescriptorProto."""
    syntax = fdp.syntax or "proto2"
    options = fdp.options
    return ProtoFile(
        path=fdp.name,
        package=fdp.package,
        syntax=syntax,
        go_package=options.go_package if options.HasField("go_package") else None,
        deprecated=options.deprecated,
        dependencies=list(fdp.dependency),
        messages=[_load_message(m, fdp.package, "", syntax) for m in fdp.message_type],
        enums=[_load_enum(e, fdp.package, "") for e in fdp.enum_type],
    )


def load_files(fdps: Iterable[descriptor_pb2.FileDescriptorProto]) -> Schema:
    """Build a schema from descriptors, as found in CodeGeneratorRequest.proto_file."""
    return Schema(load_file(fdp) for fdp in fdps)
