"""Tests for per-field statement emission."""

import pytest

from zapgen.generator.containers import emit_field, key_name, value_expr
from zapgen.generator.options import GeneratorOptions, KeyStyle
from zapgen.generator.schema import Schema
from zapgen.generator.types import (
    Cardinality,
    EnumType,
    Field,
    FieldKind,
    MessageType,
    ProtoFile,
    SchemaError,
    Severity,
)


def _entry(owner: str, name: str, key: FieldKind, value: FieldKind, value_ref=None):
    return MessageType(
        full_name=f"{owner}.{name}",
        name=name,
        is_map_entry=True,
        fields=[
            Field(name="key", number=1, kind=key),
            Field(name="value", number=2, kind=value, type_name=value_ref),
        ],
    )


def _schema(*messages, enums=()):
    return Schema([ProtoFile(path="test.proto", messages=list(messages), enums=list(enums))])


def _user(*fields, nested=()):
    return MessageType(full_name="User", name="User", fields=list(fields), nested=list(nested))


def describe_singular_fields():
    def calls_typed_add_with_identity_value(expect):
        f = Field(name="id", number=1, kind=FieldKind.INT32)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == ['enc.AddInt32("Id", x.Id)']
        expect(code.diagnostics) == []

    def renders_enums_as_strings(expect):
        f = Field(name="status", number=1, kind=FieldKind.ENUM, type_name="Status")
        user = _user(f)
        schema = _schema(user, enums=[EnumType(full_name="Status", name="Status")])
        code = emit_field(f, user, schema)
        expect(code.lines) == ['enc.AddString("Status", x.Status.String())']

    def delegates_nested_messages(expect):
        f = Field(name="address", number=1, kind=FieldKind.MESSAGE, type_name="Address")
        user = _user(f)
        address = MessageType(full_name="Address", name="Address")
        code = emit_field(f, user, _schema(user, address))
        expect(code.lines) == ['enc.AddObject("Address", x.Address)']
        expect(code.references) == ["Address"]

    def logs_bytes_as_binary(expect):
        f = Field(name="avatar", number=1, kind=FieldKind.BYTES)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == ['enc.AddBinary("Avatar", x.Avatar)']

    def reads_oneof_members_through_getters(expect):
        f = Field(name="email", number=1, kind=FieldKind.STRING, oneof="contact")
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == ['enc.AddString("Email", x.GetEmail())']

    def reads_optional_scalars_through_getters(expect):
        f = Field(name="score", number=1, kind=FieldKind.DOUBLE, has_presence=True)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == ['enc.AddFloat64("Score", x.GetScore())']

    def reads_optional_enums_through_getters(expect):
        f = Field(
            name="status",
            number=1,
            kind=FieldKind.ENUM,
            type_name="Status",
            has_presence=True,
        )
        user = _user(f)
        schema = _schema(user, enums=[EnumType(full_name="Status", name="Status")])
        code = emit_field(f, user, schema)
        expect(code.lines) == ['enc.AddString("Status", x.GetStatus().String())']

    def quotes_keys_as_go_strings(expect):
        f = Field(name="name", number=1, kind=FieldKind.STRING, json_name='say "hi"\\')
        user = _user(f)
        code = emit_field(f, user, _schema(user), GeneratorOptions(keys=KeyStyle.JSON))
        expect(code.lines) == ['enc.AddString("say \\"hi\\"\\\\", x.Name)']

    def uses_suffixed_names_for_method_clashes(expect):
        f = Field(name="reset", number=1, kind=FieldKind.STRING)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == ['enc.AddString("Reset_", x.Reset_)']

    def reads_messages_directly(expect):
        f = Field(
            name="address",
            number=1,
            kind=FieldKind.MESSAGE,
            type_name="Address",
            has_presence=True,
        )
        user = _user(f)
        address = MessageType(full_name="Address", name="Address")
        code = emit_field(f, user, _schema(user, address))
        expect(code.lines) == ['enc.AddObject("Address", x.Address)']


def describe_repeated_fields():
    def quotes_keys_as_go_strings(expect):
        f = Field(
            name="tags",
            number=1,
            kind=FieldKind.STRING,
            cardinality=Cardinality.REPEATED,
            json_name="a\\b",
        )
        user = _user(f)
        code = emit_field(f, user, _schema(user), GeneratorOptions(keys=KeyStyle.JSON))
        expect(code.lines[0].startswith('enc.AddArray("a\\\\b", ')) == True

    def wraps_elements_in_array_marshaler(expect):
        f = Field(name="tags", number=1, kind=FieldKind.STRING, cardinality=Cardinality.REPEATED)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == [
            'enc.AddArray("Tags", zapcore.ArrayMarshalerFunc(func(ae zapcore.ArrayEncoder) error {',
            "\tfor _, v := range x.Tags {",
            "\t\tae.AppendString(v)",
            "\t}",
            "\treturn nil",
            "}))",
        ]

    def appends_enum_text(expect):
        f = Field(
            name="states",
            number=1,
            kind=FieldKind.ENUM,
            cardinality=Cardinality.REPEATED,
            type_name="Status",
        )
        user = _user(f)
        schema = _schema(user, enums=[EnumType(full_name="Status", name="Status")])
        code = emit_field(f, user, schema)
        expect(code.lines[2]) == "\t\tae.AppendString(v.String())"

    def appends_binary_as_byte_strings(expect):
        f = Field(name="blobs", number=1, kind=FieldKind.BYTES, cardinality=Cardinality.REPEATED)
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines[2]) == "\t\tae.AppendByteString(v)"

    def appends_nested_messages(expect):
        f = Field(
            name="friends",
            number=1,
            kind=FieldKind.MESSAGE,
            cardinality=Cardinality.REPEATED,
            type_name="User",
        )
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines[2]) == "\t\tae.AppendObject(v)"
        expect(code.references) == ["User"]


def describe_map_fields():
    def wraps_entries_in_object_marshaler(expect):
        f = Field(
            name="counts",
            number=1,
            kind=FieldKind.MESSAGE,
            cardinality=Cardinality.MAP,
            type_name="User.CountsEntry",
        )
        entry = _entry("User", "CountsEntry", FieldKind.STRING, FieldKind.INT32)
        user = _user(f, nested=[entry])
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == [
            'enc.AddObject("Counts", zapcore.ObjectMarshalerFunc(func(oe zapcore.ObjectEncoder) error {',
            "\tfor k, v := range x.Counts {",
            "\t\toe.AddInt32(k, v)",
            "\t}",
            "\treturn nil",
            "}))",
        ]
        expect(code.imports) == set()

    def stringifies_integer_keys(expect):
        f = Field(
            name="by_id",
            number=1,
            kind=FieldKind.MESSAGE,
            cardinality=Cardinality.MAP,
            type_name="User.ByIdEntry",
        )
        entry = _entry("User", "ByIdEntry", FieldKind.INT64, FieldKind.MESSAGE, "User")
        user = _user(f, nested=[entry])
        code = emit_field(f, user, _schema(user))
        expect(code.lines[2]) == "\t\toe.AddObject(strconv.FormatInt(k, 10), v)"
        expect(code.imports) == {"strconv"}
        expect(code.references) == ["User"]

    def substitutes_placeholder_for_message_keys(expect):
        f = Field(
            name="bad",
            number=1,
            kind=FieldKind.MESSAGE,
            cardinality=Cardinality.MAP,
            type_name="Bad.BadEntry",
        )
        entry = _entry("Bad", "BadEntry", FieldKind.MESSAGE, FieldKind.STRING)
        bad = MessageType(full_name="Bad", name="Bad", fields=[f], nested=[entry])
        code = emit_field(f, bad, _schema(bad))
        expect(code.lines[2]) == '\t\toe.AddString("{Invalid Map Key - Object}", v)'
        expect(len(code.diagnostics)) == 1
        expect(code.diagnostics[0].severity) == Severity.WARNING
        expect(code.diagnostics[0].field_name) == "bad"

    def rejects_malformed_entry_types(expect):
        f = Field(
            name="counts",
            number=1,
            kind=FieldKind.MESSAGE,
            cardinality=Cardinality.MAP,
            type_name="User.CountsEntry",
        )
        entry = MessageType(full_name="User.CountsEntry", name="CountsEntry", is_map_entry=True)
        user = _user(f, nested=[entry])
        with pytest.raises(SchemaError):
            emit_field(f, user, _schema(user))


def describe_weak_fields():
    def emit_nothing(expect):
        f = Field(
            name="hidden",
            number=1,
            kind=FieldKind.MESSAGE,
            type_name="Missing",
            weak=True,
        )
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == []
        expect(code.references) == []
        expect(code.diagnostics) == []


def describe_errors():
    def fails_on_missing_reference(expect):
        f = Field(name="address", number=1, kind=FieldKind.MESSAGE, type_name="Nowhere")
        user = _user(f)
        with pytest.raises(SchemaError) as exc:
            emit_field(f, user, _schema(user))
        expect("Nowhere" in str(exc.value)) == True

    def fails_on_missing_enum(expect):
        f = Field(name="status", number=1, kind=FieldKind.ENUM, type_name="Status")
        user = _user(f)
        with pytest.raises(SchemaError):
            emit_field(f, user, _schema(user))

    def reports_unknown_kinds_per_field(expect):
        f = Field(name="odd", number=1, kind="sint32")
        user = _user(f)
        code = emit_field(f, user, _schema(user))
        expect(code.lines) == []
        expect(len(code.diagnostics)) == 1
        expect(code.diagnostics[0].severity) == Severity.ERROR


def describe_key_name():
    def defaults_to_go_name(expect):
        f = Field(name="user_id", number=1, kind=FieldKind.INT64)
        expect(key_name(f, GeneratorOptions())) == "UserId"

    def supports_proto_and_json_names(expect):
        f = Field(name="user_id", number=1, kind=FieldKind.INT64)
        expect(key_name(f, GeneratorOptions(keys=KeyStyle.PROTO))) == "user_id"
        expect(key_name(f, GeneratorOptions(keys=KeyStyle.JSON))) == "userId"


def describe_value_expr():
    def reads_fields_from_the_receiver(expect):
        f = Field(name="name", number=1, kind=FieldKind.STRING)
        expect(value_expr(f)) == "x.Name"
