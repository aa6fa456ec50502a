"""Tests for procedure emission."""

import pytest

from zapgen.generator import parse
from zapgen.generator.emitter import Emitter, generate
from zapgen.generator.schema import Schema
from zapgen.generator.types import (
    Cardinality,
    Field,
    FieldKind,
    MessageType,
    ProtoFile,
    SchemaError,
    Severity,
)


def _schema(text):
    return Schema([parse(text, "test.proto")])


def _names(result):
    return [p.type_name for p in result.procedures]


def describe_emit_message():
    def wraps_fields_in_marshal_method(expect):
        schema = _schema("syntax = 'proto3'; message User { int32 id = 1; }")
        proc = Emitter(schema).emit_message(schema.message("User"))
        expect(proc.text) == (
            "// MarshalLogObject implements zapcore.ObjectMarshaler.\n"
            "func (x *User) MarshalLogObject(enc zapcore.ObjectEncoder) error {\n"
            "\tif x == nil {\n"
            "\t\treturn nil\n"
            "\t}\n"
            '\tenc.AddInt32("Id", x.Id)\n'
            "\treturn nil\n"
            "}\n"
        )

    def preserves_declared_field_order(expect):
        schema = _schema(
            """
            syntax = "proto3";
            message User {
                string zeta = 9;
                int64 alpha = 1;
                bool mid = 5;
            }
            """
        )
        text = Emitter(schema).emit_message(schema.message("User")).text
        expect(text.index('"Zeta"') < text.index('"Alpha"') < text.index('"Mid"')) == True

    def omits_weak_fields(expect):
        hidden = Field(name="hidden", number=2, kind=FieldKind.MESSAGE, weak=True)
        user = MessageType(
            full_name="User",
            name="User",
            fields=[Field(name="id", number=1, kind=FieldKind.INT32), hidden],
        )
        schema = Schema([ProtoFile(path="t.proto", messages=[user])])
        text = Emitter(schema).emit_message(user).text
        expect("Hidden" in text) == False
        expect(text.count("enc.Add")) == 1

    def uses_nested_go_names(expect):
        schema = _schema("message Outer { message Inner { optional int32 v = 1; } }")
        proc = Emitter(schema).emit_message(schema.message("Outer.Inner"))
        expect("func (x *Outer_Inner) MarshalLogObject" in proc.text) == True
        expect('enc.AddInt32("V", x.GetV())' in proc.text) == True


def describe_generate():
    def emits_each_type_once_under_cycles(expect):
        schema = _schema(
            """
            syntax = "proto3";
            message A { B b = 1; repeated A children = 2; }
            message B { A a = 1; map<string, A> index = 2; }
            """
        )
        result = generate(schema, ["A", "B", "A"])
        expect(_names(result)) == ["A", "B"]

    def discovers_referenced_types_from_a_single_root(expect):
        schema = _schema(
            """
            syntax = "proto3";
            message A { B b = 1; }
            message B { C c = 1; }
            message C { A a = 1; }
            """
        )
        result = generate(schema, ["A"])
        expect(_names(result)) == ["A", "B", "C"]

    def handles_self_reference(expect):
        schema = _schema("syntax = 'proto3'; message Node { Node next = 1; }")
        result = generate(schema, ["Node"])
        expect(_names(result)) == ["Node"]
        expect('enc.AddObject("Next", x.Next)' in result.procedures[0].text) == True

    def emits_nested_declarations(expect):
        schema = _schema(
            """
            syntax = "proto3";
            message Outer {
                message Inner { int32 v = 1; }
                map<string, int32> m = 1;
            }
            """
        )
        result = generate(schema, ["Outer"])
        expect(_names(result)) == ["Outer", "Outer.Inner"]

    def never_emits_map_entries(expect):
        schema = _schema("syntax = 'proto3'; message M { map<string, string> tags = 1; }")
        result = generate(schema, ["M", "M.TagsEntry"])
        expect(_names(result)) == ["M"]

    def skips_types_rejected_by_owns(expect):
        schema = _schema(
            """
            syntax = "proto3";
            message Local { Remote r = 1; }
            message Remote { int32 v = 1; }
            """
        )
        result = Emitter(schema, owns=lambda m: m.name != "Remote").generate(["Local"])
        expect(_names(result)) == ["Local"]
        expect(result.procedure("Local").references) == ("Remote",)

    def is_deterministic(expect):
        text = """
            syntax = "proto3";
            message A { map<int32, B> bs = 1; repeated string tags = 2; }
            message B { A a = 1; bool flag = 2; }
        """
        first = generate(_schema(text), ["A", "B"])
        second = generate(_schema(text), ["A", "B"])
        expect([p.text for p in first.procedures]) == [p.text for p in second.procedures]

    def collects_imports(expect):
        schema = _schema("syntax = 'proto3'; message M { map<uint32, string> names = 1; }")
        result = generate(schema, ["M"])
        expect(result.imports) == frozenset(["strconv"])

    def continues_after_invalid_map_key(expect):
        entry = MessageType(
            full_name="Bad.BadEntry",
            name="BadEntry",
            is_map_entry=True,
            fields=[
                Field(name="key", number=1, kind=FieldKind.MESSAGE, type_name="Bad"),
                Field(name="value", number=2, kind=FieldKind.STRING),
            ],
        )
        bad = MessageType(
            full_name="Bad",
            name="Bad",
            nested=[entry],
            fields=[
                Field(
                    name="bad",
                    number=1,
                    kind=FieldKind.MESSAGE,
                    cardinality=Cardinality.MAP,
                    type_name="Bad.BadEntry",
                ),
                Field(name="after", number=2, kind=FieldKind.STRING),
            ],
        )
        schema = Schema([ProtoFile(path="bad.proto", messages=[bad])])
        result = generate(schema, ["Bad"])
        text = result.procedures[0].text
        expect('oe.AddString("{Invalid Map Key - Object}", v)' in text) == True
        expect('enc.AddString("After", x.After)' in text) == True
        expect(len(result.diagnostics)) == 1
        expect(result.diagnostics[0].severity) == Severity.WARNING

    def fails_on_unknown_root(expect):
        schema = _schema("message M {}")
        with pytest.raises(SchemaError):
            generate(schema, ["Missing"])

    def fails_on_dangling_reference(expect):
        user = MessageType(
            full_name="User",
            name="User",
            fields=[Field(name="other", number=1, kind=FieldKind.MESSAGE, type_name="Gone")],
        )
        schema = Schema([ProtoFile(path="t.proto", messages=[user])])
        with pytest.raises(SchemaError):
            generate(schema, ["User"])

    def keeps_state_per_run(expect):
        schema = _schema("syntax = 'proto3'; message A { int32 v = 1; }")
        emitter = Emitter(schema)
        expect(_names(emitter.generate(["A"]))) == ["A"]
        expect(_names(emitter.generate(["A"]))) == ["A"]
