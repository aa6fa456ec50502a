"""Per-field statement emission.

Each field becomes one statement in the generated MarshalLogObject body:
a direct `enc.Add<Method>` call for singular fields, a lazily evaluated
`zapcore.ArrayMarshalerFunc` for repeated fields and a
`zapcore.ObjectMarshalerFunc` for maps. The closures stream elements into
the encoder instead of building an intermediate collection.
"""

from dataclasses import dataclass, field

from .classify import UnknownKindError, classify
from .mapkeys import stringify_key
from .naming import go_string
from .options import GeneratorOptions, KeyStyle
from .schema import Schema
from .types import Cardinality, Diagnostic, Field, FieldKind, MessageType, SchemaError, Severity

RECEIVER = "x"


@dataclass
class FieldCode:
    """Statements and bookkeeping produced for one field."""

    lines: list[str] = field(default_factory=list)
    imports: set[str] = field(default_factory=set)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    references: list[str] = field(default_factory=list)


def key_name(f: Field, options: GeneratorOptions) -> str:
    """Return the log key for a field."""
    if options.keys == KeyStyle.PROTO:
        return f.name
    if options.keys == KeyStyle.JSON:
        return f.json_name
    return f.go_name


def value_expr(f: Field) -> str:
    """Return the Go expression reading a field from the receiver.

    Oneof members, and scalars and enums with explicit presence, are stored
    behind wrappers or pointers, so they are read through the generated
    getter.
    """
    if f.cardinality == Cardinality.SINGULAR and (
        f.oneof is not None or (f.has_presence and not f.kind.is_message)
    ):
        return f"{RECEIVER}.Get{f.go_name}()"
    return f"{RECEIVER}.{f.go_name}"


def _check_reference(f: Field, owner: MessageType, schema: Schema, code: FieldCode) -> None:
    if f.kind == FieldKind.ENUM or f.kind.is_message:
        if not f.type_name:
            raise SchemaError(f"{owner.full_name}.{f.name} has no type reference")
    if f.kind == FieldKind.ENUM:
        schema.enum(f.type_name)
    elif f.kind.is_message:
        schema.message(f.type_name)
        code.references.append(f.type_name)


def _map_entry(f: Field, owner: MessageType, schema: Schema) -> tuple[Field, Field]:
    if not f.type_name:
        raise SchemaError(f"map field {owner.full_name}.{f.name} has no entry type")
    entry = schema.message(f.type_name)
    if not entry.is_map_entry or len(entry.fields) != 2:
        raise SchemaError(f"{entry.full_name} is not a valid map entry type")
    key, value = sorted(entry.fields, key=lambda e: e.number)
    return key, value


def _emit_singular(f: Field, key: str, code: FieldCode) -> None:
    method, accessor = classify(f.kind)
    code.lines.append(f'enc.{method.add}({key}, {accessor.apply(value_expr(f))})')


def _emit_list(f: Field, key: str, code: FieldCode) -> None:
    method, accessor = classify(f.kind)
    code.lines.extend(
        [
            f'enc.AddArray({key}, zapcore.ArrayMarshalerFunc(func(ae zapcore.ArrayEncoder) error {{',
            f"\tfor _, v := range {RECEIVER}.{f.go_name} {{",
            f"\t\tae.{method.append}({accessor.apply('v')})",
            "\t}",
            "\treturn nil",
            "}))",
        ]
    )


def _emit_map(
    f: Field, key: str, owner: MessageType, schema: Schema, code: FieldCode
) -> None:
    key_field, value_field = _map_entry(f, owner, schema)
    method, accessor = classify(value_field.kind)
    _check_reference(value_field, owner, schema, code)

    key_expr = stringify_key(key_field.kind, "k")
    if not key_expr.valid:
        code.diagnostics.append(
            Diagnostic(Severity.WARNING, key_expr.problem or "", owner.full_name, f.name)
        )
    code.imports.update(key_expr.imports)

    code.lines.extend(
        [
            f'enc.AddObject({key}, zapcore.ObjectMarshalerFunc(func(oe zapcore.ObjectEncoder) error {{',
            f"\tfor k, v := range {RECEIVER}.{f.go_name} {{",
            f"\t\toe.{method.add}({key_expr.text}, {accessor.apply('v')})",
            "\t}",
            "\treturn nil",
            "}))",
        ]
    )


def emit_field(
    f: Field,
    owner: MessageType,
    schema: Schema,
    options: GeneratorOptions | None = None,
) -> FieldCode:
    """Emit the statements that log one field of `owner`.

    Raises:
        SchemaError: The field references a type missing from the schema.
    """
    options = options or GeneratorOptions()
    code = FieldCode()

    # Weak fields have no guaranteed type linkage.
    if f.weak:
        return code

    key = go_string(key_name(f, options))
    try:
        if f.cardinality == Cardinality.MAP:
            _emit_map(f, key, owner, schema, code)
        else:
            if f.cardinality == Cardinality.REPEATED:
                _emit_list(f, key, code)
            else:
                _emit_singular(f, key, code)
            _check_reference(f, owner, schema, code)
    except UnknownKindError as exc:
        return FieldCode(diagnostics=[Diagnostic(Severity.ERROR, str(exc), owner.full_name, f.name)])
    return code
