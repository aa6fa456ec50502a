"""Protobuf source parser using Lark."""

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from lark import Lark, Token
from lark.visitors import Transformer

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
    scalar_kind,
)

_g_parser: Lark | None = None


class ValidationError(SchemaError):
    """Raised when a parsed file does not describe a consistent schema."""


@dataclass
class _Syntax:
    value: str


@dataclass
class _Package:
    value: str


@dataclass
class _Import:
    value: str


@dataclass
class _Constant:
    value: Any


@dataclass
class _Option:
    name: str
    value: Any


@dataclass
class _FieldOptions:
    options: list[_Option]


@dataclass
class _EnumValue:
    name: str
    number: int


@dataclass
class _Enum:
    name: str
    values: list[_EnumValue]


@dataclass
class _Field:
    name: str
    number: int
    type: str
    label: str | None = None
    options: list[_Option] = field(default_factory=list)
    key_type: str | None = None
    group: "_Message | None" = None
    oneof: str | None = None

    def option(self, name: str, default: Any = None) -> Any:
        for opt in self.options:
            if opt.name == name:
                return opt.value
        return default


@dataclass
class _Oneof:
    name: str
    fields: list[_Field]


@dataclass
class _Message:
    name: str
    items: list[Any]


@dataclass
class _Ignored:
    pass


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[object]) -> Any:
    filtered = _filter(args, class_type)
    if len(filtered) == 0:
        return None
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")
    return filtered[0]


def _tokens(args: list[Any], token_type: str) -> list[str]:
    return [str(v) for v in args if isinstance(v, Token) and v.type == token_type]


def _token(args: list[Any], token_type: str) -> str | None:
    found = _tokens(args, token_type)
    return found[0] if found else None


def _unquote(text: str) -> str:
    body = text[1:-1]
    return body.encode("latin-1", "backslashreplace").decode("unicode_escape")


def _to_int(text: str) -> int:
    sign = -1 if text.startswith("-") else 1
    text = text.lstrip("+-")
    if text[:2] in ("0x", "0X"):
        return sign * int(text, 16)
    if len(text) > 1 and text.startswith("0"):
        return sign * int(text, 8)
    return sign * int(text)


def _field_options(args: list[Any]) -> list[_Option]:
    opts = _find_one(args, _FieldOptions)
    return opts.options if opts else []


class TreeTransformer(Transformer):
    """Transform parse tree into intermediate declarations."""

    def start(self, args: list[Any]) -> list[Any]:
        return args

    def syntax(self, args: list[Any]) -> _Syntax:
        return _Syntax(value=_unquote(str(args[0])))

    def edition(self, args: list[Any]) -> _Syntax:
        return _Syntax(value="editions")

    def package(self, args: list[Any]) -> _Package:
        return _Package(value=str(args[0]))

    def import_(self, args: list[Any]) -> _Import:
        return _Import(value=_unquote(str(args[-1])))

    def option(self, args: list[Any]) -> _Option:
        return _Option(name=str(args[0]), value=args[1].value)

    def field_option(self, args: list[Any]) -> _Option:
        return _Option(name=str(args[0]), value=args[1].value)

    def field_options(self, args: list[Any]) -> _FieldOptions:
        return _FieldOptions(options=_filter(args, _Option))

    def constant(self, args: list[Any]) -> _Constant:
        strings = _tokens(args, "STRING")
        if strings:
            return _Constant(value="".join(_unquote(s) for s in strings))
        text = "".join(str(a) for a in args)
        if text in ("true", "false"):
            return _Constant(value=text == "true")
        return _Constant(value=text)

    def field(self, args: list[Any]) -> _Field:
        return _Field(
            name=_token(args, "IDENT") or "",
            number=_to_int(_token(args, "INT") or "0"),
            type=_token(args, "QUALIFIED") or "",
            label=_token(args, "LABEL"),
            options=_field_options(args),
        )

    def oneof_field(self, args: list[Any]) -> _Field:
        return self.field(args)

    def map_field(self, args: list[Any]) -> _Field:
        key_type, value_type = _tokens(args, "QUALIFIED")
        return _Field(
            name=_token(args, "IDENT") or "",
            number=_to_int(_token(args, "INT") or "0"),
            type=value_type,
            key_type=key_type,
            options=_field_options(args),
        )

    def group(self, args: list[Any]) -> _Field:
        name = _token(args, "IDENT") or ""
        return _Field(
            name=name.lower(),
            number=_to_int(_token(args, "INT") or "0"),
            type=name,
            label=_token(args, "LABEL"),
            options=_field_options(args),
            group=_Message(name=name, items=[a for a in args if not isinstance(a, Token)]),
        )

    def oneof(self, args: list[Any]) -> _Oneof:
        name = _token(args, "IDENT") or ""
        fields = _filter(args, _Field)
        for f in fields:
            f.oneof = name
        return _Oneof(name=name, fields=fields)

    def message(self, args: list[Any]) -> _Message:
        return _Message(name=str(args[0]), items=args[1:])

    def enum(self, args: list[Any]) -> _Enum:
        return _Enum(name=str(args[0]), values=_filter(args, _EnumValue))

    def enum_value(self, args: list[Any]) -> _EnumValue:
        return _EnumValue(name=str(args[0]), number=_to_int(str(args[1])))

    def _ignore(self, args: list[Any]) -> _Ignored:
        return _Ignored()

    reserved = extensions = range = extend = service = rpc = empty = _ignore


def _qualify(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name


def map_entry_name(field_name: str) -> str:
    """Return the name protoc gives the synthetic entry type of a map field."""
    out: list[str] = []
    cap_next = True
    for c in field_name:
        if c == "_":
            cap_next = True
        elif cap_next:
            out.append(c.upper())
            cap_next = False
        else:
            out.append(c)
    return "".join(out) + "Entry"


def _message_fields(items: list[Any]) -> list[_Field]:
    fields: list[_Field] = []
    for item in items:
        if isinstance(item, _Field):
            fields.append(item)
        elif isinstance(item, _Oneof):
            fields.extend(item.fields)
    return fields


@dataclass
class _ParsedFile:
    path: str
    items: list[Any]

    @property
    def package(self) -> str:
        pkg = _find_one(self.items, _Package)
        return pkg.value if pkg else ""

    @property
    def syntax(self) -> str:
        syntax = _find_one(self.items, _Syntax)
        return syntax.value if syntax else "proto2"

    def option(self, name: str) -> Any:
        for opt in _filter(self.items, _Option):
            if opt.name == name:
                return opt.value
        return None


class _Builder:
    """Resolve type references and build generator types from parsed files."""

    def __init__(self, files: list[_ParsedFile]):
        self.files = files
        self.declared: dict[str, FieldKind] = {}
        for pf in files:
            self._declare(pf.package, pf.items)

    def _declare_name(self, full_name: str, kind: FieldKind) -> None:
        if full_name in self.declared:
            raise ValidationError(f"{full_name} is already defined")
        self.declared[full_name] = kind

    def _declare(self, scope: str, items: list[Any]) -> None:
        for item in items:
            if isinstance(item, _Enum):
                self._declare_name(_qualify(scope, item.name), FieldKind.ENUM)
            elif isinstance(item, _Message):
                full_name = _qualify(scope, item.name)
                self._declare_name(full_name, FieldKind.MESSAGE)
                self._declare(full_name, item.items)
                for f in _message_fields(item.items):
                    if f.key_type is not None:
                        self._declare_name(
                            _qualify(full_name, map_entry_name(f.name)), FieldKind.MESSAGE
                        )
                    if f.group is not None:
                        self._declare(full_name, [f.group])

    def resolve(self, ref: str, scope: str) -> str | None:
        """Resolve a type reference the way protoc does, innermost scope first."""
        if ref.startswith("."):
            name = ref[1:]
            return name if name in self.declared else None
        parts = scope.split(".") if scope else []
        while True:
            candidate = ".".join([*parts, ref])
            if candidate in self.declared:
                return candidate
            if not parts:
                return None
            parts.pop()

    def _kind(self, ref: str, scope: str, where: str) -> tuple[FieldKind, str | None]:
        kind = scalar_kind(ref)
        if kind is not None:
            return kind, None
        resolved = self.resolve(ref, scope)
        if resolved is None:
            raise ValidationError(f"{where}: unknown type {ref}")
        return self.declared[resolved], resolved

    def build(self) -> list[ProtoFile]:
        result: list[ProtoFile] = []
        for pf in self.files:
            syntax = pf.syntax
            go_package = pf.option("go_package")
            result.append(
                ProtoFile(
                    path=pf.path,
                    package=pf.package,
                    syntax=syntax,
                    go_package=str(go_package) if go_package is not None else None,
                    deprecated=pf.option("deprecated") is True,
                    dependencies=[i.value for i in _filter(pf.items, _Import)],
                    messages=[
                        self._message(m, pf.package, "", syntax)
                        for m in _filter(pf.items, _Message)
                    ],
                    enums=[self._enum(e, pf.package, "") for e in _filter(pf.items, _Enum)],
                )
            )
        return result

    def _enum(self, e: _Enum, scope: str, go_scope: str) -> EnumType:
        return EnumType(
            full_name=_qualify(scope, e.name),
            name=e.name,
            values=[EnumValue(name=v.name, number=v.number) for v in e.values],
            go_name=go_camel_case(_qualify(go_scope, e.name)),
        )

    def _message(self, m: _Message, scope: str, go_scope: str, syntax: str) -> MessageType:
        full_name = _qualify(scope, m.name)
        go_path = _qualify(go_scope, m.name)
        message = MessageType(
            full_name=full_name,
            name=m.name,
            go_name=go_camel_case(go_path),
            enums=[self._enum(e, full_name, go_path) for e in _filter(m.items, _Enum)],
        )

        seen: set[str] = set()
        for f in _message_fields(m.items):
            if f.name in seen:
                raise ValidationError(f"{full_name}: duplicate field {f.name}")
            seen.add(f.name)
            message.fields.append(self._field(f, message, go_path, syntax))
        message.resolve_field_names()

        for item in m.items:
            if isinstance(item, _Message):
                message.nested.append(self._message(item, full_name, go_path, syntax))
        for f in _message_fields(m.items):
            if f.group is not None:
                message.nested.append(self._message(f.group, full_name, go_path, syntax))
            if f.key_type is not None:
                message.nested.append(self._map_entry(f, message, go_path))
        return message

    def _map_entry(self, f: _Field, owner: MessageType, go_scope: str) -> MessageType:
        name = map_entry_name(f.name)
        where = f"{owner.full_name}.{f.name}"
        key_kind, key_ref = self._kind(f.key_type or "", owner.full_name, where)
        value_kind, value_ref = self._kind(f.type, owner.full_name, where)
        return MessageType(
            full_name=_qualify(owner.full_name, name),
            name=name,
            go_name=go_camel_case(_qualify(go_scope, name)),
            is_map_entry=True,
            fields=[
                Field(name="key", number=1, kind=key_kind, type_name=key_ref),
                Field(name="value", number=2, kind=value_kind, type_name=value_ref),
            ],
        )

    def _field(self, f: _Field, owner: MessageType, go_scope: str, syntax: str) -> Field:
        where = f"{owner.full_name}.{f.name}"

        if f.group is not None:
            kind, type_name = FieldKind.GROUP, _qualify(owner.full_name, f.group.name)
        elif f.key_type is not None:
            kind, type_name = FieldKind.MESSAGE, _qualify(owner.full_name, map_entry_name(f.name))
        else:
            kind, type_name = self._kind(f.type, owner.full_name, where)

        if f.key_type is not None:
            cardinality = Cardinality.MAP
        elif f.label == "repeated":
            cardinality = Cardinality.REPEATED
        else:
            cardinality = Cardinality.SINGULAR

        if syntax == "proto3":
            has_presence = f.label == "optional" or f.oneof is not None
        else:
            has_presence = cardinality == Cardinality.SINGULAR

        json_name = f.option("json_name")
        return Field(
            name=f.name,
            number=f.number,
            kind=kind,
            cardinality=cardinality,
            type_name=type_name,
            weak=f.option("weak") is True,
            json_name=str(json_name) if json_name is not None else "",
            oneof=f.oneof,
            has_presence=has_presence,
        )


def _get_parser() -> Lark:
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/proto.lark", encoding="utf-8") as f:
            grammar = f.read()
        _g_parser = Lark(grammar)
    return _g_parser


def _parse_text(text: str, path: str) -> _ParsedFile:
    tree = _get_parser().parse(text)
    items = TreeTransformer().transform(tree)
    return _ParsedFile(path=path, items=[i for i in items if not isinstance(i, _Ignored)])


def parse_many(sources: Iterable[tuple[str, str]]) -> list[ProtoFile]:
    """Parse several (path, text) sources that may reference each other's types."""
    parsed = [_parse_text(text, path) for path, text in sources]
    return _Builder(parsed).build()


def parse(text: str, path: str = "input.proto") -> ProtoFile:
    """Parse a single .proto source."""
    return parse_many([(path, text)])[0]


def load_schema(sources: Iterable[tuple[str, str]]) -> Schema:
    """Parse sources and build the schema used by the generator."""
    return Schema(parse_many(sources))
