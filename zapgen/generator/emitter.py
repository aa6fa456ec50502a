"""MarshalLogObject procedure emission for message types."""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum, auto

from .containers import RECEIVER, emit_field
from .options import GeneratorOptions
from .schema import Schema
from .types import Diagnostic, MessageType

log = logging.getLogger(__name__)

INDENT = "\t"


class TypeState(StrEnum):
    """Progress of a message type within one generation run."""

    DISCOVERED = auto()
    EMITTED = auto()


@dataclass(frozen=True)
class GeneratedProcedure:
    """Generated MarshalLogObject method for one message type."""

    type_name: str
    go_name: str
    text: str
    imports: frozenset[str] = frozenset()
    references: tuple[str, ...] = ()


@dataclass
class GenerationResult:
    """Procedures in emission order plus the diagnostics raised on the way."""

    procedures: list[GeneratedProcedure] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def imports(self) -> frozenset[str]:
        result: set[str] = set()
        for proc in self.procedures:
            result.update(proc.imports)
        return frozenset(result)

    def procedure(self, type_name: str) -> GeneratedProcedure:
        for proc in self.procedures:
            if proc.type_name == type_name:
                return proc
        raise KeyError(type_name)


def _owns_everything(_message: MessageType) -> bool:
    return True


class Emitter:
    """Emit one procedure per distinct message type reachable from a set of roots.

    Nested message fields delegate to the nested type's own procedure, so a
    self-referential or mutually recursive schema only shows up as recursion
    in the generated call graph. Generation itself is a single pass over the
    finite set of discovered types.

    Args:
        schema: Registry used to resolve type references.
        options: Generator options (log key style).
        owns: Predicate selecting the types this run may emit. Types it
              rejects, such as types declared in another file, are still
              delegated to but get no procedure here.
    """

    def __init__(
        self,
        schema: Schema,
        options: GeneratorOptions | None = None,
        owns: Callable[[MessageType], bool] | None = None,
    ):
        self.schema = schema
        self.options = options or GeneratorOptions()
        self.owns = owns or _owns_everything

    def generate(self, roots: Iterable[str]) -> GenerationResult:
        """Emit procedures for `roots` and every owned type they lead to.

        Raises:
            SchemaError: A root or a field reference is missing from the schema.
        """
        result = GenerationResult()
        states: dict[str, TypeState] = {}
        pending: deque[str] = deque()

        def discover(type_name: str) -> None:
            if type_name in states:
                return
            message = self.schema.message(type_name)
            if message.is_map_entry or not self.owns(message):
                return
            log.debug("discovered %s", type_name)
            states[type_name] = TypeState.DISCOVERED
            pending.append(type_name)

        for root in roots:
            discover(root)

        while pending:
            type_name = pending.popleft()
            message = self.schema.message(type_name)
            proc = self.emit_message(message, result.diagnostics)
            states[type_name] = TypeState.EMITTED
            result.procedures.append(proc)
            log.debug("emitted %s", type_name)

            for ref in proc.references:
                discover(ref)
            for nested in message.nested:
                discover(nested.full_name)

        return result

    def emit_message(
        self, message: MessageType, diagnostics: list[Diagnostic] | None = None
    ) -> GeneratedProcedure:
        """Emit the procedure for a single message without following references."""
        body: list[str] = [
            f"if {RECEIVER} == nil {{",
            f"{INDENT}return nil",
            "}",
        ]
        imports: set[str] = set()
        references: list[str] = []

        for f in message.fields:
            code = emit_field(f, message, self.schema, self.options)
            body.extend(code.lines)
            imports.update(code.imports)
            for ref in code.references:
                if ref not in references:
                    references.append(ref)
            if diagnostics is not None:
                diagnostics.extend(code.diagnostics)

        body.append("return nil")

        lines = [
            "// MarshalLogObject implements zapcore.ObjectMarshaler.",
            f"func ({RECEIVER} *{message.go_name}) MarshalLogObject(enc zapcore.ObjectEncoder) error {{",
            *(f"{INDENT}{line}" for line in body),
            "}",
        ]
        return GeneratedProcedure(
            type_name=message.full_name,
            go_name=message.go_name,
            text="\n".join(lines) + "\n",
            imports=frozenset(imports),
            references=tuple(references),
        )


def generate(
    schema: Schema,
    roots: Iterable[str],
    options: GeneratorOptions | None = None,
    owns: Callable[[MessageType], bool] | None = None,
) -> GenerationResult:
    """Emit procedures for `roots` and the owned message types they reach."""
    return Emitter(schema, options, owns).generate(roots)
