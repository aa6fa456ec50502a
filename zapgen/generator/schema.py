"""Identity-keyed registry over a set of loaded .proto files."""

from collections.abc import Iterable, Iterator

from .types import EnumType, MessageType, ProtoFile, SchemaError


def walk_messages(messages: Iterable[MessageType]) -> Iterator[MessageType]:
    """Yield messages and their nested messages, depth first in declaration order."""
    for message in messages:
        yield message
        yield from walk_messages(message.nested)


def walk_enums(file: ProtoFile) -> Iterator[EnumType]:
    """Yield every enum declared in a file, including nested ones."""
    yield from file.enums
    for message in walk_messages(file.messages):
        yield from message.enums


class Schema:
    """Lookup of message and enum types by fully-qualified name."""

    def __init__(self, files: Iterable[ProtoFile]):
        self.files: dict[str, ProtoFile] = {}
        self._messages: dict[str, MessageType] = {}
        self._enums: dict[str, EnumType] = {}
        self._owner: dict[str, str] = {}

        for file in files:
            if file.path in self.files:
                raise SchemaError(f"{file.path} loaded more than once")
            self.files[file.path] = file
            for message in walk_messages(file.messages):
                self._register(message.full_name, file.path)
                self._messages[message.full_name] = message
            for enum in walk_enums(file):
                self._register(enum.full_name, file.path)
                self._enums[enum.full_name] = enum

    def _register(self, full_name: str, path: str) -> None:
        if full_name in self._owner:
            raise SchemaError(
                f"{full_name} is declared in both {self._owner[full_name]} and {path}"
            )
        self._owner[full_name] = path

    def message(self, full_name: str) -> MessageType:
        """Return the message type with the given name."""
        try:
            return self._messages[full_name]
        except KeyError:
            raise SchemaError(f"unknown message type {full_name}") from None

    def enum(self, full_name: str) -> EnumType:
        """Return the enum type with the given name."""
        try:
            return self._enums[full_name]
        except KeyError:
            raise SchemaError(f"unknown enum type {full_name}") from None

    def has_message(self, full_name: str) -> bool:
        return full_name in self._messages

    def has_enum(self, full_name: str) -> bool:
        return full_name in self._enums

    def file_of(self, full_name: str) -> ProtoFile:
        """Return the file that declares a type."""
        try:
            return self.files[self._owner[full_name]]
        except KeyError:
            raise SchemaError(f"unknown type {full_name}") from None

    def file(self, path: str) -> ProtoFile:
        try:
            return self.files[path]
        except KeyError:
            raise SchemaError(f"unknown file {path}") from None
