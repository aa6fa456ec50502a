"""Generator options, parsed from the protoc parameter string or CLI flags."""

from dataclasses import dataclass, fields
from enum import StrEnum, auto

from dataclasses_json import DataClassJsonMixin


class OptionError(ValueError):
    """Raised when a generator option is unknown or has an invalid value."""


class PathsMode(StrEnum):
    """Where output files are placed, mirroring protoc-gen-go's `paths` option."""

    IMPORT = auto()
    SOURCE_RELATIVE = auto()


class KeyStyle(StrEnum):
    """Which name of a field is used as its log key."""

    GO = auto()
    PROTO = auto()
    JSON = auto()


_TRUE = frozenset(["", "1", "true", "yes", "on"])
_FALSE = frozenset(["0", "false", "no", "off"])


def _parse_bool(name: str, value: str) -> bool:
    value = value.lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise OptionError(f"invalid value {value!r} for {name}")


@dataclass
class GeneratorOptions(DataClassJsonMixin):
    """Settings for one generation run."""

    paths: PathsMode = PathsMode.IMPORT
    keys: KeyStyle = KeyStyle.GO
    package: str | None = None
    verbose: bool = False
    plugins: str = ""  # deprecated, rejected by the plugin

    def set(self, name: str, value: str) -> None:
        """Set an option from its textual form."""
        if name == "paths":
            try:
                self.paths = PathsMode(value)
            except ValueError:
                raise OptionError(f'invalid value for paths: "{value}"') from None
        elif name == "keys":
            try:
                self.keys = KeyStyle(value)
            except ValueError:
                raise OptionError(f'invalid value for keys: "{value}"') from None
        elif name == "package":
            self.package = value or None
        elif name == "verbose":
            self.verbose = _parse_bool(name, value)
        elif name == "plugins":
            self.plugins = value
        else:
            known = ", ".join(f.name for f in fields(self))
            raise OptionError(f"unknown parameter {name!r} (known: {known})")

    @classmethod
    def from_parameter(cls, parameter: str) -> "GeneratorOptions":
        """Parse a comma separated `key=value` list as passed by protoc."""
        options = cls()
        for item in parameter.split(","):
            item = item.strip()
            if not item:
                continue
            name, _, value = item.partition("=")
            options.set(name.strip(), value.strip())
        return options
