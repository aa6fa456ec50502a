"""String expressions for map keys.

zap object encoders only accept string keys, so every map key is rendered
to a string before it is added. Protobuf forbids floating point, bytes and
message map keys; those produce a visible placeholder instead of aborting.
"""

from dataclasses import dataclass, field

from .types import FieldKind

STRCONV = "strconv"


@dataclass(frozen=True)
class KeyExpression:
    """Go expression producing the string form of a map key."""

    text: str
    imports: frozenset[str] = field(default_factory=frozenset)
    problem: str | None = None

    @property
    def valid(self) -> bool:
        return self.problem is None


# Format strings take the key variable name.
_KEY_FORMATS: dict[FieldKind, tuple[str, frozenset[str]]] = {
    FieldKind.BOOL: ("strconv.FormatBool({k})", frozenset([STRCONV])),
    FieldKind.ENUM: ("{k}.String()", frozenset()),
    FieldKind.INT32: ("strconv.FormatInt(int64({k}), 10)", frozenset([STRCONV])),
    FieldKind.INT64: ("strconv.FormatInt({k}, 10)", frozenset([STRCONV])),
    FieldKind.UINT32: ("strconv.FormatUint(uint64({k}), 10)", frozenset([STRCONV])),
    FieldKind.UINT64: ("strconv.FormatUint({k}, 10)", frozenset([STRCONV])),
    FieldKind.STRING: ("{k}", frozenset()),
}

_INVALID_KEY_LABELS: dict[FieldKind, str] = {
    FieldKind.BYTES: "[]byte",
    FieldKind.MESSAGE: "Object",
    FieldKind.GROUP: "Object",
    FieldKind.FLOAT: "float32",
    FieldKind.DOUBLE: "float64",
}


def placeholder(kind: FieldKind) -> str:
    """Quoted Go string embedded in place of a disallowed key."""
    label = _INVALID_KEY_LABELS.get(kind, str(kind))
    return f'"{{Invalid Map Key - {label}}}"'


def stringify_key(kind: FieldKind, var: str = "k") -> KeyExpression:
    """Return the expression that renders a map key of the given kind as a string."""
    if kind in _KEY_FORMATS:
        fmt, imports = _KEY_FORMATS[kind]
        return KeyExpression(fmt.format(k=var), imports)
    return KeyExpression(placeholder(kind), problem=f"invalid map key type {kind}")
