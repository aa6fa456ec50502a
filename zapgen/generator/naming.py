"""Go identifier and package naming helpers."""

import json
import re


def _is_lower(c: str) -> bool:
    return "a" <= c <= "z"


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def go_camel_case(s: str) -> str:
    """Convert a protobuf name to the Go identifier protoc-gen-go uses.

    Underscores before a lowercase letter are dropped and the letter is
    capitalized, a leading underscore becomes 'X' and dots become
    underscores unless they precede a lowercase letter.
    """
    out: list[str] = []
    i = 0
    n = len(s)
    while i < n:
        c = s[i]
        if c == "." and i + 1 < n and _is_lower(s[i + 1]):
            pass
        elif c == ".":
            out.append("_")
        elif c == "_" and (i == 0 or s[i - 1] == "."):
            out.append("X")
        elif c == "_" and i + 1 < n and _is_lower(s[i + 1]):
            pass
        elif _is_digit(c):
            out.append(c)
        else:
            out.append(c.upper() if _is_lower(c) else c)
            while i + 1 < n and _is_lower(s[i + 1]):
                i += 1
                out.append(s[i])
        i += 1
    return "".join(out)


_NON_IDENT = re.compile(r"[^A-Za-z0-9_]")


def go_sanitized_name(s: str) -> str:
    """Turn an arbitrary string into a valid Go package identifier."""
    s = _NON_IDENT.sub("_", s.replace("-", "_"))
    if not s or _is_digit(s[0]):
        s = "_" + s
    return s


def go_string(s: str) -> str:
    """Quote a string as a Go interpreted string literal.

    JSON string escapes are a subset of Go's. Non-ASCII text is kept as is,
    since JSON would escape astral characters as surrogate pairs, which Go
    rejects.
    """
    return json.dumps(s, ensure_ascii=False)


# Methods protoc-gen-go generates on every message struct.
GENERATED_METHODS = frozenset(
    [
        "Reset",
        "String",
        "ProtoMessage",
        "Marshal",
        "Unmarshal",
        "ExtensionRangeArray",
        "ExtensionMap",
        "Descriptor",
    ]
)


class GoNameScope:
    """Identifiers taken on one generated message struct.

    Mirrors protoc-gen-go: a field name that clashes with a generated method
    or with an earlier field or getter gets `_` appended until unique.
    """

    def __init__(self) -> None:
        self._used: dict[str, bool] = dict.fromkeys(GENERATED_METHODS, True)

    def unique(self, name: str, has_getter: bool = True) -> str:
        while self._used.get(name) or (has_getter and self._used.get("Get" + name)):
            name += "_"
        self._used[name] = True
        self._used["Get" + name] = has_getter
        return name
