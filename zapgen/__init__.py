"""zapgen - zap log marshaler generator for protobuf messages."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("zapgen")
except PackageNotFoundError:
    __version__ = "(local)"
