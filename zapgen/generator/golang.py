"""Go file assembly for generated zap marshalers."""

import logging
import posixpath
from dataclasses import dataclass, field

from jinja2 import Environment, PackageLoader

from zapgen import __version__

from .emitter import Emitter, GenerationResult
from .naming import go_sanitized_name
from .options import GeneratorOptions, PathsMode
from .schema import Schema
from .types import Diagnostic, MessageType, ProtoFile

log = logging.getLogger(__name__)

ZAPCORE_IMPORT = "go.uber.org/zap/zapcore"
FILE_SUFFIX = ".zap.go"

env = Environment(
    loader=PackageLoader("zapgen.generator", "templates"),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    line_comment_prefix="%%",
    line_statement_prefix="%",
)

template = env.get_template("zap.go.j2")


@dataclass
class GeneratedFile:
    """One output file and the diagnostics raised while producing it."""

    name: str
    content: str
    diagnostics: list[Diagnostic] = field(default_factory=list)


def _split_go_package(go_package: str | None) -> tuple[str | None, str | None]:
    """Split a go_package option into (import path, package name)."""
    if not go_package:
        return None, None
    path, sep, name = go_package.partition(";")
    return (path or None), (name if sep else None)


def _stem(path: str) -> str:
    base = posixpath.basename(path)
    return base[: -len(".proto")] if base.endswith(".proto") else base


def go_package_name(file: ProtoFile, override: str | None = None) -> str:
    """Return the Go package clause name for a file."""
    if override:
        return go_sanitized_name(override)
    import_path, name = _split_go_package(file.go_package)
    if name:
        return go_sanitized_name(name)
    if import_path:
        return go_sanitized_name(posixpath.basename(import_path))
    if file.package:
        return go_sanitized_name(file.package.rsplit(".", 1)[-1])
    return go_sanitized_name(_stem(file.path))


def output_filename(file: ProtoFile, paths: PathsMode = PathsMode.IMPORT) -> str:
    """Return the path of the generated file, relative to the output root."""
    stem = _stem(file.path)
    if paths == PathsMode.SOURCE_RELATIVE:
        prefix = posixpath.join(posixpath.dirname(file.path), stem)
    else:
        import_path, _ = _split_go_package(file.go_package)
        directory = import_path if import_path else posixpath.dirname(file.path)
        prefix = posixpath.join(directory, stem)
    return prefix + FILE_SUFFIX


def _split_imports(imports: frozenset[str]) -> tuple[list[str], list[str]]:
    std: list[str] = []
    ext: list[str] = []
    for path in sorted(imports):
        # Standard library paths have no dot in their first element.
        (ext if "." in path.split("/", 1)[0] else std).append(path)
    return std, ext


def render(
    file: ProtoFile,
    result: GenerationResult,
    *,
    package: str | None = None,
    compiler_version: str | None = None,
) -> str:
    """Render generated procedures into a complete Go source file."""
    imports = result.imports | {ZAPCORE_IMPORT} if result.procedures else frozenset()
    std_imports, ext_imports = _split_imports(imports)

    return template.render(
        file=file,
        version=__version__,
        compiler_version=compiler_version or "(unknown)",
        package=go_package_name(file, package),
        std_imports=std_imports,
        ext_imports=ext_imports,
        procedures=result.procedures,
        BLANK_LINE="",
    )


def emit_file(
    schema: Schema, path: str, options: GeneratorOptions | None = None
) -> GenerationResult:
    """Emit procedures for the messages declared in one file.

    Types from other files are delegated to but not emitted; their own
    generation unit provides their procedures.
    """
    file = schema.file(path)

    def owns(message: MessageType) -> bool:
        return schema.file_of(message.full_name).path == file.path

    result = Emitter(schema, options, owns=owns).generate(m.full_name for m in file.messages)
    log.debug("%s: %d procedures", path, len(result.procedures))
    return result


def generate_file(
    schema: Schema,
    path: str,
    options: GeneratorOptions | None = None,
    compiler_version: str | None = None,
) -> GeneratedFile:
    """Generate the Go file for every message declared in one .proto file.

    Raises:
        SchemaError: The file references a type missing from the schema.
    """
    options = options or GeneratorOptions()
    file = schema.file(path)
    result = emit_file(schema, path, options)

    content = render(file, result, package=options.package, compiler_version=compiler_version)
    return GeneratedFile(
        name=output_filename(file, options.paths),
        content=content,
        diagnostics=result.diagnostics,
    )
