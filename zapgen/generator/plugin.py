"""protoc plugin entry point (protoc-gen-zap)."""

import logging

import click
from google.protobuf.compiler import plugin_pb2

from zapgen import __version__

from .descriptors import load_files
from .golang import generate_file
from .logs import configure_logging, report
from .options import GeneratorOptions, OptionError
from .types import SchemaError

log = logging.getLogger(__name__)

PROGRAM = "protoc-gen-zap"


def compiler_version(request: plugin_pb2.CodeGeneratorRequest) -> str | None:
    """Format the protoc version from a request, e.g. v4.25.1 or v4.25.1-rc1."""
    if not request.HasField("compiler_version"):
        return None
    v = request.compiler_version
    version = f"v{v.major}.{v.minor}.{v.patch}"
    if v.suffix:
        version += f"-{v.suffix}"
    return version


def run(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Generate a response for a request. Fatal problems are reported in `error`."""
    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL

    try:
        options = GeneratorOptions.from_parameter(request.parameter)
    except OptionError as exc:
        response.error = f"{PROGRAM}: {exc}"
        return response

    if options.verbose:
        logging.getLogger("zapgen").setLevel(logging.DEBUG)

    if options.plugins:
        response.error = f"{PROGRAM}: plugins are not supported"
        return response

    try:
        schema = load_files(request.proto_file)
        version = compiler_version(request)
        for path in request.file_to_generate:
            generated = generate_file(schema, path, options, compiler_version=version)
            report(generated.diagnostics)
            out = response.file.add()
            out.name = generated.name
            out.content = generated.content
            log.debug("generated %s", generated.name)
    except SchemaError as exc:
        # protoc discards every file of a failed response
        del response.file[:]
        response.error = f"{PROGRAM}: {exc}"

    return response


@click.command(context_settings={"help_option_names": ["--help"]})
@click.option("--version", "show_version", is_flag=True, help="Print the plugin version and exit")
def main(show_version: bool) -> None:
    """Generate zap MarshalLogObject methods for protobuf messages.

    Run by protoc, which passes a CodeGeneratorRequest on stdin:

    \b
        protoc --zap_out=. --zap_opt=paths=source_relative foo.proto

    Parameters: paths=import|source_relative, keys=go|proto|json,
    package=NAME, verbose=true.
    """
    if show_version:
        click.echo(f"{PROGRAM} {__version__}")
        return

    configure_logging()
    data = click.get_binary_stream("stdin").read()
    request = plugin_pb2.CodeGeneratorRequest.FromString(data)
    response = run(request)
    stdout = click.get_binary_stream("stdout")
    stdout.write(response.SerializeToString())
    stdout.flush()


if __name__ == "__main__":
    main()
