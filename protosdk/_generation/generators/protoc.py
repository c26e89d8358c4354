"""protoc generator plugins.

ProtocGenerator is the shared skeleton for every plugin-based variant:
validate the schema list, build the argument vector with the variant's
args builder, run protoc from the repository root.

Go variants defined here:
- GoProtobufGenerator: message types only (protoc-gen-go)
- GoGrpcGenerator: messages + gRPC stubs (protoc-gen-go-grpc)
- GoConnectRpcGenerator: messages + Connect stubs (protoc-gen-connect-go)

Go output uses paths=source_relative plus one M-mapping per file and plugin,
so the generated tree mirrors the schema layout instead of go_package.
"""

import threading
from typing import Iterator, Optional, Sequence

from protosdk.exceptions import GenerationIOError
from protosdk.logging_config import logger

from ..protocol import (
    SDK_GO_CONNECTRPC,
    SDK_GO_GRPC,
    SDK_GO_PROTOBUF,
    ArgsBuilder,
    CommandRunner,
    GeneratorInput,
    sdk_dir_name,
)
from ..result import GeneratorOutput
from ..utils import (
    SubprocessCommandRunner,
    clean_path,
    ensure_directory,
    find_proto_files,
    go_package_mapping,
    validate_proto_files,
)

PROTOC_COMMAND = "protoc"

SOURCE_RELATIVE = "paths=source_relative"


def proto_path_flag(input: GeneratorInput) -> str:
    return f"--proto_path={clean_path(input.repo_path)}"


def package_mappings(proto_files: Sequence[str], opt_prefixes: Sequence[str]) -> Iterator[str]:
    """Yield every mapping for a file before moving on to the next file."""
    for proto_file in proto_files:
        for opt_prefix in opt_prefixes:
            yield go_package_mapping(proto_file, opt_prefix)


def build_go_plugin_args(input: GeneratorInput, plugins: Sequence[str]) -> list[str]:
    """
    Build protoc arguments for a set of Go plugins.

    Args:
        input: Generation input
        plugins: Plugin names in declaration order (e.g. "go", "go-grpc")
    """
    output_path = clean_path(input.output_path)
    args = [proto_path_flag(input)]
    for plugin in plugins:
        args.append(f"--{plugin}_out={output_path}")
        args.append(f"--{plugin}_opt={SOURCE_RELATIVE}")

    args.extend(package_mappings(input.proto_files, [f"{plugin}_opt" for plugin in plugins]))
    args.extend(input.proto_files)
    return args


def build_go_protobuf_args(input: GeneratorInput) -> list[str]:
    return build_go_plugin_args(input, ("go",))


def build_go_grpc_args(input: GeneratorInput) -> list[str]:
    return build_go_plugin_args(input, ("go", "go-grpc"))


def build_go_connectrpc_args(input: GeneratorInput) -> list[str]:
    return build_go_plugin_args(input, ("go", "connect-go"))


class ProtocGenerator:
    """
    Plugin-based generator skeleton.

    Holds an SDK tag and a pure args builder; everything else is shared.
    Instances keep no per-call state, so one instance can serve concurrent
    requests as long as its runner can.
    """

    def __init__(
        self,
        sdk: str,
        args_builder: ArgsBuilder,
        runner: Optional[CommandRunner] = None,
        dir_name: Optional[str] = None,
    ) -> None:
        self._sdk = sdk
        self._dir_name = dir_name or sdk_dir_name(sdk)
        self._args_builder = args_builder
        self._runner = runner or SubprocessCommandRunner()

    @property
    def sdk(self) -> str:
        return self._sdk

    @property
    def dir_name(self) -> str:
        return self._dir_name

    @property
    def command(self) -> str:
        return PROTOC_COMMAND

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    def is_applicable(self, repo_path: str) -> bool:
        """Applicable when the repository holds at least one schema file."""
        try:
            return len(find_proto_files(repo_path)) > 0
        except GenerationIOError as e:
            logger.debug(f"{self.sdk} not applicable to {repo_path}: {e}")
            return False

    def validate(self, input: GeneratorInput) -> None:
        validate_proto_files(input.proto_files)

    def build_args(self, input: GeneratorInput) -> list[str]:
        return self._args_builder(input)

    def generate(
        self,
        input: GeneratorInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratorOutput:
        """Generate the SDK by running protoc against the listed schema files."""
        self.validate(input)
        ensure_directory(input.output_path)

        args = self.build_args(input)

        logger.info(f"Running protoc for {self.sdk} ({len(input.proto_files)} proto files)")
        self._runner.run(PROTOC_COMMAND, args, input.repo_path, cancel_event)

        return GeneratorOutput(output_path=input.output_path, files_count=len(input.proto_files))


class GoProtobufGenerator(ProtocGenerator):
    """Go message types via protoc-gen-go."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_GO_PROTOBUF, build_go_protobuf_args, runner)


class GoGrpcGenerator(ProtocGenerator):
    """Go messages plus gRPC client/server stubs."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_GO_GRPC, build_go_grpc_args, runner)


class GoConnectRpcGenerator(ProtocGenerator):
    """Go messages plus Connect client/handler stubs."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_GO_CONNECTRPC, build_go_connectrpc_args, runner)
