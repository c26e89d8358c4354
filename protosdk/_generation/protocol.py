"""Generator Protocol for SDK generation plugins.

This module defines the core protocol and types for the generation plugin system.
SDK tags and their output directory names are defined here as the single source of truth.
"""

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from .result import GeneratorOutput

# =============================================================================
# SDK tags
# =============================================================================

SDK_GO_PROTOBUF = "GO_PROTOBUF"
SDK_GO_CONNECTRPC = "GO_CONNECTRPC"
SDK_GO_GRPC = "GO_GRPC"
SDK_JS_BUFBUILD_ES = "JS_BUFBUILD_ES"
SDK_JS_PROTOBUF = "JS_PROTOBUF"
SDK_JS_CONNECTRPC = "JS_CONNECTRPC"
SDK_BUF = "BUF"
SDK_DOCUMENTATION = "DOCUMENTATION"

# Output subdirectory for each SDK tag
SDK_DIR_NAMES = {
    SDK_GO_PROTOBUF: "go-protobuf",
    SDK_GO_CONNECTRPC: "go-connectrpc",
    SDK_GO_GRPC: "go-grpc",
    SDK_JS_BUFBUILD_ES: "js-bufbuild-es",
    SDK_JS_PROTOBUF: "js-protobuf",
    SDK_JS_CONNECTRPC: "js-connectrpc",
    SDK_BUF: "buf",
    SDK_DOCUMENTATION: "docs",
}

UNKNOWN_DIR_NAME = "unknown"

GO_SDKS = (SDK_GO_PROTOBUF, SDK_GO_CONNECTRPC, SDK_GO_GRPC)
JS_SDKS = (SDK_JS_BUFBUILD_ES, SDK_JS_PROTOBUF, SDK_JS_CONNECTRPC)

# =============================================================================
# Filesystem conventions
# =============================================================================

PROTO_EXTENSION = ".proto"

# buf manifest and the naming convention shared by its sibling config files
BUF_GEN_YAML = "buf.gen.yaml"
BUF_CONFIG_PREFIX = "buf."
BUF_CONFIG_SUFFIX = ".yaml"

# Version-control metadata directories never walked into
VCS_DIRS = frozenset({".git", ".hg", ".svn"})

# Permissions for created directories and written files
DIR_MODE = 0o750
FILE_MODE = 0o644


def sdk_dir_name(sdk: str) -> str:
    """Return the output directory name for an SDK tag, or "unknown"."""
    return SDK_DIR_NAMES.get(sdk, UNKNOWN_DIR_NAME)


def is_go_sdk(sdk: str) -> bool:
    return sdk in GO_SDKS


def is_js_sdk(sdk: str) -> bool:
    return sdk in JS_SDKS


@dataclass(frozen=True)
class GeneratorInput:
    """
    Input parameters for SDK generation.

    Attributes:
        repo_path: Root directory of the schema repository
        output_path: Directory the generated SDK is written to
        proto_files: Schema files relative to repo_path, in argument order.
            The manifest-driven generator ignores this list.
        exclude_dirs: Directories holding earlier output (sibling SDKs, docs)
            that the manifest-driven generator must not harvest
    """

    repo_path: str
    output_path: str
    proto_files: tuple[str, ...] = field(default_factory=tuple)
    exclude_dirs: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple
        if not isinstance(self.proto_files, tuple):
            object.__setattr__(self, "proto_files", tuple(self.proto_files))
        if not isinstance(self.exclude_dirs, tuple):
            object.__setattr__(self, "exclude_dirs", tuple(self.exclude_dirs))


# Pure function turning an input into a protoc argument vector
ArgsBuilder = Callable[[GeneratorInput], list[str]]


class CommandRunner(Protocol):
    """
    Protocol for running external programs.

    Implementations return raw stdout bytes on success and raise
    ToolExecutionError (embedding captured stderr) on a non-zero exit.
    """

    def run(
        self,
        name: str,
        args: list[str],
        work_dir: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes: ...


class Generator(Protocol):
    """
    Protocol defining the interface for SDK generator plugins.

    Each generator produces one SDK flavour, identified by its SDK tag,
    into its own output directory.

    Example:
        class GoProtobufGenerator:
            @property
            def sdk(self) -> str:
                return SDK_GO_PROTOBUF

            @property
            def dir_name(self) -> str:
                return "go-protobuf"

            def is_applicable(self, repo_path: str) -> bool:
                return len(find_proto_files(repo_path)) > 0

            def validate(self, input: GeneratorInput) -> None:
                validate_proto_files(input.proto_files)

            def generate(self, input, cancel_event=None) -> GeneratorOutput:
                ...
    """

    @property
    def sdk(self) -> str:
        """SDK tag this generator produces."""
        ...

    @property
    def dir_name(self) -> str:
        """Output subdirectory name for this generator."""
        ...

    @property
    def command(self) -> str:
        """
        The command-line tool this generator uses.

        Used for tool availability checks.
        Examples: "protoc", "buf"
        """
        ...

    def is_applicable(self, repo_path: str) -> bool:
        """
        Check whether this generator's preconditions hold for a repository.

        Args:
            repo_path: Repository root

        Returns:
            True if this generator can run against the repository
        """
        ...

    def validate(self, input: GeneratorInput) -> None:
        """
        Validate a generation request.

        Raises:
            ValidationError: If the request is rejected
        """
        ...

    def generate(
        self,
        input: GeneratorInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> "GeneratorOutput":
        """
        Generate the SDK for the given input.

        Implementations should:
        1. Validate the input before spawning anything
        2. Run the external tool
        3. Return a GeneratorOutput only when everything succeeded

        Args:
            input: GeneratorInput with all generation parameters
            cancel_event: Optional event that aborts the running tool when set

        Returns:
            GeneratorOutput with output path and file count

        Raises:
            ValidationError, ToolExecutionError, GenerationIOError
        """
        ...
