"""SDK Generation Plugin Architecture.

This module provides a plugin-based system for SDK generation supporting:
- protoc plugin generators (Go protobuf/gRPC/Connect, JS/TS es/protobuf/Connect)
- Manifest-driven generation through `buf generate`
- Markdown API documentation through protoc-gen-doc
- Registry-based generator selection (buf takes precedence when configured)

Usage:
    from protosdk._generation import (
        GeneratorInput,
        SdkGenerationOrchestrator,
        create_default_registry,
    )

    registry = create_default_registry()
    generator = registry.get("GO_PROTOBUF")
    output = generator.generate(GeneratorInput(
        repo_path="/srv/repos/acme-api",
        output_path="/srv/sdk/go-protobuf",
        proto_files=("acme/v1/user.proto",),
    ))
"""

from .generator import (
    SdkGenerationOrchestrator,
    build_output_path,
    create_default_registry,
    generate_from_repo,
)
from .protocol import (
    SDK_BUF,
    SDK_DIR_NAMES,
    SDK_DOCUMENTATION,
    SDK_GO_CONNECTRPC,
    SDK_GO_GRPC,
    SDK_GO_PROTOBUF,
    SDK_JS_BUFBUILD_ES,
    SDK_JS_CONNECTRPC,
    SDK_JS_PROTOBUF,
    CommandRunner,
    Generator,
    GeneratorInput,
    sdk_dir_name,
)
from .registry import GeneratorRegistry, RegistryBuilder
from .result import GenerationReport, GeneratorOutput
from .utils import SubprocessCommandRunner, find_proto_files, validate_proto_files

__all__ = [
    # Core types
    "GeneratorInput",
    "GeneratorOutput",
    "GenerationReport",
    "Generator",
    "CommandRunner",
    # SDK tags
    "SDK_BUF",
    "SDK_DIR_NAMES",
    "SDK_DOCUMENTATION",
    "SDK_GO_CONNECTRPC",
    "SDK_GO_GRPC",
    "SDK_GO_PROTOBUF",
    "SDK_JS_BUFBUILD_ES",
    "SDK_JS_CONNECTRPC",
    "SDK_JS_PROTOBUF",
    "sdk_dir_name",
    # Registry and orchestration
    "GeneratorRegistry",
    "RegistryBuilder",
    "SdkGenerationOrchestrator",
    "create_default_registry",
    "generate_from_repo",
    "build_output_path",
    # Utilities
    "SubprocessCommandRunner",
    "find_proto_files",
    "validate_proto_files",
]
