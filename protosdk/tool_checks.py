"""Tool availability checks for external SDK generators.

This module provides functions to check if the external compilers and
plugins required for SDK generation are available on the system. When tools
are missing, it provides helpful installation instructions.

protosdk never installs these tools itself: they must be on PATH.
"""

import shutil
from dataclasses import dataclass, field
from typing import Optional

from ._generation.protocol import (
    SDK_BUF,
    SDK_DOCUMENTATION,
    SDK_GO_CONNECTRPC,
    SDK_GO_GRPC,
    SDK_GO_PROTOBUF,
    SDK_JS_BUFBUILD_ES,
    SDK_JS_CONNECTRPC,
    SDK_JS_PROTOBUF,
)
from .logging_config import logger


@dataclass
class ToolInfo:
    """Information about an external tool."""

    name: str
    command: str
    description: str
    install_instructions: str
    homepage: str
    required_for: list[str] = field(default_factory=list)


# Tool metadata with installation instructions.
# Used to provide helpful messages when tools are missing.
_TOOL_METADATA: dict[str, dict] = {
    "protoc": {
        "name": "protoc",
        "description": "Protocol Buffers compiler",
        "install_instructions": (
            "Install via package manager:\n"
            "  - macOS: brew install protobuf\n"
            "  - Debian/Ubuntu: apt-get install protobuf-compiler\n"
            "  - Releases: https://github.com/protocolbuffers/protobuf/releases"
        ),
        "homepage": "https://protobuf.dev",
    },
    "buf": {
        "name": "buf",
        "description": "Protobuf build tool driven by buf.gen.yaml",
        "install_instructions": (
            "Install via package manager:\n"
            "  - macOS: brew install bufbuild/buf/buf\n"
            "  - npm: npm install -g @bufbuild/buf\n"
            "  - Go: go install github.com/bufbuild/buf/cmd/buf@latest"
        ),
        "homepage": "https://buf.build",
    },
    "protoc-gen-go": {
        "name": "protoc-gen-go",
        "description": "Go message code generator",
        "install_instructions": "Install via go:\n  - go install google.golang.org/protobuf/cmd/protoc-gen-go@latest",
        "homepage": "https://pkg.go.dev/google.golang.org/protobuf/cmd/protoc-gen-go",
    },
    "protoc-gen-go-grpc": {
        "name": "protoc-gen-go-grpc",
        "description": "Go gRPC stub generator",
        "install_instructions": "Install via go:\n  - go install google.golang.org/grpc/cmd/protoc-gen-go-grpc@latest",
        "homepage": "https://grpc.io/docs/languages/go/",
    },
    "protoc-gen-connect-go": {
        "name": "protoc-gen-connect-go",
        "description": "Go Connect stub generator",
        "install_instructions": (
            "Install via go:\n  - go install connectrpc.com/connect/cmd/protoc-gen-connect-go@latest"
        ),
        "homepage": "https://connectrpc.com/docs/go/getting-started",
    },
    "protoc-gen-es": {
        "name": "protoc-gen-es",
        "description": "TypeScript message generator (Protobuf-ES)",
        "install_instructions": "Install via npm:\n  - npm install -g @bufbuild/protoc-gen-es",
        "homepage": "https://github.com/bufbuild/protobuf-es",
    },
    "protoc-gen-connect-es": {
        "name": "protoc-gen-connect-es",
        "description": "TypeScript Connect client generator",
        "install_instructions": "Install via npm:\n  - npm install -g @connectrpc/protoc-gen-connect-es",
        "homepage": "https://connectrpc.com/docs/web/getting-started",
    },
    "protoc-gen-js": {
        "name": "protoc-gen-js",
        "description": "CommonJS message generator (google-protobuf)",
        "install_instructions": "Install via npm:\n  - npm install -g protoc-gen-js",
        "homepage": "https://github.com/protocolbuffers/protobuf-javascript",
    },
    "protoc-gen-doc": {
        "name": "protoc-gen-doc",
        "description": "Documentation generator for Protocol Buffers",
        "install_instructions": (
            "Install via go:\n  - go install github.com/pseudomuto/protoc-gen-doc/cmd/protoc-gen-doc@latest"
        ),
        "homepage": "https://github.com/pseudomuto/protoc-gen-doc",
    },
}

# Commands each SDK tag needs on PATH
SDK_REQUIRED_TOOLS: dict[str, list[str]] = {
    SDK_GO_PROTOBUF: ["protoc", "protoc-gen-go"],
    SDK_GO_GRPC: ["protoc", "protoc-gen-go", "protoc-gen-go-grpc"],
    SDK_GO_CONNECTRPC: ["protoc", "protoc-gen-go", "protoc-gen-connect-go"],
    SDK_JS_BUFBUILD_ES: ["protoc", "protoc-gen-es"],
    SDK_JS_PROTOBUF: ["protoc", "protoc-gen-js"],
    SDK_JS_CONNECTRPC: ["protoc", "protoc-gen-es", "protoc-gen-connect-es"],
    SDK_BUF: ["buf"],
    SDK_DOCUMENTATION: ["protoc", "protoc-gen-doc"],
}


def _get_external_tools() -> dict[str, ToolInfo]:
    """
    Build the external tools dictionary from the SDK requirements.

    Returns:
        Dictionary mapping command names to ToolInfo objects
    """
    tools: dict[str, ToolInfo] = {}

    for sdk, commands in SDK_REQUIRED_TOOLS.items():
        for command in commands:
            if command not in tools:
                metadata = _TOOL_METADATA.get(command, {})
                tools[command] = ToolInfo(
                    name=metadata.get("name", command),
                    command=command,
                    description=metadata.get("description", f"SDK generator ({command})"),
                    install_instructions=metadata.get("install_instructions", f"Install {command}"),
                    homepage=metadata.get("homepage", ""),
                )
            tools[command].required_for.append(sdk)

    return tools


# Cache the external tools to avoid rebuilding them on every check
_external_tools_cache: Optional[dict[str, ToolInfo]] = None


def get_external_tools() -> dict[str, ToolInfo]:
    """Get the external tools dictionary, building it if necessary."""
    global _external_tools_cache
    if _external_tools_cache is None:
        _external_tools_cache = _get_external_tools()
    return _external_tools_cache


@dataclass
class ToolStatus:
    """Status of an external tool."""

    name: str
    available: bool
    path: Optional[str] = None
    info: Optional[ToolInfo] = None


def check_tool_available(command: str) -> tuple[bool, Optional[str]]:
    """
    Check if a command-line tool is available on the system.

    Args:
        command: The command to check (e.g., "protoc", "buf")

    Returns:
        Tuple of (is_available, path_if_found)
    """
    path = shutil.which(command)
    return (path is not None, path)


def check_all_tools() -> dict[str, ToolStatus]:
    """
    Check availability of all external tools.

    Returns:
        Dictionary mapping tool commands to their status
    """
    results = {}
    for tool_id, info in get_external_tools().items():
        available, path = check_tool_available(info.command)
        results[tool_id] = ToolStatus(
            name=info.name,
            available=available,
            path=path,
            info=info,
        )
    return results


def get_missing_tools_for_sdk(sdk: str, with_docs: bool = False) -> list[str]:
    """
    List the tools an SDK needs that are not installed.

    Args:
        sdk: SDK tag
        with_docs: Also require the documentation tools

    Returns:
        Missing commands in declaration order (empty for unknown tags)
    """
    required = list(SDK_REQUIRED_TOOLS.get(sdk, []))
    if with_docs:
        required.extend(t for t in SDK_REQUIRED_TOOLS[SDK_DOCUMENTATION] if t not in required)

    return [command for command in required if not check_tool_available(command)[0]]


def log_tool_status(verbose: bool = False) -> None:
    """
    Log the status of all external tools.

    Args:
        verbose: If True, show installation instructions for missing tools
    """
    statuses = check_all_tools()
    available = [s for s in statuses.values() if s.available]
    missing = [s for s in statuses.values() if not s.available]

    if available:
        logger.info(f"Available SDK tools: {', '.join(s.name for s in available)}")

    if missing:
        logger.warning(f"Missing SDK tools: {', '.join(s.name for s in missing)}")
        if verbose:
            logger.info("Install missing tools for full functionality:")
            for status in missing:
                if status.info:
                    logger.info(f"\n{status.info.name}:")
                    logger.info(f"  {status.info.install_instructions}")


def format_missing_tools_error(sdk: str, missing: list[str]) -> str:
    """
    Format an error message when tools required by an SDK are missing.

    Args:
        sdk: SDK tag that was requested
        missing: Missing commands

    Returns:
        Formatted error message with installation instructions
    """
    external_tools = get_external_tools()
    lines = [
        f"Missing tools required for {sdk}: {', '.join(missing)}",
        "",
        "Install the following and make sure they are on PATH:",
        "",
    ]

    for tool_id in missing:
        if tool_id in external_tools:
            info = external_tools[tool_id]
            lines.append(f"  {info.name} ({info.homepage}):")
            for install_line in info.install_instructions.split("\n"):
                lines.append(f"    {install_line}")
            lines.append("")

    return "\n".join(lines)
