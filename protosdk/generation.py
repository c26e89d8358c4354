"""
SDK Generation Module

This module provides the public API for SDK generation using a plugin architecture.

Supported features:
- Go SDKs (protobuf, gRPC, Connect) and JS/TS SDKs (es, protobuf, Connect) via protoc
- Manifest-driven generation via `buf generate` when buf.gen.yaml is present
- Markdown API documentation next to every SDK
- Commit-scoped output layout (`<root>/<organization>/<repository>/<commit>/<sdk>`)

Usage:
    from protosdk.generation import detect_generator, generate_sdk

    # Auto-detect the generator (buf wins when buf.gen.yaml exists)
    sdk = detect_generator("/srv/repos/acme-api")

    # Generate a Go SDK plus documentation
    report = generate_sdk("/srv/repos/acme-api", "/srv/sdk/acme", sdk="GO_PROTOBUF")
"""

import os
import threading
from typing import Optional

# Re-export public API from plugin architecture
from ._generation import (
    GenerationReport,
    GeneratorInput,
    GeneratorOutput,
    GeneratorRegistry,
    SdkGenerationOrchestrator,
    build_output_path,
    create_default_registry,
)
from .logging_config import logger

# Module-level orchestrator instance (lazy initialization)
_orchestrator: Optional[SdkGenerationOrchestrator] = None
_orchestrator_lock = threading.Lock()

__all__ = [
    # Core API
    "generate_sdk",
    "generate_commit_sdk",
    "detect_generator",
    # Types
    "GeneratorInput",
    "GeneratorOutput",
    "GenerationReport",
    # Advanced usage
    "SdkGenerationOrchestrator",
    "GeneratorRegistry",
    "create_default_registry",
    "build_output_path",
]


def _get_orchestrator() -> SdkGenerationOrchestrator:
    """Get or create the module-level orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        with _orchestrator_lock:
            if _orchestrator is None:
                _orchestrator = SdkGenerationOrchestrator()
    return _orchestrator


def generate_sdk(
    repo_path: str,
    output_root: str,
    sdk: Optional[str] = None,
    with_docs: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> GenerationReport:
    """
    Generate an SDK (and documentation) from a schema repository.

    Args:
        repo_path: Repository root holding the .proto files
        output_root: Directory that receives `<dir_name>/` and `docs/`
        sdk: SDK tag (None = detect from repository contents)
        with_docs: Also generate markdown documentation
        cancel_event: Optional event that aborts the running tool when set

    Returns:
        GenerationReport for the SDK and its documentation

    Raises:
        GeneratorNotFoundError: If the tag is unknown or nothing applies
        ValidationError, ToolExecutionError, GenerationIOError: If SDK generation fails

    Example:
        report = generate_sdk("/srv/repos/acme-api", "/srv/sdk/acme", sdk="JS_CONNECTRPC")
        print(report.output.output_path)
    """
    orchestrator = _get_orchestrator()
    return orchestrator.generate_sdk(repo_path, output_root, sdk=sdk, with_docs=with_docs, cancel_event=cancel_event)


def generate_commit_sdk(
    sdk_root: str,
    organization_id: str,
    repository_id: str,
    commit_hash: str,
    repo_path: str,
    sdk: str,
    with_docs: bool = True,
    cancel_event: Optional[threading.Event] = None,
) -> GenerationReport:
    """
    Generate an SDK for one commit of a hosted repository.

    The SDK lands in `<sdk_root>/<organization_id>/<repository_id>/<commit_hash>/<dir_name>`
    and documentation in the sibling `docs` directory.

    Args:
        sdk_root: Root of all generated SDKs
        organization_id: Owning organization
        repository_id: Repository identifier
        commit_hash: Commit the schema checkout corresponds to
        repo_path: Checked-out schema repository
        sdk: SDK tag to generate
        with_docs: Also generate markdown documentation
        cancel_event: Optional event that aborts the running tool when set

    Returns:
        GenerationReport for the SDK and its documentation
    """
    orchestrator = _get_orchestrator()
    generator = orchestrator.resolve_generator(repo_path, sdk)

    output_path = build_output_path(sdk_root, organization_id, repository_id, commit_hash, generator.dir_name)
    logger.info(f"Generating {generator.sdk} SDK for {organization_id}/{repository_id} into {output_path}")

    commit_root = os.path.dirname(output_path)
    return orchestrator.generate_sdk(
        repo_path,
        commit_root,
        sdk=generator.sdk,
        with_docs=with_docs,
        cancel_event=cancel_event,
    )


def detect_generator(repo_path: str) -> Optional[str]:
    """
    Return the SDK tag of the generator that applies to a repository.

    Args:
        repo_path: Repository root

    Returns:
        SDK tag, or None if no generator applies
    """
    generator = _get_orchestrator().registry.find_applicable_generator(repo_path)
    return generator.sdk if generator is not None else None
