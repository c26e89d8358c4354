"""Generator orchestrator and factory functions."""

import os
import threading
from typing import Iterable, Optional

from protosdk.exceptions import CommandCancelledError, GeneratorNotFoundError, ProtosdkError
from protosdk.logging_config import logger

from .generators import DocumentationGenerator
from .protocol import CommandRunner, Generator, GeneratorInput
from .registry import GeneratorRegistry, RegistryBuilder
from .result import GenerationReport, GeneratorOutput
from .utils import ensure_directory, find_proto_files


def create_default_registry(runner: Optional[CommandRunner] = None) -> GeneratorRegistry:
    """
    Create a GeneratorRegistry with the default generators.

    Registered SDK tags:
    - BUF: `buf generate` driven by buf.gen.yaml (takes precedence when present)
    - GO_PROTOBUF, GO_CONNECTRPC, GO_GRPC: protoc Go plugins
    - JS_BUFBUILD_ES, JS_PROTOBUF, JS_CONNECTRPC: protoc JavaScript/TypeScript plugins

    Documentation is not an SDK and is produced separately by
    DocumentationGenerator.

    Args:
        runner: CommandRunner shared by all generators (defaults to subprocess)

    Returns:
        Configured GeneratorRegistry
    """
    return RegistryBuilder(runner).with_default_generators().build()


def generate_from_repo(
    generator: Generator,
    repo_path: str,
    output_path: str,
    cancel_event: Optional[threading.Event] = None,
    sort_proto_files: bool = False,
    exclude_dirs: Iterable[str] = (),
) -> GeneratorOutput:
    """
    Discover schema files in a repository and run a generator on them.

    The output directory is created (with parents) and resolved to an
    absolute path first.

    Args:
        generator: Generator to run
        repo_path: Repository root
        output_path: Destination directory
        cancel_event: Optional event that aborts the running tool when set
        sort_proto_files: Sort discovered schema files before passing them on
        exclude_dirs: Earlier output directories the generator must not pick up

    Returns:
        GeneratorOutput from the generator

    Raises:
        ValidationError, ToolExecutionError, GenerationIOError
    """
    abs_output_path = ensure_directory(output_path)
    proto_files = find_proto_files(repo_path, sort=sort_proto_files)

    input = GeneratorInput(
        repo_path=repo_path,
        output_path=abs_output_path,
        proto_files=tuple(proto_files),
        exclude_dirs=tuple(exclude_dirs),
    )
    return generator.generate(input, cancel_event)


def build_output_path(
    sdk_root: str,
    organization_id: str,
    repository_id: str,
    commit_hash: str,
    dir_name: str,
) -> str:
    """Return the `<root>/<organization>/<repository>/<commit>/<dir>` location of an SDK."""
    return os.path.join(sdk_root, organization_id, repository_id, commit_hash, dir_name)


class SdkGenerationOrchestrator:
    """
    Main class for orchestrating SDK generation.

    Resolves a generator from the registry (by SDK tag or by repository
    contents), generates into `<output_root>/<dir_name>` and, optionally,
    documentation into `<output_root>/docs`.

    Example:
        orchestrator = SdkGenerationOrchestrator()
        report = orchestrator.generate_sdk("/srv/repos/acme-api", "/srv/sdk/acme/api/abc123")
        print(report.output.output_path, report.output.files_count)
    """

    def __init__(
        self,
        registry: Optional[GeneratorRegistry] = None,
        documentation_generator: Optional[Generator] = None,
        sort_proto_files: bool = False,
    ) -> None:
        """
        Args:
            registry: Optional GeneratorRegistry. If not provided, creates
                a default registry with all standard generators.
            documentation_generator: Generator used for API docs
            sort_proto_files: Sort discovered schema files for reproducible arguments
        """
        self._registry = registry if registry is not None else create_default_registry()
        self._documentation_generator = documentation_generator or DocumentationGenerator()
        self._sort_proto_files = sort_proto_files

    @property
    def registry(self) -> GeneratorRegistry:
        """Get the generator registry."""
        return self._registry

    def output_dirs(self, output_root: str) -> list[str]:
        """Return every directory the orchestrator may write under `output_root`."""
        dir_names = [entry["dir_name"] for entry in self._registry.list_generators()]
        dir_names.append(self._documentation_generator.dir_name)
        return [os.path.join(output_root, dir_name) for dir_name in dir_names]

    def resolve_generator(self, repo_path: str, sdk: Optional[str] = None) -> Generator:
        """
        Pick the generator for a request.

        Raises:
            GeneratorNotFoundError: If the tag is unknown or nothing applies
        """
        if sdk:
            return self._registry.get(sdk)

        generator = self._registry.find_applicable_generator(repo_path)
        if generator is None:
            raise GeneratorNotFoundError(f"no applicable generator found for repository: {repo_path}")
        return generator

    def generate(
        self,
        repo_path: str,
        output_root: str,
        sdk: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratorOutput:
        """Generate a single SDK into `<output_root>/<dir_name>`."""
        generator = self.resolve_generator(repo_path, sdk)
        output_path = os.path.join(output_root, generator.dir_name)

        logger.info(f"Generating SDK: sdk={generator.sdk}, repo={repo_path}, output={output_path}")
        output = generate_from_repo(
            generator,
            repo_path,
            output_path,
            cancel_event=cancel_event,
            sort_proto_files=self._sort_proto_files,
            exclude_dirs=self.output_dirs(output_root),
        )
        logger.info(f"SDK {generator.sdk} generated: {output.files_count} files in {output.output_path}")
        return output

    def generate_documentation(
        self,
        repo_path: str,
        output_root: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratorOutput:
        """Generate markdown API documentation into `<output_root>/docs`."""
        output_path = os.path.join(output_root, self._documentation_generator.dir_name)
        return generate_from_repo(
            self._documentation_generator,
            repo_path,
            output_path,
            cancel_event=cancel_event,
            sort_proto_files=self._sort_proto_files,
        )

    def generate_sdk(
        self,
        repo_path: str,
        output_root: str,
        sdk: Optional[str] = None,
        with_docs: bool = True,
        cancel_event: Optional[threading.Event] = None,
    ) -> GenerationReport:
        """
        Generate an SDK and, optionally, its documentation.

        Documentation failures are logged and reported but do not fail the
        SDK generation that already succeeded.
        """
        generator = self.resolve_generator(repo_path, sdk)
        output = self.generate(repo_path, output_root, generator.sdk, cancel_event)

        if not with_docs:
            return GenerationReport(sdk=generator.sdk, output=output)

        try:
            documentation = self.generate_documentation(repo_path, output_root, cancel_event)
        except CommandCancelledError:
            raise
        except ProtosdkError as e:
            logger.warning(f"Documentation generation failed, but SDK generation succeeded: {e}")
            return GenerationReport(sdk=generator.sdk, output=output, documentation_error=str(e))

        return GenerationReport(sdk=generator.sdk, output=output, documentation=documentation)
