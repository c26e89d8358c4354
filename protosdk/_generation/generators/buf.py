"""buf generator plugin.

Manifest-driven generation: `buf generate` reads buf.gen.yaml from the
repository root and writes its output somewhere inside the repository.
Afterwards every file that is not part of the schema sources is harvested
and copied into the requested output directory.
"""

import os
import threading
from pathlib import Path
from typing import Iterable, Optional

from protosdk.exceptions import (
    CommandCancelledError,
    CommandTimeoutError,
    GenerationIOError,
    ToolExecutionError,
    ValidationError,
)
from protosdk.logging_config import logger

from ..protocol import (
    BUF_CONFIG_PREFIX,
    BUF_CONFIG_SUFFIX,
    BUF_GEN_YAML,
    PROTO_EXTENSION,
    SDK_BUF,
    VCS_DIRS,
    CommandRunner,
    GeneratorInput,
    sdk_dir_name,
)
from ..result import GeneratorOutput
from ..utils import SubprocessCommandRunner, copy_generated_files

BUF_COMMAND = "buf"


def is_generated_file(rel_path: str) -> bool:
    """
    Decide whether a file found after `buf generate` is generated output.

    Schema files, the manifest and buf's sibling config files (buf.yaml,
    buf.work.yaml, ...) are sources, everything else is output.
    """
    parts = Path(rel_path).parts
    if any(part in VCS_DIRS for part in parts[:-1]):
        return False

    name = parts[-1] if parts else rel_path
    if name == BUF_GEN_YAML:
        return False
    if name.endswith(PROTO_EXTENSION):
        return False
    if name.startswith(BUF_CONFIG_PREFIX) and name.endswith(BUF_CONFIG_SUFFIX):
        return False
    return True


def _raise_walk_error(error: OSError) -> None:
    raise error


class BufGenerator:
    """
    Manifest-driven generator using the buf CLI.

    Applicable whenever buf.gen.yaml sits at the repository root; the
    explicit schema list of GeneratorInput is ignored.
    """

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self._runner = runner or SubprocessCommandRunner()

    @property
    def sdk(self) -> str:
        return SDK_BUF

    @property
    def dir_name(self) -> str:
        return sdk_dir_name(SDK_BUF)

    @property
    def command(self) -> str:
        return BUF_COMMAND

    @property
    def runner(self) -> CommandRunner:
        return self._runner

    def is_applicable(self, repo_path: str) -> bool:
        return os.path.isfile(os.path.join(repo_path, BUF_GEN_YAML))

    def validate(self, input: GeneratorInput) -> None:
        if not self.is_applicable(input.repo_path):
            raise ValidationError(f"{BUF_GEN_YAML} not found in repository")

    def generate(
        self,
        input: GeneratorInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratorOutput:
        """Run `buf generate` and copy the harvested output."""
        self.validate(input)

        logger.info(f"Running buf generate in {input.repo_path}")
        try:
            self._runner.run(BUF_COMMAND, ["generate"], input.repo_path, cancel_event)
        except (CommandCancelledError, CommandTimeoutError):
            raise
        except ToolExecutionError as e:
            raise ToolExecutionError(
                f"buf generate failed: {e}",
                command=BUF_COMMAND,
                returncode=e.returncode,
                stderr=e.stderr,
            ) from e

        try:
            generated_files = self.find_generated_files(
                input.repo_path,
                exclude_dirs=(input.output_path, *input.exclude_dirs),
            )
        except OSError as e:
            raise GenerationIOError(f"failed to find generated files: {e}") from e

        logger.info(f"Copying {len(generated_files)} generated files to {input.output_path}")
        files_count = copy_generated_files(input.repo_path, input.output_path, generated_files)

        return GeneratorOutput(output_path=input.output_path, files_count=files_count)

    def find_generated_files(self, repo_path: str, exclude_dirs: Iterable[str] = ()) -> list[str]:
        """
        List generated files under the repository, relative to its root.

        Args:
            repo_path: Repository root
            exclude_dirs: Directories to leave out (output directories that
                live inside the repository)

        Raises:
            OSError: If the walk fails
        """
        excluded = {os.path.abspath(d) for d in exclude_dirs}
        generated_files: list[str] = []

        for dirpath, dirnames, filenames in os.walk(repo_path, onerror=_raise_walk_error):
            dirnames[:] = [
                d
                for d in dirnames
                if d not in VCS_DIRS and os.path.abspath(os.path.join(dirpath, d)) not in excluded
            ]
            for filename in filenames:
                rel_path = Path(os.path.relpath(os.path.join(dirpath, filename), repo_path)).as_posix()
                if is_generated_file(rel_path):
                    generated_files.append(rel_path)

        return generated_files
