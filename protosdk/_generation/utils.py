"""Shared utilities for SDK generation.

Holds the command execution boundary, schema discovery, request validation,
package mapping construction and the file helpers used by the generators.
"""

import os
import posixpath
import signal
import subprocess
import threading
import time
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

from .protocol import DIR_MODE, FILE_MODE, PROTO_EXTENSION, VCS_DIRS

# Default command timeout in seconds used by the CLI
DEFAULT_TIMEOUT = 1800  # 30 minutes

# Progress indicator interval in seconds
PROGRESS_INTERVAL = 60

# How often a waiting command checks for cancellation
POLL_INTERVAL = 0.2

# How long a killed command may take to be reaped
KILL_WAIT = 5


def log_command_error(command_name: str, stderr: str) -> None:
    """
    Log command errors with a standardized format.

    Args:
        command_name: The name of the command that failed
        stderr: The stderr output from the command
    """
    if stderr:
        logger.error(f"[{command_name}] error: {stderr.strip()}")


class SubprocessCommandRunner:
    """
    CommandRunner backed by subprocess.

    Runs a program without a shell, captures stdout and stderr, and blocks
    until it exits. The command runs in its own process group; a set cancel
    event or an expired timeout kills the whole group, plugins included.
    Long-running commands log progress every PROGRESS_INTERVAL seconds.

    Safe for concurrent use: no state is kept between calls.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """
        Args:
            timeout: Seconds before a command is killed (None = no deadline)
        """
        self.timeout = timeout

    def run(
        self,
        name: str,
        args: list[str],
        work_dir: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> bytes:
        """
        Run a command and return its stdout.

        Args:
            name: Program to execute
            args: Argument vector (without the program name)
            work_dir: Working directory for the command
            cancel_event: Optional event that aborts the command when set

        Returns:
            Raw stdout bytes

        Raises:
            ToolExecutionError: If the command is missing or exits non-zero
            CommandCancelledError: If cancel_event was set
            CommandTimeoutError: If the deadline expired
        """
        cmd = [name, *args]

        if cancel_event is not None and cancel_event.is_set():
            raise CommandCancelledError(f"{name} cancelled before start", command=name)

        logger.info(f"Running command: {' '.join(cmd)} (cwd: {work_dir})")

        try:
            process = subprocess.Popen(
                cmd,
                cwd=work_dir,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                shell=False,
                start_new_session=True,
            )
        except FileNotFoundError:
            logger.error(f"{name} command not found")
            raise ToolExecutionError(f"{name} command not found - is it installed?", command=name)
        except OSError as e:
            raise ToolExecutionError(f"failed to start {name}: {e}", command=name) from e

        start_time = time.monotonic()
        next_progress = start_time + PROGRESS_INTERVAL

        while True:
            try:
                stdout, stderr = process.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                now = time.monotonic()
                elapsed = now - start_time

                if cancel_event is not None and cancel_event.is_set():
                    self._kill(process)
                    logger.warning(f"{name} cancelled after {elapsed:.1f}s")
                    raise CommandCancelledError(f"{name} command cancelled", command=name)

                if self.timeout is not None and elapsed >= self.timeout:
                    self._kill(process)
                    logger.error(f"{name} command timed out after {elapsed:.1f}s (limit: {self.timeout}s)")
                    raise CommandTimeoutError(f"{name} command timed out", command=name)

                if now >= next_progress:
                    minutes, seconds = divmod(int(elapsed), 60)
                    logger.info(f"{name} still running... ({minutes}m {seconds}s elapsed)")
                    next_progress += PROGRESS_INTERVAL

        if process.returncode != 0:
            stderr_text = stderr.decode("utf-8", errors="replace")
            log_command_error(name, stderr_text)
            raise ToolExecutionError(
                f"{name} failed with return code {process.returncode}: {stderr_text.strip()}",
                command=name,
                returncode=process.returncode,
                stderr=stderr_text,
            )

        return stdout

    @staticmethod
    def _kill(process: subprocess.Popen) -> None:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            logger.debug(f"Process group {process.pid} already gone")
        try:
            process.wait(timeout=KILL_WAIT)
        except subprocess.TimeoutExpired:
            logger.warning(f"Process {process.pid} did not exit within {KILL_WAIT}s of being killed")
        # Pipes may still be held open by processes that left the group
        for stream in (process.stdout, process.stderr):
            if stream is not None:
                stream.close()


# =============================================================================
# Schema discovery and validation
# =============================================================================


def clean_path(path: str) -> str:
    """Lexically normalize a path (no filesystem access)."""
    return os.path.normpath(path)


def _raise_walk_error(error: OSError) -> None:
    raise error


def find_proto_files(repo_path: str, sort: bool = False) -> list[str]:
    """
    Recursively find schema files under a repository root.

    Version-control metadata directories are skipped. Paths are returned
    relative to repo_path with forward slashes.

    Args:
        repo_path: Repository root
        sort: Sort the result instead of keeping traversal order

    Returns:
        Relative paths of every .proto file (possibly empty)

    Raises:
        GenerationIOError: If the root is missing or traversal fails
    """
    proto_files: list[str] = []

    try:
        for dirpath, dirnames, filenames in os.walk(repo_path, onerror=_raise_walk_error):
            dirnames[:] = [d for d in dirnames if d not in VCS_DIRS]
            for filename in filenames:
                if filename.endswith(PROTO_EXTENSION):
                    rel_path = os.path.relpath(os.path.join(dirpath, filename), repo_path)
                    proto_files.append(Path(rel_path).as_posix())
    except OSError as e:
        raise GenerationIOError(f"failed to find proto files in {repo_path}: {e}") from e

    if sort:
        proto_files.sort()

    logger.debug(f"Found {len(proto_files)} proto files in {repo_path}")
    return proto_files


def validate_proto_file(proto_file: str) -> None:
    """
    Check that a schema path is safe to pass to protoc.

    Raises:
        ValidationError: On traversal, absolute paths or a wrong extension
    """
    clean_file = clean_path(proto_file)

    if ".." in Path(clean_file).parts:
        raise ValidationError(f"invalid proto file {proto_file!r}: path traversal detected")

    if os.path.isabs(clean_file):
        raise ValidationError(f"invalid proto file {proto_file!r}: absolute paths not allowed")

    if not clean_file.endswith(PROTO_EXTENSION):
        raise ValidationError(f"invalid proto file {proto_file!r}: file must have {PROTO_EXTENSION} extension")


def validate_proto_files(proto_files: Iterable[str]) -> None:
    """
    Validate a whole schema list for plugin-based generation.

    Raises:
        ValidationError: If the list is empty or any entry is invalid
    """
    proto_files = list(proto_files)
    if not proto_files:
        raise ValidationError("at least one proto file is required")

    for proto_file in proto_files:
        validate_proto_file(proto_file)


def go_package_mapping(proto_file: str, opt_prefix: str) -> str:
    """
    Build a package remapping flag for a schema file.

    >>> go_package_mapping("user/v1/user.proto", "go_opt")
    '--go_opt=Muser/v1/user.proto=./user/v1'
    >>> go_package_mapping("test.proto", "go_opt")
    '--go_opt=Mtest.proto=./'
    """
    directory = posixpath.dirname(proto_file)
    target = "./" if directory in ("", ".") else f"./{directory}"
    return f"--{opt_prefix}=M{proto_file}={target}"


# =============================================================================
# Filesystem helpers
# =============================================================================


def ensure_directory(path: str) -> str:
    """
    Create a directory (and parents) if needed and return its absolute path.

    Raises:
        GenerationIOError: If the directory cannot be created
    """
    abs_path = os.path.abspath(path)
    try:
        os.makedirs(abs_path, mode=DIR_MODE, exist_ok=True)
    except OSError as e:
        raise GenerationIOError(f"failed to create output directory {abs_path}: {e}") from e
    return abs_path


def write_readable_file(path: str, data: bytes) -> None:
    """Write bytes to a file that other processes must be able to read."""
    with open(path, "wb") as f:
        f.write(data)
    os.chmod(path, FILE_MODE)


def copy_generated_files(repo_path: str, output_path: str, generated_files: Iterable[str]) -> int:
    """
    Copy files from a repository into an output tree, keeping relative paths.

    Existing destination files are overwritten. Nothing is rolled back if a
    copy fails halfway.

    Args:
        repo_path: Source root
        output_path: Destination root (created if missing)
        generated_files: Paths relative to repo_path

    Returns:
        Number of files copied

    Raises:
        GenerationIOError: If a directory cannot be created or a file cannot be read or written
    """
    abs_output_path = ensure_directory(output_path)
    copied = 0

    for rel_path in generated_files:
        src_path = os.path.join(repo_path, rel_path)
        dst_path = os.path.join(abs_output_path, rel_path)

        try:
            os.makedirs(os.path.dirname(dst_path), mode=DIR_MODE, exist_ok=True)
        except OSError as e:
            raise GenerationIOError(f"failed to create destination directory for {rel_path}: {e}") from e

        try:
            with open(src_path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise GenerationIOError(f"failed to read source file {src_path}: {e}") from e

        try:
            write_readable_file(dst_path, data)
        except OSError as e:
            raise GenerationIOError(f"failed to write destination file {dst_path}: {e}") from e

        copied += 1

    return copied
