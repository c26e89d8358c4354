"""Documentation generator plugin.

Runs protoc-gen-doc to produce a single markdown index, then strips the
"Scalar Value Types" reference table that protoc-gen-doc appends to every
document.
"""

import os
import threading
from pathlib import Path
from typing import Optional

from protosdk.exceptions import GenerationIOError
from protosdk.logging_config import logger

from ..protocol import SDK_DOCUMENTATION, CommandRunner, GeneratorInput
from ..result import GeneratorOutput
from ..utils import clean_path, write_readable_file
from .protoc import ProtocGenerator, proto_path_flag

# Templates ship inside the package
PACKAGE_DIR = Path(__file__).resolve().parent.parent
TEMPLATE_PATH = PACKAGE_DIR / "templates" / "proto-doc-template.mustache"

TEMPLATE_FILE_NAME = "proto-doc-template.mustache"
DOC_INDEX_FILE = "index.md"
DOC_OPT = f"markdown,{DOC_INDEX_FILE}"

# Matches both "Scalar Value Type" and "Scalar Value Types"
SCALAR_HEADING_MARKER = "scalar value type"


def materialize_template(output_path: str, template_path: Optional[Path] = None) -> Optional[str]:
    """
    Copy the bundled documentation template into the output directory.

    Returns:
        Path of the written template, or None when it could not be read or
        written. Failure never propagates: generation proceeds with the
        default documentation flags.
    """
    source = template_path or TEMPLATE_PATH
    try:
        content = source.read_bytes()
    except OSError as e:
        logger.debug(f"Documentation template unavailable ({source}): {e}")
        return None

    destination = os.path.join(output_path, TEMPLATE_FILE_NAME)
    try:
        write_readable_file(destination, content)
    except OSError as e:
        logger.debug(f"Could not write documentation template to {destination}: {e}")
        return None

    return destination


def build_documentation_args(input: GeneratorInput) -> list[str]:
    materialize_template(input.output_path)

    args = [
        proto_path_flag(input),
        f"--doc_out={clean_path(input.output_path)}",
        f"--doc_opt={DOC_OPT}",
    ]
    args.extend(input.proto_files)
    return args


def _is_heading(line: str) -> bool:
    return line.startswith("#")


def strip_scalar_value_types(content: str) -> str:
    """
    Remove the scalar value types section from a markdown document.

    The section starts at a heading mentioning "scalar value type(s)" and
    ends right before the next heading of any level. Running this on its own
    output returns the same text.
    """
    filtered_lines: list[str] = []
    in_scalar_section = False

    for line in content.split("\n"):
        trimmed = line.strip()

        if _is_heading(trimmed) and SCALAR_HEADING_MARKER in trimmed.lower():
            in_scalar_section = True
            continue

        if in_scalar_section:
            if _is_heading(trimmed):
                in_scalar_section = False
                filtered_lines.append(line)
            continue

        filtered_lines.append(line)

    filtered = "\n".join(filtered_lines)
    if content.endswith("\n") and not filtered.endswith("\n"):
        filtered += "\n"
    return filtered


def remove_scalar_value_types_section(file_path: str) -> None:
    """
    Rewrite a markdown file without its scalar value types section.

    Raises:
        GenerationIOError: If the file cannot be read or written
    """
    try:
        with open(file_path, "rb") as f:
            content = f.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise GenerationIOError(f"failed to read documentation file {file_path}: {e}") from e

    try:
        write_readable_file(file_path, strip_scalar_value_types(content).encode("utf-8"))
    except OSError as e:
        raise GenerationIOError(f"failed to write documentation file {file_path}: {e}") from e


class DocumentationGenerator(ProtocGenerator):
    """Markdown API documentation via protoc-gen-doc."""

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        super().__init__(SDK_DOCUMENTATION, build_documentation_args, runner)

    def generate(
        self,
        input: GeneratorInput,
        cancel_event: Optional[threading.Event] = None,
    ) -> GeneratorOutput:
        output = super().generate(input, cancel_event)

        index_path = os.path.join(input.output_path, DOC_INDEX_FILE)
        remove_scalar_value_types_section(index_path)
        logger.debug(f"Cleaned scalar value types section from {index_path}")

        return output
