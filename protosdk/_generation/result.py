"""GeneratorOutput dataclass for SDK generation output."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GeneratorOutput:
    """
    Result of a successful SDK generation.

    Attributes:
        output_path: Resolved directory holding the generated SDK
        files_count: Number of files produced (schema files compiled for
            protoc generators, files copied for the buf generator)
    """

    output_path: str
    files_count: int

    def __post_init__(self) -> None:
        """Validate result state."""
        if not self.output_path:
            raise ValueError("GeneratorOutput must have output_path")
        if self.files_count < 0:
            raise ValueError("files_count cannot be negative")


@dataclass(frozen=True)
class GenerationReport:
    """
    Outcome of generating one SDK together with its documentation.

    Attributes:
        sdk: SDK tag of the generator that ran
        output: Output of the SDK generator
        documentation: Output of the documentation generator, if it ran and succeeded
        documentation_error: Why documentation failed; SDK generation still succeeded
    """

    sdk: str
    output: GeneratorOutput
    documentation: Optional[GeneratorOutput] = None
    documentation_error: Optional[str] = None
