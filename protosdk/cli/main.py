"""Command-line interface for protosdk.

Every `generate` setting can come from a CLI option, an environment variable
or a YAML config file, in that order of precedence, before falling back to
the defaults on Config.
"""

import os
import sys
from dataclasses import dataclass
from typing import Any, Optional

import click
import yaml

from .. import __version__
from .._generation import (
    SDK_DIR_NAMES,
    SDK_DOCUMENTATION,
    GenerationReport,
    SdkGenerationOrchestrator,
    SubprocessCommandRunner,
    create_default_registry,
)
from .._generation.generators import DocumentationGenerator
from .._generation.utils import DEFAULT_TIMEOUT
from ..console import (
    gha_error,
    print_banner,
    print_final_failure,
    print_final_success,
    print_generation_summary,
    print_generators_table,
    print_tools_table,
)
from ..exceptions import ConfigurationError, ProtosdkError
from ..logging_config import LOG_FORMATS, logger, set_log_format, set_log_level
from ..tool_checks import check_all_tools, format_missing_tools_error, get_missing_tools_for_sdk

PROTOSDK_VERSION = __version__

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

# SDK tags a user can ask for (documentation is generated alongside, not on its own)
SDK_CHOICES = sorted(sdk for sdk in SDK_DIR_NAMES if sdk != SDK_DOCUMENTATION)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Keys accepted in the YAML config file
CONFIG_FILE_KEYS = {
    "repo_path",
    "output_path",
    "sdk",
    "generate_docs",
    "sort_proto_files",
    "timeout",
    "log_level",
    "log_format",
}


@dataclass
class Config:
    """Configuration settings for an SDK generation run."""

    repo_path: str
    output_path: str
    sdk: Optional[str] = None
    generate_docs: bool = True
    sort_proto_files: bool = False
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    log_format: str = "text"

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not self.repo_path:
            raise ConfigurationError("Repository path is not defined")
        if not os.path.isdir(self.repo_path):
            raise ConfigurationError(f"Repository path does not exist or is not a directory: {self.repo_path}")
        if not self.output_path:
            raise ConfigurationError("Output path is not defined")

        if self.sdk:
            self.sdk = self.sdk.upper()
            if self.sdk not in SDK_CHOICES:
                raise ConfigurationError(f"Unknown SDK '{self.sdk}'. Expected one of: {', '.join(SDK_CHOICES)}")

        if self.timeout <= 0:
            raise ConfigurationError(f"Command timeout must be positive, got {self.timeout}")

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level '{self.log_level}'. Expected one of: {', '.join(LOG_LEVELS)}")

        self.log_format = self.log_format.lower()
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Invalid log format '{self.log_format}'. Expected one of: {', '.join(LOG_FORMATS)}"
            )


def evaluate_boolean(value: str) -> bool:
    """
    Evaluate string values as boolean.

    Args:
        value: String value to evaluate

    Returns:
        Boolean result
    """
    return value.lower() in ["true", "yes", "yeah", "1"]


def load_config_file(path: str) -> dict[str, Any]:
    """
    Load settings from a YAML config file.

    Args:
        path: Path to the YAML file

    Returns:
        Mapping of known setting names to values

    Raises:
        ConfigurationError: If the file cannot be read or is not a mapping
    """
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in config file {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    unknown = sorted(set(data) - CONFIG_FILE_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown keys in config file {path}: {', '.join(unknown)}")

    return {key: value for key, value in data.items() if key in CONFIG_FILE_KEYS}


def _file_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return evaluate_boolean(str(value))


def _parse_timeout(value: Any, source: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid command timeout from {source}: {value!r}")


def build_config(
    repo_path: Optional[str] = None,
    output_path: Optional[str] = None,
    sdk: Optional[str] = None,
    generate_docs: Optional[bool] = None,
    sort_proto_files: Optional[bool] = None,
    timeout: Optional[int] = None,
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    config_file: Optional[str] = None,
) -> Config:
    """
    Build and validate a Config from CLI values, environment and config file.

    Arguments left as None fall back to the environment variable, then to the
    config file (`config_file` or PROTOSDK_CONFIG), then to the default.

    Raises:
        ConfigurationError: If the resulting configuration is invalid
    """
    config_file = config_file or os.getenv("PROTOSDK_CONFIG")
    file_values = load_config_file(config_file) if config_file else {}

    def pick(cli_value: Any, env_name: str, key: str) -> tuple[Any, str]:
        if cli_value is not None:
            return cli_value, "command line"
        env_value = os.getenv(env_name)
        if env_value:
            return env_value, env_name
        return file_values.get(key), "config file"

    repo_value, _ = pick(repo_path, "REPO_PATH", "repo_path")
    output_value, _ = pick(output_path, "OUTPUT_PATH", "output_path")
    sdk_value, _ = pick(sdk, "SDK", "sdk")
    docs_value, _ = pick(generate_docs, "GENERATE_DOCS", "generate_docs")
    sort_value, _ = pick(sort_proto_files, "SORT_PROTO_FILES", "sort_proto_files")
    timeout_value, timeout_source = pick(timeout, "COMMAND_TIMEOUT", "timeout")
    level_value, _ = pick(log_level, "LOG_LEVEL", "log_level")
    format_value, _ = pick(log_format, "LOG_FORMAT", "log_format")

    config = Config(
        repo_path=os.path.expanduser(str(repo_value)) if repo_value else "",
        output_path=os.path.expanduser(str(output_value)) if output_value else "",
        sdk=str(sdk_value) if sdk_value else None,
        generate_docs=_file_boolean(docs_value) if docs_value is not None else True,
        sort_proto_files=_file_boolean(sort_value) if sort_value is not None else False,
        timeout=_parse_timeout(timeout_value, timeout_source) if timeout_value is not None else DEFAULT_TIMEOUT,
        log_level=str(level_value) if level_value else "INFO",
        log_format=str(format_value) if format_value else "text",
    )
    config.validate()
    return config


def build_orchestrator(config: Config) -> SdkGenerationOrchestrator:
    """Create an orchestrator whose generators share one subprocess runner."""
    runner = SubprocessCommandRunner(timeout=config.timeout)
    return SdkGenerationOrchestrator(
        registry=create_default_registry(runner),
        documentation_generator=DocumentationGenerator(runner),
        sort_proto_files=config.sort_proto_files,
    )


def run_generation(config: Config) -> GenerationReport:
    """
    Run one SDK generation described by a validated Config.

    Raises:
        ProtosdkError: If the SDK could not be generated
    """
    set_log_level(config.log_level)
    set_log_format(config.log_format)
    orchestrator = build_orchestrator(config)

    generator = orchestrator.resolve_generator(config.repo_path, config.sdk)
    logger.info(f"Using {generator.sdk} generator for {config.repo_path}")

    missing = get_missing_tools_for_sdk(generator.sdk, with_docs=config.generate_docs)
    if missing:
        logger.warning(format_missing_tools_error(generator.sdk, missing))

    return orchestrator.generate_sdk(
        config.repo_path,
        config.output_path,
        sdk=generator.sdk,
        with_docs=config.generate_docs,
    )


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.version_option(PROTOSDK_VERSION, "--version", prog_name="protosdk", message="%(prog)s %(version)s")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Generate client SDKs and documentation from Protocol Buffer schemas.

    Uses buf when the repository has a buf.gen.yaml, otherwise protoc with
    the plugin for the requested SDK.
    """
    if ctx.invoked_subcommand is None:
        print_banner(PROTOSDK_VERSION)
        click.echo(ctx.get_help())


@cli.command(context_settings=CONTEXT_SETTINGS)
@click.argument("repo_path", required=False)
@click.option(
    "-o",
    "--output",
    "output_path",
    help="Output root; the SDK goes to <output>/<sdk-dir> [env: OUTPUT_PATH]",
)
@click.option(
    "-s",
    "--sdk",
    type=click.Choice(SDK_CHOICES, case_sensitive=False),
    help="SDK to generate; auto-detected when omitted [env: SDK]",
)
@click.option(
    "--docs/--no-docs",
    "generate_docs",
    default=None,
    help="Generate markdown documentation (default: on) [env: GENERATE_DOCS]",
)
@click.option(
    "--sort-proto-files/--no-sort-proto-files",
    default=None,
    help="Sort discovered .proto files before passing them to protoc [env: SORT_PROTO_FILES]",
)
@click.option(
    "-t",
    "--timeout",
    type=int,
    help=f"Command timeout in seconds (default: {DEFAULT_TIMEOUT}) [env: COMMAND_TIMEOUT]",
)
@click.option("-c", "--config", "config_file", help="YAML config file [env: PROTOSDK_CONFIG]")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (default: INFO) [env: LOG_LEVEL]",
)
@click.option(
    "--log-format",
    type=click.Choice(LOG_FORMATS, case_sensitive=False),
    help="Log output format (default: text) [env: LOG_FORMAT]",
)
def generate(
    repo_path: Optional[str],
    output_path: Optional[str],
    sdk: Optional[str],
    generate_docs: Optional[bool],
    sort_proto_files: Optional[bool],
    timeout: Optional[int],
    config_file: Optional[str],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """Generate an SDK from the schema repository at REPO_PATH [env: REPO_PATH]."""
    try:
        config = build_config(
            repo_path=repo_path,
            output_path=output_path,
            sdk=sdk,
            generate_docs=generate_docs,
            sort_proto_files=sort_proto_files,
            timeout=timeout,
            log_level=log_level,
            log_format=log_format,
            config_file=config_file,
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        gha_error(str(e), title="Configuration error")
        sys.exit(1)

    try:
        report = run_generation(config)
    except ProtosdkError as e:
        logger.error(f"SDK generation failed: {e}")
        print_final_failure(str(e))
        sys.exit(1)

    print_generation_summary(report)
    print_final_success()


@cli.command(context_settings=CONTEXT_SETTINGS)
@click.argument("repo_path", type=click.Path(exists=True, file_okay=False))
def detect(repo_path: str) -> None:
    """Print the SDK tag of the generator that applies to REPO_PATH."""
    generator = create_default_registry().find_applicable_generator(repo_path)
    if generator is None:
        gha_error(f"No generator applies to {repo_path} (no buf.gen.yaml and no .proto files)")
        sys.exit(1)
    click.echo(generator.sdk)


@cli.command("list", context_settings=CONTEXT_SETTINGS)
def list_generators() -> None:
    """List registered SDK generators."""
    print_generators_table(create_default_registry().list_generators())


@cli.command(context_settings=CONTEXT_SETTINGS)
def tools() -> None:
    """Show which external compilers and plugins are installed."""
    print_tools_table(check_all_tools())


def main() -> None:
    """Main entry point for the protosdk CLI."""
    cli()


if __name__ == "__main__":
    main()
