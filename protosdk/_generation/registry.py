"""Generator registry for managing SDK generator plugins."""

import threading
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from protosdk.exceptions import GeneratorNotFoundError
from protosdk.logging_config import logger

from .generators import (
    BufGenerator,
    GoConnectRpcGenerator,
    GoGrpcGenerator,
    GoProtobufGenerator,
    JsBufbuildEsGenerator,
    JsConnectRpcGenerator,
    JsProtobufGenerator,
)
from .protocol import SDK_BUF, CommandRunner, Generator


class GeneratorRegistry:
    """
    Registry mapping SDK tags to generator plugins.

    The mapping is an immutable snapshot that is replaced wholesale on
    registration, so lookups never take a lock and never wait on each other.
    Only writers serialize on the lock.

    Example:
        registry = GeneratorRegistry()
        registry.register(BufGenerator())
        registry.register(GoProtobufGenerator())

        generator = registry.find_applicable_generator("/path/to/repo")
        output = generator.generate(GeneratorInput(...))
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._write_lock = threading.Lock()
        self._generators: Mapping[str, Generator] = MappingProxyType({})

    def register(self, generator: Generator) -> None:
        """
        Register a generator, replacing any generator with the same SDK tag.

        Args:
            generator: Generator implementation to register
        """
        with self._write_lock:
            generators = dict(self._generators)
            replaced = generator.sdk in generators
            generators[generator.sdk] = generator
            self._generators = MappingProxyType(generators)

        action = "Replaced" if replaced else "Registered"
        logger.debug(f"{action} generator: {generator.sdk} (dir={generator.dir_name})")

    def get(self, sdk: str) -> Generator:
        """
        Look up the generator for an SDK tag.

        Raises:
            GeneratorNotFoundError: If no generator is registered for the tag
        """
        generator = self._generators.get(sdk)
        if generator is None:
            raise GeneratorNotFoundError(f"no generator registered for SDK: {sdk}")
        return generator

    def list_sdks(self) -> List[str]:
        """Return the registered SDK tags in registration order."""
        return list(self._generators)

    def find_applicable_generator(self, repo_path: str) -> Optional[Generator]:
        """
        Pick the generator that applies to a repository.

        A repository with buf.gen.yaml always uses the buf generator when it
        is registered. Otherwise the first registered generator whose
        applicability check passes is returned.

        Args:
            repo_path: Repository root

        Returns:
            The applicable generator, or None if none applies
        """
        generators = self._generators

        buf_generator = generators.get(SDK_BUF)
        if buf_generator is not None and buf_generator.is_applicable(repo_path):
            logger.debug(f"Using {SDK_BUF} generator for {repo_path}")
            return buf_generator

        for sdk, generator in generators.items():
            if sdk == SDK_BUF:
                continue
            if generator.is_applicable(repo_path):
                logger.debug(f"Using {sdk} generator for {repo_path}")
                return generator

        logger.debug(f"No applicable generator for {repo_path}")
        return None

    def list_generators(self) -> List[Dict[str, Any]]:
        """
        List all registered generators with their details.

        Returns:
            List of dicts with generator info
        """
        return [
            {
                "sdk": generator.sdk,
                "dir_name": generator.dir_name,
                "command": getattr(generator, "command", "unknown"),
            }
            for generator in self._generators.values()
        ]

    def __contains__(self, sdk: object) -> bool:
        return sdk in self._generators

    def __len__(self) -> int:
        return len(self._generators)


class RegistryBuilder:
    """
    Fluent builder for GeneratorRegistry.

    Example:
        registry = (
            RegistryBuilder(runner)
            .with_default_generators()
            .with_generator(CustomGenerator())
            .build()
        )
    """

    def __init__(self, runner: Optional[CommandRunner] = None) -> None:
        self._runner = runner
        self._generators: List[Generator] = []

    def with_generator(self, generator: Generator) -> "RegistryBuilder":
        self._generators.append(generator)
        return self

    def with_default_generators(self) -> "RegistryBuilder":
        """Add the buf generator and every protoc SDK generator."""
        self._generators.extend(
            [
                BufGenerator(self._runner),
                GoProtobufGenerator(self._runner),
                GoConnectRpcGenerator(self._runner),
                GoGrpcGenerator(self._runner),
                JsBufbuildEsGenerator(self._runner),
                JsProtobufGenerator(self._runner),
                JsConnectRpcGenerator(self._runner),
            ]
        )
        return self

    def build(self) -> GeneratorRegistry:
        registry = GeneratorRegistry()
        for generator in self._generators:
            registry.register(generator)
        return registry
