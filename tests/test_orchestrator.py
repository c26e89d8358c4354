"""Tests for SDK generation orchestration and the public facade."""

import os
import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from protosdk import generation
from protosdk._generation import (
    GeneratorInput,
    GeneratorOutput,
    SdkGenerationOrchestrator,
    build_output_path,
    create_default_registry,
    generate_from_repo,
)
from protosdk._generation.generators import DocumentationGenerator
from protosdk.exceptions import (
    CommandCancelledError,
    GeneratorNotFoundError,
    ToolExecutionError,
    ValidationError,
)


def _write(root: str, rel_path: str, content: str = "") -> None:
    path = Path(root, rel_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


class FakeToolRunner:
    """Stands in for protoc/buf: records calls and writes the files the real tools would."""

    def __init__(self, doc_error=None):
        self.calls = []
        self.doc_error = doc_error

    def run(self, name, args, work_dir, cancel_event=None):
        self.calls.append((name, list(args), work_dir))
        doc_out = next((arg.split("=", 1)[1] for arg in args if arg.startswith("--doc_out=")), None)
        if doc_out is not None:
            if self.doc_error is not None:
                raise self.doc_error
            _write(doc_out, "index.md", "# Docs\n\n## Scalar Value Types\n| t |\n")
        elif name == "buf":
            _write(work_dir, "gen/a_pb.ts", "export {}\n")
        return b""


class TestGenerateFromRepo(unittest.TestCase):
    """Tests for discovery-driven generation."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.join(self.tmp.name, "repo")
        for rel_path in ["z.proto", "a/b.proto", "m.proto"]:
            _write(self.repo, rel_path)

    def tearDown(self):
        self.tmp.cleanup()

    def test_creates_output_and_feeds_discovered_files(self):
        generator = MagicMock()
        generator.generate.return_value = GeneratorOutput(output_path="/x", files_count=3)
        output_path = os.path.join(self.tmp.name, "nested", "out")

        generate_from_repo(generator, self.repo, output_path, sort_proto_files=True)

        self.assertTrue(os.path.isdir(output_path))
        input = generator.generate.call_args[0][0]
        self.assertIsInstance(input, GeneratorInput)
        self.assertEqual(input.repo_path, self.repo)
        self.assertEqual(input.output_path, os.path.abspath(output_path))
        self.assertEqual(input.proto_files, ("a/b.proto", "m.proto", "z.proto"))

    def test_relative_output_made_absolute(self):
        generator = MagicMock()
        cwd = os.getcwd()
        os.chdir(self.tmp.name)
        try:
            generate_from_repo(generator, self.repo, "rel-out")
        finally:
            os.chdir(cwd)

        input = generator.generate.call_args[0][0]
        self.assertTrue(os.path.isabs(input.output_path))
        self.assertTrue(input.output_path.endswith("rel-out"))

    def test_no_proto_files_rejected(self):
        empty = os.path.join(self.tmp.name, "empty")
        os.makedirs(empty)
        runner = MagicMock()
        registry = create_default_registry(runner)

        with self.assertRaises(ValidationError):
            generate_from_repo(registry.get("GO_PROTOBUF"), empty, os.path.join(self.tmp.name, "out"))
        runner.run.assert_not_called()


class TestBuildOutputPath(unittest.TestCase):
    def test_layout(self):
        self.assertEqual(
            build_output_path("/srv/sdk", "org-1", "repo-2", "abc123", "go-grpc"),
            os.path.join("/srv/sdk", "org-1", "repo-2", "abc123", "go-grpc"),
        )


class TestSdkGenerationOrchestrator(unittest.TestCase):
    """Tests for SdkGenerationOrchestrator."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.join(self.tmp.name, "repo")
        self.output_root = os.path.join(self.tmp.name, "sdk", "org", "repo", "abc123")
        _write(self.repo, "a.proto")
        _write(self.repo, "sub/b.proto")

    def tearDown(self):
        self.tmp.cleanup()

    def _orchestrator(self, runner):
        return SdkGenerationOrchestrator(
            registry=create_default_registry(runner),
            documentation_generator=DocumentationGenerator(runner),
            sort_proto_files=True,
        )

    def test_generate_sdk_with_docs(self):
        runner = FakeToolRunner()
        report = self._orchestrator(runner).generate_sdk(self.repo, self.output_root, sdk="GO_PROTOBUF")

        self.assertEqual(report.sdk, "GO_PROTOBUF")
        self.assertEqual(report.output.output_path, os.path.join(self.output_root, "go-protobuf"))
        self.assertEqual(report.output.files_count, 2)
        self.assertEqual(report.documentation.output_path, os.path.join(self.output_root, "docs"))
        self.assertIsNone(report.documentation_error)

        self.assertEqual(len(runner.calls), 2)
        self.assertEqual(runner.calls[0][1][-2:], ["a.proto", "sub/b.proto"])
        index = Path(self.output_root, "docs", "index.md").read_text()
        self.assertNotIn("Scalar Value Types", index)

    def test_without_docs(self):
        runner = FakeToolRunner()
        orchestrator = self._orchestrator(runner)
        report = orchestrator.generate_sdk(self.repo, self.output_root, sdk="JS_PROTOBUF", with_docs=False)

        self.assertIsNone(report.documentation)
        self.assertEqual(len(runner.calls), 1)
        self.assertFalse(os.path.exists(os.path.join(self.output_root, "docs")))

    def test_documentation_failure_does_not_fail_sdk(self):
        runner = FakeToolRunner(doc_error=ToolExecutionError("protoc failed with return code 1: no doc plugin"))
        report = self._orchestrator(runner).generate_sdk(self.repo, self.output_root, sdk="GO_GRPC")

        self.assertEqual(report.output.files_count, 2)
        self.assertIsNone(report.documentation)
        self.assertIn("no doc plugin", report.documentation_error)

    def test_documentation_cancellation_propagates(self):
        runner = FakeToolRunner(doc_error=CommandCancelledError("protoc command cancelled"))
        with self.assertRaises(CommandCancelledError):
            self._orchestrator(runner).generate_sdk(self.repo, self.output_root, sdk="GO_GRPC")

    def test_sdk_failure_propagates(self):
        runner = MagicMock()
        runner.run.side_effect = ToolExecutionError("protoc failed with return code 1: boom")
        with self.assertRaises(ToolExecutionError):
            self._orchestrator(runner).generate_sdk(self.repo, self.output_root, sdk="GO_PROTOBUF")
        runner.run.assert_called_once()

    def test_auto_detects_buf(self):
        _write(self.repo, "buf.gen.yaml", "version: v2\n")
        runner = FakeToolRunner()

        report = self._orchestrator(runner).generate_sdk(self.repo, self.output_root, with_docs=False)

        self.assertEqual(report.sdk, "BUF")
        self.assertEqual(report.output.files_count, 1)
        self.assertTrue(Path(self.output_root, "buf", "gen", "a_pb.ts").is_file())

    def test_buf_rerun_ignores_previous_output_inside_repo(self):
        _write(self.repo, "buf.gen.yaml", "version: v2\n")
        output_root = os.path.join(self.repo, "sdk-out")
        orchestrator = self._orchestrator(FakeToolRunner())

        first = orchestrator.generate_sdk(self.repo, output_root)
        second = orchestrator.generate_sdk(self.repo, output_root)

        self.assertEqual(first.output.files_count, 1)
        self.assertEqual(second.output.files_count, 1)
        self.assertFalse(Path(output_root, "buf", "sdk-out").exists())

    def test_buf_rerun_with_repo_as_output_root(self):
        """Test that sibling SDK and docs directories directly under the repo are not harvested."""
        _write(self.repo, "buf.gen.yaml", "version: v2\n")
        _write(self.repo, "go-grpc/old.pb.go")
        orchestrator = self._orchestrator(FakeToolRunner())

        orchestrator.generate_sdk(self.repo, self.repo)
        report = orchestrator.generate_sdk(self.repo, self.repo)

        self.assertEqual(report.output.files_count, 1)
        self.assertFalse(Path(self.repo, "buf", "docs").exists())
        self.assertFalse(Path(self.repo, "buf", "go-grpc").exists())

    def test_output_dirs(self):
        orchestrator = self._orchestrator(FakeToolRunner())
        output_dirs = orchestrator.output_dirs("/out")
        self.assertIn(os.path.join("/out", "buf"), output_dirs)
        self.assertIn(os.path.join("/out", "go-grpc"), output_dirs)
        self.assertIn(os.path.join("/out", "docs"), output_dirs)

    def test_auto_detects_first_plugin_generator(self):
        report = self._orchestrator(FakeToolRunner()).generate_sdk(self.repo, self.output_root, with_docs=False)
        self.assertEqual(report.sdk, "GO_PROTOBUF")

    def test_unknown_sdk(self):
        with self.assertRaises(GeneratorNotFoundError):
            self._orchestrator(FakeToolRunner()).generate_sdk(self.repo, self.output_root, sdk="RUST_PROST")

    def test_nothing_applicable(self):
        empty = os.path.join(self.tmp.name, "empty")
        os.makedirs(empty)
        with self.assertRaises(GeneratorNotFoundError) as cm:
            self._orchestrator(FakeToolRunner()).resolve_generator(empty)
        self.assertIn("no applicable generator", str(cm.exception))

    def test_cancel_event_forwarded(self):
        runner = MagicMock()
        event = threading.Event()
        self._orchestrator(runner).generate(self.repo, self.output_root, sdk="GO_PROTOBUF", cancel_event=event)
        self.assertIs(runner.run.call_args[0][3], event)


class TestGenerationFacade(unittest.TestCase):
    """Tests for protosdk.generation."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.join(self.tmp.name, "repo")
        _write(self.repo, "acme/v1/user.proto")
        self.runner = FakeToolRunner()
        self.orchestrator = SdkGenerationOrchestrator(
            registry=create_default_registry(self.runner),
            documentation_generator=DocumentationGenerator(self.runner),
        )
        patcher = patch.object(generation, "_orchestrator", self.orchestrator)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmp.cleanup()

    def test_detect_generator(self):
        self.assertEqual(generation.detect_generator(self.repo), "GO_PROTOBUF")
        _write(self.repo, "buf.gen.yaml")
        self.assertEqual(generation.detect_generator(self.repo), "BUF")

    def test_detect_generator_none(self):
        self.assertIsNone(generation.detect_generator(os.path.join(self.tmp.name, "missing")))

    def test_generate_sdk(self):
        output_root = os.path.join(self.tmp.name, "out")
        report = generation.generate_sdk(self.repo, output_root, sdk="JS_CONNECTRPC", with_docs=False)
        self.assertEqual(report.output.output_path, os.path.join(output_root, "js-connectrpc"))

    def test_generate_commit_sdk(self):
        sdk_root = os.path.join(self.tmp.name, "sdk")
        report = generation.generate_commit_sdk(sdk_root, "org-1", "repo-2", "abc123", self.repo, "GO_GRPC")

        commit_root = os.path.join(sdk_root, "org-1", "repo-2", "abc123")
        self.assertEqual(report.output.output_path, os.path.join(commit_root, "go-grpc"))
        self.assertEqual(report.documentation.output_path, os.path.join(commit_root, "docs"))


if __name__ == "__main__":
    unittest.main()
