"""Tests for the buf (manifest-driven) generator plugin."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock

from protosdk._generation import GeneratorInput
from protosdk._generation.generators import BufGenerator
from protosdk._generation.generators.buf import is_generated_file
from protosdk._generation.utils import copy_generated_files
from protosdk.exceptions import (
    CommandCancelledError,
    CommandTimeoutError,
    GenerationIOError,
    ToolExecutionError,
    ValidationError,
)

GENERATED_FILES = {
    "gen/go/acme/v1/user.pb.go": "package acmev1\n",
    "gen/ts/acme/v1/user_pb.ts": "export class User {}\n",
}


def _write(root: str, rel_path: str, content: str = "") -> None:
    path = Path(root, rel_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _make_buf_runner(files=GENERATED_FILES):
    """Runner that behaves like `buf generate`: writes output into the work dir."""

    def run(name, args, work_dir, cancel_event=None):
        for rel_path, content in files.items():
            _write(work_dir, rel_path, content)
        return b""

    runner = MagicMock()
    runner.run.side_effect = run
    return runner


class TestIsGeneratedFile(unittest.TestCase):
    """Tests for the source/output classification after `buf generate`."""

    def test_sources_excluded(self):
        for rel_path in [
            "buf.gen.yaml",
            "buf.yaml",
            "buf.work.yaml",
            "buf.lock.yaml",
            "proto/acme/v1/user.proto",
            "nested/buf.gen.yaml",
            "nested/buf.yaml",
            ".git/config",
        ]:
            self.assertFalse(is_generated_file(rel_path), rel_path)

    def test_outputs_included(self):
        for rel_path in [
            "gen/go/acme/v1/user.pb.go",
            "gen/ts/user_pb.ts",
            "README.md",
            "buf.lock",
            "mybuf.yaml",
            "notes.yaml",
        ]:
            self.assertTrue(is_generated_file(rel_path), rel_path)


class TestBufGenerator(unittest.TestCase):
    """Tests for BufGenerator."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.repo = os.path.join(self.tmp.name, "repo")
        self.output = os.path.join(self.tmp.name, "out", "buf")
        _write(self.repo, "buf.gen.yaml", "version: v2\n")
        _write(self.repo, "buf.yaml", "version: v2\n")
        _write(self.repo, "proto/acme/v1/user.proto", "syntax = \"proto3\";\n")
        _write(self.repo, ".git/HEAD", "ref: refs/heads/main\n")

    def tearDown(self):
        self.tmp.cleanup()

    def test_properties(self):
        generator = BufGenerator(MagicMock())
        self.assertEqual(generator.sdk, "BUF")
        self.assertEqual(generator.dir_name, "buf")
        self.assertEqual(generator.command, "buf")

    def test_is_applicable(self):
        generator = BufGenerator(MagicMock())
        self.assertTrue(generator.is_applicable(self.repo))
        with tempfile.TemporaryDirectory() as empty:
            self.assertFalse(generator.is_applicable(empty))

    def test_validate_requires_manifest(self):
        """Test that a repository without buf.gen.yaml is rejected before running buf."""
        runner = MagicMock()
        with tempfile.TemporaryDirectory() as empty:
            with self.assertRaises(ValidationError) as cm:
                BufGenerator(runner).generate(GeneratorInput(repo_path=empty, output_path=self.output))
        self.assertEqual(str(cm.exception), "buf.gen.yaml not found in repository")
        runner.run.assert_not_called()

    def test_generate_copies_output(self):
        """Test that generated files are harvested and copied with their relative paths."""
        runner = _make_buf_runner()
        generator = BufGenerator(runner)

        output = generator.generate(GeneratorInput(repo_path=self.repo, output_path=self.output))

        runner.run.assert_called_once()
        name, args, work_dir, _ = runner.run.call_args[0]
        self.assertEqual((name, args, work_dir), ("buf", ["generate"], self.repo))

        self.assertEqual(output.files_count, 2)
        self.assertEqual(output.output_path, self.output)
        for rel_path, content in GENERATED_FILES.items():
            self.assertEqual(Path(self.output, rel_path).read_text(), content)
        self.assertFalse(os.path.exists(os.path.join(self.output, "buf.gen.yaml")))
        self.assertFalse(os.path.exists(os.path.join(self.output, "buf.yaml")))
        self.assertFalse(os.path.exists(os.path.join(self.output, "proto")))
        self.assertFalse(os.path.exists(os.path.join(self.output, ".git")))

    def test_proto_file_list_ignored(self):
        """Test that an explicit file list does not change the buf invocation."""
        runner = _make_buf_runner()
        input = GeneratorInput(repo_path=self.repo, output_path=self.output, proto_files=("../escape.proto",))

        BufGenerator(runner).generate(input)
        self.assertEqual(runner.run.call_args[0][1], ["generate"])

    def test_output_inside_repository(self):
        """Test that an output directory nested in the repository is not harvested into itself."""
        output = os.path.join(self.repo, "sdk-out")
        generator = BufGenerator(_make_buf_runner())

        result = generator.generate(GeneratorInput(repo_path=self.repo, output_path=output))
        self.assertEqual(result.files_count, 2)

        # A second run sees the first run's copies but must not count them
        result = generator.generate(GeneratorInput(repo_path=self.repo, output_path=output))
        self.assertEqual(result.files_count, 2)

    def test_excluded_sibling_directories(self):
        """Test that directories listed in exclude_dirs are skipped."""
        _write(self.repo, "out/docs/index.md", "# Docs\n")
        input = GeneratorInput(
            repo_path=self.repo,
            output_path=os.path.join(self.repo, "out", "buf"),
            exclude_dirs=[os.path.join(self.repo, "out", "docs")],
        )
        self.assertEqual(input.exclude_dirs, (os.path.join(self.repo, "out", "docs"),))

        result = BufGenerator(_make_buf_runner()).generate(input)
        self.assertEqual(result.files_count, 2)
        self.assertFalse(Path(self.repo, "out", "buf", "out").exists())

    def test_tool_failure_wrapped(self):
        runner = MagicMock()
        runner.run.side_effect = ToolExecutionError(
            "buf failed with return code 1: buf.gen.yaml: invalid plugin",
            command="buf",
            returncode=1,
            stderr="buf.gen.yaml: invalid plugin\n",
        )

        with self.assertRaises(ToolExecutionError) as cm:
            BufGenerator(runner).generate(GeneratorInput(repo_path=self.repo, output_path=self.output))

        self.assertTrue(str(cm.exception).startswith("buf generate failed: "))
        self.assertIn("invalid plugin", str(cm.exception))
        self.assertEqual(cm.exception.returncode, 1)
        self.assertEqual(cm.exception.stderr, "buf.gen.yaml: invalid plugin\n")
        self.assertFalse(os.path.exists(self.output))

    def test_cancel_and_timeout_not_wrapped(self):
        for error in (
            CommandCancelledError("buf command cancelled", command="buf"),
            CommandTimeoutError("buf command timed out", command="buf"),
        ):
            runner = MagicMock()
            runner.run.side_effect = error
            with self.assertRaises(ToolExecutionError) as cm:
                BufGenerator(runner).generate(GeneratorInput(repo_path=self.repo, output_path=self.output))
            self.assertIs(cm.exception, error)


class TestCopyGeneratedFiles(unittest.TestCase):
    """Tests for copying harvested files."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.src = os.path.join(self.tmp.name, "src")
        self.dst = os.path.join(self.tmp.name, "dst")
        _write(self.src, "a.txt", "a")
        _write(self.src, "x/y/z.txt", "z")

    def tearDown(self):
        self.tmp.cleanup()

    def test_copies_nested_files(self):
        count = copy_generated_files(self.src, self.dst, ["a.txt", "x/y/z.txt"])

        self.assertEqual(count, 2)
        self.assertEqual(Path(self.dst, "a.txt").read_text(), "a")
        self.assertEqual(Path(self.dst, "x/y/z.txt").read_text(), "z")
        self.assertEqual(os.stat(os.path.join(self.dst, "a.txt")).st_mode & 0o777, 0o644)

    def test_overwrites_existing(self):
        _write(self.dst, "a.txt", "stale")
        copy_generated_files(self.src, self.dst, ["a.txt"])
        self.assertEqual(Path(self.dst, "a.txt").read_text(), "a")

    def test_missing_source(self):
        with self.assertRaises(GenerationIOError) as cm:
            copy_generated_files(self.src, self.dst, ["missing.txt"])
        self.assertIn("failed to read source file", str(cm.exception))

    def test_no_files(self):
        self.assertEqual(copy_generated_files(self.src, self.dst, []), 0)
        self.assertTrue(os.path.isdir(self.dst))


if __name__ == "__main__":
    unittest.main()
