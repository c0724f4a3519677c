"""
Tests for the command line adapter.
"""

import io
import json
import os
import zipfile
from unittest.mock import patch

from cli_zip import ZipCLI
from zip_ops import ReportRenderer
from .test_utils import TempDirTestCase


class TestZipCLI(TempDirTestCase):
    def setUp(self):
        super().setUp()
        self.out = io.StringIO()
        self.err = io.StringIO()
        self.cli = ZipCLI(
            renderer=ReportRenderer(out=self.out, err=self.err), show_spinner=False
        )

    def _write_config(self, data):
        path = os.path.join(self.temp_dir, "config.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))
        return path

    def test_too_few_arguments_prints_usage(self):
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            exit_code = self.cli.run([self.source_dir])

        self.assertEqual(exit_code, 1)
        self.assertIn("Compression Levels:", stdout.getvalue())

    def test_too_many_arguments_prints_usage(self):
        with patch("sys.stdout", new_callable=io.StringIO):
            exit_code = self.cli.run(["a", "b", "best", "c.json", "extra"])

        self.assertEqual(exit_code, 1)

    def test_success_renders_report(self):
        self.write_tree({"index.html": "<html/>", "js/app.js": "run()"})

        exit_code = self.cli.run([self.source_dir, self.output_path()])

        self.assertEqual(exit_code, 0)
        self.assertIn("COMPRESSION REPORT", self.out.getvalue())
        self.assertIn("Files Processed: 2", self.out.getvalue())
        self.assertEqual(self.err.getvalue(), "")
        with zipfile.ZipFile(self.output_path()) as zipf:
            self.assertEqual(sorted(zipf.namelist()), ["index.html", "js/app.js"])

    def test_explicit_level(self):
        self.write_tree({"index.html": "<html/>" * 100})

        exit_code = self.cli.run([self.source_dir, self.output_path(), "store"])

        self.assertEqual(exit_code, 0)
        with zipfile.ZipFile(self.output_path()) as zipf:
            info = zipf.getinfo("index.html")
        self.assertGreaterEqual(info.compress_size, info.file_size)

    def test_invalid_level_fails(self):
        self.write_tree({"index.html": "<html/>"})

        exit_code = self.cli.run([self.source_dir, self.output_path(), "ultra"])

        self.assertEqual(exit_code, 1)
        self.assertIn(
            "Fatal Error: Invalid compression level: ultra", self.err.getvalue()
        )
        self.assertFalse(os.path.exists(self.output_path()))

    def test_missing_source_fails(self):
        exit_code = self.cli.run(
            [os.path.join(self.temp_dir, "missing"), self.output_path()]
        )

        self.assertEqual(exit_code, 1)
        self.assertIn("Source directory not found", self.err.getvalue())

    def test_no_files_fails(self):
        self.write_tree({"server.log": "x"})

        exit_code = self.cli.run([self.source_dir, self.output_path()])

        self.assertEqual(exit_code, 1)
        err = self.err.getvalue()
        self.assertIn("Fatal Error: No files to compress", err)
        self.assertIn("Excluded: server.log", err)

    def test_config_file_overrides(self):
        self.write_tree({"index.html": "<html/>", "app.js.map": "{}"})
        config_path = self._write_config({"exclude_patterns": ["*.map"]})

        exit_code = self.cli.run(
            [self.source_dir, self.output_path(), "fast", config_path]
        )

        self.assertEqual(exit_code, 0)
        with zipfile.ZipFile(self.output_path()) as zipf:
            self.assertEqual(zipf.namelist(), ["index.html"])

    def test_positional_level_beats_config_level(self):
        self.write_tree({"index.html": "<html/>"})
        config_path = self._write_config({"compression_level": "store"})
        parsed = self.cli.parser.parse_args(
            [self.source_dir, self.output_path(), "fast", config_path]
        )

        config = self.cli.build_configuration(parsed)

        self.assertEqual(config.compression_level, "fast")

    def test_broken_config_file_uses_defaults(self):
        self.write_tree({"index.html": "<html/>"})
        config_path = self._write_config("{broken")

        exit_code = self.cli.run(
            [self.source_dir, self.output_path(), "best", config_path]
        )

        self.assertEqual(exit_code, 0)

    def test_keyboard_interrupt_exit_code(self):
        self.write_tree({"index.html": "<html/>"})

        with patch.object(ZipCLI, "build_configuration", side_effect=KeyboardInterrupt):
            exit_code = self.cli.run([self.source_dir, self.output_path()])

        self.assertEqual(exit_code, 130)

    def test_unexpected_error_exit_code(self):
        self.write_tree({"index.html": "<html/>"})

        with patch.object(
            ZipCLI, "build_configuration", side_effect=RuntimeError("boom")
        ):
            exit_code = self.cli.run([self.source_dir, self.output_path()])

        self.assertEqual(exit_code, 1)

    def test_dash_argument_is_a_path_not_an_option(self):
        exit_code = self.cli.run(["-x", self.output_path()])

        self.assertEqual(exit_code, 1)
        self.assertIn("Source directory not found", self.err.getvalue())

    def test_source_directory_starting_with_dash(self):
        dash_source = os.path.join(self.temp_dir, "-static")
        self.write_tree({"index.html": "<html/>"}, root=dash_source)
        previous_cwd = os.getcwd()
        os.chdir(self.temp_dir)
        self.addCleanup(os.chdir, previous_cwd)

        exit_code = self.cli.run(["-static", self.output_path()])

        self.assertEqual(exit_code, 0)
        with zipfile.ZipFile(self.output_path()) as zipf:
            self.assertEqual(zipf.namelist(), ["index.html"])

    def test_empty_level_falls_back_to_best(self):
        self.write_tree({"index.html": "<html/>"})
        parsed = self.cli.parser.parse_args([self.source_dir, self.output_path(), ""])

        config = self.cli.build_configuration(parsed)

        self.assertEqual(config.compression_level, "best")
        self.assertEqual(self.cli.run([self.source_dir, self.output_path(), ""]), 0)

    def test_empty_level_keeps_config_level(self):
        self.write_tree({"index.html": "<html/>"})
        config_path = self._write_config({"compression_level": "store"})
        parsed = self.cli.parser.parse_args(
            [self.source_dir, self.output_path(), "", config_path]
        )

        self.assertEqual(self.cli.build_configuration(parsed).compression_level, "store")
