#!/usr/bin/env python3
"""
Portal Zip Generator CLI

Packs a static asset directory into a single distributable ZIP archive.

Usage:
    python3 cli_zip.py static output.zip
    python3 cli_zip.py static output.zip fast
    python3 cli_zip.py static output.zip best config.json
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from colored_logger import setup_colored_logging, get_colored_logger
from zip_ops import (
    CompressionLevel,
    ConfigLoader,
    ReportRenderer,
    RunConfiguration,
    ZipGeneratorError,
    generate_with_progress,
)

logger = get_colored_logger(__name__)


class ZipCLI:
    """Command-line interface for the zip generator."""

    def __init__(
        self,
        renderer: Optional[ReportRenderer] = None,
        show_spinner: Optional[bool] = None,
    ):
        self.parser = self._create_parser()
        self.config_loader = ConfigLoader()
        self.renderer = renderer or ReportRenderer()
        if show_spinner is None:
            show_spinner = sys.stdout.isatty()
        self.show_spinner = show_spinner

    def _create_parser(self) -> argparse.ArgumentParser:
        """Create the positional-only argument parser."""
        parser = argparse.ArgumentParser(
            prog="portal-zip",
            description="Compress a directory into a ZIP archive",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            add_help=False,
            epilog="""
Compression Levels:
  store    - No compression (fastest)
  fast     - Fast compression
  default  - Balanced compression
  best     - Maximum compression (slowest)

Examples:
  portal-zip static output.zip
  portal-zip static output.zip fast
  portal-zip static output.zip best config.json
            """,
        )
        parser.add_argument("source_directory", help="Directory to compress")
        parser.add_argument("output_file", help="Output zip file path")
        parser.add_argument(
            "compression_level",
            nargs="?",
            default=None,
            help="Compression level: %s (default: best)"
            % ", ".join(CompressionLevel.names()),
        )
        parser.add_argument(
            "config_file",
            nargs="?",
            default=None,
            help="Optional JSON configuration file",
        )
        return parser

    def build_configuration(self, parsed_args) -> RunConfiguration:
        """Merge defaults, the config file and the positional level."""
        overrides = self.config_loader.load(parsed_args.config_file)
        return RunConfiguration.create(
            parsed_args.source_directory,
            parsed_args.output_file,
            overrides=overrides,
            # An empty level argument means "not given"
            compression_level=parsed_args.compression_level or None,
        )

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with the given arguments and return the exit code."""
        args = list(sys.argv[1:] if args is None else args)

        if not 2 <= len(args) <= 4:
            self.parser.print_help()
            return 1

        # Everything is positional, including paths that start with "-"
        parsed_args = self.parser.parse_args(["--", *args])

        try:
            config = self.build_configuration(parsed_args)
            report = asyncio.run(
                generate_with_progress(config, show_spinner=self.show_spinner)
            )
        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return 130
        except ZipGeneratorError as e:
            self.renderer.render_failure(e)
            return 1
        except Exception as e:
            logger.error("Unexpected error: %s", e)
            logger.debug("Full error details:", exc_info=True)
            return 1

        self.renderer.render(report)
        return 0


def main():
    """Main entry point for the CLI."""
    setup_colored_logging(level=logging.INFO)

    cli = ZipCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
