"""
Command-line interface for avmbuild.

This module provides the `avmbuild` CLI tool for building AtomVM firmware
images for ESP32 chips.
"""

import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional

from avmbuild import __version__
from avmbuild.build import BuildOrchestrator
from avmbuild.cli_utils import BuildReporter, ErrorFormatter
from avmbuild.config import BuildConfig, is_known_chip, known_chip_ids
from avmbuild.config.build_config import (
    DEFAULT_ATOMVM_URL,
    DEFAULT_CHIP,
    DEFAULT_IDF_PATH,
    DEFAULT_IDF_VERSION,
    DEFAULT_REF,
)

DOCKER_SUPPORT_NOTE = (
    "Docker builds require an AtomVM tree from the main branch of January 2, 2026 or later. "
    "Older AtomVM versions must be built with a local ESP-IDF installation."
)


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    atomvm_path: Optional[str] = None
    atomvm_url: Optional[str] = None
    ref: Optional[str] = None
    chip: Optional[str] = None
    idf_path: Optional[str] = None
    use_docker: bool = False
    idf_version: Optional[str] = None
    clean: bool = False
    mbedtls_prefix: Optional[str] = None
    cache_dir: Optional[str] = None
    output_dir: Optional[str] = None
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Build AtomVM for an ESP32 chip.

    Examples:
        avmbuild build --atomvm-path ~/src/AtomVM
        avmbuild build --atomvm-url https://github.com/atomvm/AtomVM --ref v0.6.5
        avmbuild build --atomvm-path ~/src/AtomVM --chip esp32s3 --clean
        avmbuild build --atomvm-path ./_build/atomvm_source/AtomVM --use-docker --chip esp32s3
        avmbuild build --atomvm-path ~/src/AtomVM --mbedtls-prefix /usr/local/opt/mbedtls@3
    """
    print(f"avmbuild AtomVM ESP32 Build v{__version__}")
    print()

    try:
        config = BuildConfig.from_options(
            chip=args.chip,
            atomvm_path=args.atomvm_path,
            atomvm_url=args.atomvm_url,
            ref=args.ref,
            idf_path=args.idf_path,
            use_docker=args.use_docker,
            idf_version=args.idf_version,
            clean=args.clean,
            mbedtls_prefix=args.mbedtls_prefix,
            cache_dir=args.cache_dir,
            output_dir=args.output_dir,
        )

        if not is_known_chip(config.chip):
            ErrorFormatter.print_warning(
                f"Unknown chip '{config.chip}' (known: {', '.join(known_chip_ids())}); passing it to idf.py as-is"
            )

        if config.use_docker:
            print(f"Using ESP-IDF Docker image: {config.docker_image}")
            print(f"Note: {DOCKER_SUPPORT_NOTE}")
            print()

        orchestrator = BuildOrchestrator(config, verbose=args.verbose)
        result = orchestrator.run()

        BuildReporter.report(result, config.chip)
        sys.exit(0 if result.success else 1)

    except ValueError as e:
        ErrorFormatter.print_error("Invalid configuration", str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> None:
    """avmbuild - build AtomVM firmware images for ESP32 chips."""
    parser = argparse.ArgumentParser(
        prog="avmbuild",
        description="avmbuild - Build AtomVM for ESP32 from source",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"avmbuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    build_parser = subparsers.add_parser(
        "build",
        help="Build AtomVM for ESP32 from source",
    )
    build_parser.add_argument(
        "--atomvm-path",
        default=None,
        help="Path to local AtomVM repository (overrides --atomvm-url if both provided)",
    )
    build_parser.add_argument(
        "--atomvm-url",
        default=None,
        help=f"Git URL to clone AtomVM from (default: {DEFAULT_ATOMVM_URL})",
    )
    build_parser.add_argument(
        "--ref",
        default=None,
        help=f"Git reference to checkout - branch, tag, or commit SHA (default: {DEFAULT_REF})",
    )
    build_parser.add_argument(
        "--chip",
        default=None,
        help=f"Target chip (default: {DEFAULT_CHIP}, options: {', '.join(known_chip_ids())})",
    )
    build_parser.add_argument(
        "--idf-path",
        default=None,
        help=f"Path to idf.py executable (default: {DEFAULT_IDF_PATH})",
    )
    build_parser.add_argument(
        "--use-docker",
        action="store_true",
        help="Use ESP-IDF Docker image instead of local installation",
    )
    build_parser.add_argument(
        "--idf-version",
        default=None,
        help=f"ESP-IDF version for Docker image (default: {DEFAULT_IDF_VERSION})",
    )
    build_parser.add_argument(
        "-c",
        "--clean",
        action="store_true",
        help="Clean build directories before building",
    )
    build_parser.add_argument(
        "--mbedtls-prefix",
        default=None,
        help="Path to custom MbedTLS installation (default: $MBEDTLS_PREFIX)",
    )
    build_parser.add_argument(
        "--cache-dir",
        default=None,
        help="Directory for cloned sources (default: $AVMBUILD_CACHE_DIR or ./_build/atomvm_source)",
    )
    build_parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory receiving collected .avm libraries (default: ./avm_deps)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )

    parsed_args = parser.parse_args(argv)

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    configure_logging(parsed_args.verbose)

    if parsed_args.command == "build":
        build_args = BuildArgs(
            atomvm_path=parsed_args.atomvm_path,
            atomvm_url=parsed_args.atomvm_url,
            ref=parsed_args.ref,
            chip=parsed_args.chip,
            idf_path=parsed_args.idf_path,
            use_docker=parsed_args.use_docker,
            idf_version=parsed_args.idf_version,
            clean=parsed_args.clean,
            mbedtls_prefix=parsed_args.mbedtls_prefix,
            cache_dir=parsed_args.cache_dir,
            output_dir=parsed_args.output_dir,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)


if __name__ == "__main__":
    main()
