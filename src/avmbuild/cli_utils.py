"""CLI utility functions for avmbuild.

This module provides common utilities used by the CLI including:
- Error and warning formatting
- Build summary output
"""

import sys
from pathlib import Path

from avmbuild.build import PipelineResult


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}⚠ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class BuildReporter:
    """Prints the final report of a pipeline run."""

    @staticmethod
    def flash_instructions(build_dir: Path) -> str:
        return (
            "To flash to your device, run:\n"
            f"  cd {build_dir.parent}\n"
            "  idf.py flash"
        )

    @staticmethod
    def report(result: PipelineResult, chip: str) -> None:
        """Print success, warnings or failure details for result."""
        for warning in result.warnings:
            ErrorFormatter.print_warning(warning)

        if not result.success:
            ErrorFormatter.print_error("Build failed!", f"Error: {result.message}")
            return

        if not result.image_exists:
            return

        ErrorFormatter.print_success(f"Successfully built AtomVM for {chip}")
        print()
        print(f"Build directory: {result.build_dir}")
        print()
        print(f"Flashable image: {result.image_path}")
        print()
        print(BuildReporter.flash_instructions(result.build_dir))
        print()
        print(f"Build time: {result.build_time:.2f}s")
