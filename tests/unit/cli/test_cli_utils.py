"""Unit tests for CLI utilities."""

from pathlib import Path

import pytest

from avmbuild.build import PipelineResult
from avmbuild.cli_utils import BuildReporter, ErrorFormatter


class TestErrorFormatter:
    """Tests for ErrorFormatter class."""

    def test_print_error(self, capsys):
        ErrorFormatter.print_error("Build failed!", "Error: Failed to create image")
        out = capsys.readouterr().out
        assert "✗ Build failed!" in out
        assert "Error: Failed to create image" in out

    def test_print_warning(self, capsys):
        ErrorFormatter.print_warning("No .avm files found")
        assert "⚠ No .avm files found" in capsys.readouterr().out

    def test_keyboard_interrupt_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_keyboard_interrupt()
        assert exc_info.value.code == 130

    def test_unexpected_error_exit_code(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            ErrorFormatter.handle_unexpected_error(ValueError("bad"))
        assert exc_info.value.code == 1
        assert "ValueError: bad" in capsys.readouterr().out


class TestBuildReporter:
    """Tests for BuildReporter class."""

    def test_flash_instructions(self):
        """Test flashing runs idf.py from the platform directory."""
        build_dir = Path("/work/AtomVM/src/platforms/esp32/build")
        text = BuildReporter.flash_instructions(build_dir)
        assert f"cd {build_dir.parent}" in text
        assert text.endswith("idf.py flash")

    def test_report_failure(self, capsys):
        result = PipelineResult(success=False, image_path=None, build_dir=None, build_time=0.1, message="Build failed")
        BuildReporter.report(result, "esp32")
        out = capsys.readouterr().out
        assert "Build failed!" in out
        assert "Error: Build failed" in out
        assert "idf.py flash" not in out

    def test_report_success(self, tmp_path, capsys):
        image = tmp_path / "atomvm-esp32s3.img"
        image.write_bytes(b"image")
        result = PipelineResult(
            success=True, image_path=image, build_dir=tmp_path, build_time=61.5, message="ok"
        )

        BuildReporter.report(result, "esp32s3")

        out = capsys.readouterr().out
        assert "Successfully built AtomVM for esp32s3" in out
        assert f"Flashable image: {image}" in out
        assert "Build time: 61.50s" in out
