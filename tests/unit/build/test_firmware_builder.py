"""Unit tests for the ESP32 firmware build."""

import pytest

from avmbuild.build.firmware_builder import FirmwareBuilder, chip_build_dir, image_path

PARTITION_SETTING = 'CONFIG_PARTITION_TABLE_CUSTOM_FILENAME="partitions-elixir.csv"'


class TestFirmwareBuilder:
    """Test cases for FirmwareBuilder."""

    @pytest.fixture
    def executor(self, recording_executor, atomvm_tree):
        return recording_executor(on_call=atomvm_tree.simulate)

    def test_build_sequence(self, executor, atomvm_tree):
        """Test set-target, reconfigure, build and mkimage run in order."""
        builder = FirmwareBuilder(executor, show_progress=False)

        outcome = builder.build(atomvm_tree.root, "sampleA")

        build_dir = chip_build_dir(atomvm_tree.root).resolve()
        boot_avm = atomvm_tree.root.resolve() / "build" / "libs" / "esp32boot" / "elixir_esp32boot.avm"
        assert executor.commands == [
            ["idf.py", "set-target", "sampleA"],
            ["idf.py", "reconfigure"],
            ["idf.py", "build"],
            ["sh", str(build_dir / "mkimage.sh"), "--boot", str(boot_avm)],
        ]
        assert executor.cwds[:3] == [atomvm_tree.platform] * 3
        assert executor.cwds[3] == build_dir
        assert outcome.success
        assert outcome.artifact_path == build_dir / "atomvm-sampleA.img"
        assert outcome.artifact_path.exists()

    def test_partition_table_patched_before_set_target(self, recording_executor, atomvm_tree):
        """Test sdkconfig.defaults already names the Elixir table at set-target."""
        defaults = atomvm_tree.platform / "sdkconfig.defaults"
        seen = []

        def on_call(command, cwd):
            if "set-target" in command:
                seen.append(PARTITION_SETTING in defaults.read_text())
            atomvm_tree.simulate(command, cwd)

        builder = FirmwareBuilder(recording_executor(on_call=on_call), show_progress=False)
        builder.build(atomvm_tree.root, "esp32")

        assert seen == [True]
        assert defaults.read_text().count("CONFIG_PARTITION_TABLE_CUSTOM_FILENAME=") == 1

    def test_clean_removes_build_dir_first(self, executor, atomvm_tree):
        """Test clean removes the chip build directory before set-target."""
        atomvm_tree.chip_build_dir.mkdir()
        (atomvm_tree.chip_build_dir / "stale.o").write_text("")
        builder = FirmwareBuilder(executor, show_progress=False)

        builder.build(atomvm_tree.root, "esp32", clean=True)

        assert atomvm_tree.stale_seen_at_set_target is False

    def test_no_clean_keeps_build_dir(self, executor, atomvm_tree):
        atomvm_tree.chip_build_dir.mkdir()
        (atomvm_tree.chip_build_dir / "stale.o").write_text("")
        builder = FirmwareBuilder(executor, show_progress=False)

        builder.build(atomvm_tree.root, "esp32")

        assert atomvm_tree.stale_seen_at_set_target is True

    @pytest.mark.parametrize(
        "failing,message,calls",
        [
            ("set-target", "Failed to set target chip", 1),
            ("reconfigure", "Build failed", 2),
            ("build", "Build failed", 3),
            ("--boot", "Failed to create image", 4),
        ],
    )
    def test_failures_stop_sequence(self, recording_executor, atomvm_tree, failing, message, calls):
        """Test each failing step reports its reason and stops."""
        executor = recording_executor(fail_on={failing}, on_call=atomvm_tree.simulate)
        builder = FirmwareBuilder(executor, show_progress=False)

        outcome = builder.build(atomvm_tree.root, "esp32")

        assert not outcome.success
        assert outcome.message == message
        assert len(executor.commands) == calls

    def test_docker_backend_mounts_repository(self, recording_docker_executor, atomvm_tree):
        """Test idf.py runs in the container with the repository mounted."""
        executor = recording_docker_executor("espressif/idf:v5.5.2", on_call=atomvm_tree.simulate)
        builder = FirmwareBuilder(executor, show_progress=False)

        outcome = builder.build(atomvm_tree.root, "esp32s3")

        root = atomvm_tree.root.resolve()
        mount = ["docker", "run", "--rm", "-v", f"{root}:/project", "-w", "/project/src/platforms/esp32"]
        image = ["espressif/idf:v5.5.2", "idf.py"]
        assert executor.commands[:3] == [
            mount + image + ["set-target", "esp32s3"],
            mount + image + ["reconfigure"],
            mount + image + ["build"],
        ]
        assert executor.commands[3][0] == "sh"
        assert outcome.success

    def test_image_path(self, tmp_path):
        assert image_path(tmp_path, "esp32c3") == tmp_path / "src" / "platforms" / "esp32" / "build" / "atomvm-esp32c3.img"
