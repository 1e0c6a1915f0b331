"""
Chip catalog for ESP32-family targets.

This module centralizes the chip identifiers that AtomVM's ESP32 platform
is known to build for, so the CLI can warn about typos without refusing
chips that newer ESP-IDF releases add.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class ChipSpec:
    """Description of a supported ESP32-family chip."""

    chip_id: str
    architecture: str  # "xtensa" or "riscv"
    description: str = ""


ESP32_CHIPS = {
    "esp32": ChipSpec("esp32", "xtensa", "Original dual-core ESP32"),
    "esp32s2": ChipSpec("esp32s2", "xtensa", "Single-core with native USB"),
    "esp32s3": ChipSpec("esp32s3", "xtensa", "Dual-core with vector extensions"),
    "esp32c2": ChipSpec("esp32c2", "riscv", "Low-cost RISC-V"),
    "esp32c3": ChipSpec("esp32c3", "riscv", "Single-core RISC-V"),
    "esp32c5": ChipSpec("esp32c5", "riscv", "Dual-band Wi-Fi 6 RISC-V"),
    "esp32c6": ChipSpec("esp32c6", "riscv", "Wi-Fi 6 and 802.15.4 RISC-V"),
    "esp32h2": ChipSpec("esp32h2", "riscv", "802.15.4 and BLE RISC-V"),
    "esp32p4": ChipSpec("esp32p4", "riscv", "High-performance RISC-V"),
}


def get_chip_spec(chip_id: str) -> Optional[ChipSpec]:
    """
    Get chip specifications by ID.

    Args:
        chip_id: Chip identifier (e.g., 'esp32s3')

    Returns:
        ChipSpec if known, None otherwise
    """
    return ESP32_CHIPS.get(chip_id.lower())


def is_known_chip(chip_id: str) -> bool:
    """Return True if chip_id is in the catalog."""
    return get_chip_spec(chip_id) is not None


def known_chip_ids() -> List[str]:
    """Return catalog chip identifiers in declaration order."""
    return list(ESP32_CHIPS)
