"""Configuration modules for avmbuild."""

from .build_config import Backend, BuildConfig
from .chips import ChipSpec, get_chip_spec, is_known_chip, known_chip_ids

__all__ = [
    "Backend",
    "BuildConfig",
    "ChipSpec",
    "get_chip_spec",
    "is_known_chip",
    "known_chip_ids",
]
