"""
Build configuration for avmbuild.

A BuildConfig is constructed once at the entry point and handed to every
pipeline component. It is frozen: components read it, never mutate it.

Source selection:
    - atomvm_path set: the local checkout is used as-is (always wins)
    - otherwise: atomvm_url + ref are synchronized into the cache

Environment fallbacks:
    - MBEDTLS_PREFIX: custom MbedTLS install for the host build
    - AVMBUILD_CACHE_DIR: root directory for synchronized source trees
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CHIP = "esp32"
DEFAULT_REF = "main"
DEFAULT_ATOMVM_URL = "https://github.com/atomvm/AtomVM"
DEFAULT_IDF_PATH = "idf.py"
DEFAULT_IDF_VERSION = "v5.5.2"
DEFAULT_OUTPUT_DIR_NAME = "avm_deps"

IDF_DOCKER_REPOSITORY = "espressif/idf"

MBEDTLS_PREFIX_ENV = "MBEDTLS_PREFIX"
CACHE_DIR_ENV = "AVMBUILD_CACHE_DIR"


class Backend(Enum):
    """Execution environment for toolchain commands."""

    LOCAL = "local"
    DOCKER = "docker"

    @classmethod
    def from_flag(cls, use_docker: bool) -> "Backend":
        """Map the --use-docker flag to a backend."""
        return cls.DOCKER if use_docker else cls.LOCAL


@dataclass(frozen=True)
class BuildConfig:
    """Immutable description of one firmware build.

    Attributes:
        chip: Target chip identifier passed to `idf.py set-target`
        atomvm_path: Local AtomVM checkout (overrides atomvm_url)
        atomvm_url: Git URL synchronized into the cache when no local path
        ref: Branch, tag or commit to check out from atomvm_url
        idf_path: Toolchain entry point for the local backend
        backend: Local toolchain or Docker image
        idf_version: ESP-IDF version tag of the Docker image
        clean: Remove build directories before building
        mbedtls_prefix: Custom MbedTLS installation for the host build
        cache_dir: Root for synchronized source trees (None = default)
        output_dir: Directory receiving collected .avm libraries (None = ./avm_deps)
    """

    chip: str = DEFAULT_CHIP
    atomvm_path: Optional[Path] = None
    atomvm_url: str = DEFAULT_ATOMVM_URL
    ref: str = DEFAULT_REF
    idf_path: str = DEFAULT_IDF_PATH
    backend: Backend = Backend.LOCAL
    idf_version: str = DEFAULT_IDF_VERSION
    clean: bool = False
    mbedtls_prefix: Optional[str] = None
    cache_dir: Optional[Path] = None
    output_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if not self.chip:
            raise ValueError("A target chip must be specified")
        if self.atomvm_path is None and not self.atomvm_url:
            raise ValueError("Either an AtomVM path or an AtomVM URL is required")
        if self.atomvm_path is None and not self.ref:
            raise ValueError("A git reference is required when building from a URL")

    @property
    def uses_local_source(self) -> bool:
        """True when the local checkout is used instead of the URL."""
        return self.atomvm_path is not None

    @property
    def use_docker(self) -> bool:
        return self.backend is Backend.DOCKER

    @property
    def docker_image(self) -> str:
        """ESP-IDF Docker image tag, e.g. espressif/idf:v5.5.2."""
        return f"{IDF_DOCKER_REPOSITORY}:{self.idf_version}"

    def resolved_output_dir(self) -> Path:
        """Directory receiving collected .avm libraries."""
        if self.output_dir is not None:
            return Path(self.output_dir)
        return Path.cwd() / DEFAULT_OUTPUT_DIR_NAME

    @classmethod
    def from_options(
        cls,
        chip: Optional[str] = None,
        atomvm_path: Optional[str] = None,
        atomvm_url: Optional[str] = None,
        ref: Optional[str] = None,
        idf_path: Optional[str] = None,
        use_docker: bool = False,
        idf_version: Optional[str] = None,
        clean: bool = False,
        mbedtls_prefix: Optional[str] = None,
        cache_dir: Optional[str] = None,
        output_dir: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BuildConfig":
        """Build a configuration from raw options, applying defaults.

        Unset options fall back to the module defaults, and the MbedTLS prefix
        and cache directory fall back to their environment variables.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Frozen BuildConfig
        """
        env = os.environ if environ is None else environ

        prefix = mbedtls_prefix or env.get(MBEDTLS_PREFIX_ENV) or None
        cache = cache_dir or env.get(CACHE_DIR_ENV) or None

        return cls(
            chip=chip or DEFAULT_CHIP,
            atomvm_path=Path(atomvm_path) if atomvm_path else None,
            atomvm_url=atomvm_url or DEFAULT_ATOMVM_URL,
            ref=ref or DEFAULT_REF,
            idf_path=idf_path or DEFAULT_IDF_PATH,
            backend=Backend.from_flag(use_docker),
            idf_version=idf_version or DEFAULT_IDF_VERSION,
            clean=clean,
            mbedtls_prefix=prefix,
            cache_dir=Path(cache) if cache else None,
            output_dir=Path(output_dir) if output_dir else None,
        )
