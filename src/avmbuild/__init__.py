"""avmbuild - build AtomVM firmware images for ESP32 chips from source."""

__version__ = "0.1.0"
