"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/atomvm/avmbuild"
KEYWORDS = "atomvm esp32 esp-idf elixir erlang firmware build docker microcontroller"
HERE = os.path.dirname(os.path.abspath(__file__))
VERSION = "0.1.0"


if __name__ == "__main__":
    setup(
        name="avmbuild",
        version=VERSION,
        description="Build AtomVM firmware images for ESP32 chips from source",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.10",
        package_dir={"": "src"},
        packages=find_packages("src"),
        install_requires=["psutil"],
        extras_require={"test": ["pytest"]},
        entry_points={"console_scripts": ["avmbuild=avmbuild.cli:main"]},
        include_package_data=True)
