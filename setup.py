# pylint: disable=missing-module-docstring
from pathlib import Path

from setuptools import setup, find_packages

with open("requirements.in", encoding="utf-8") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="serialtok",
    version="0.1.0",
    description="serialtok reads a byte stream from a serial port in a background thread and "
    "splits it into delimiter terminated tokens.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="serialtok Team",
    license="LGPL-2.1 license",
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=["setuptools"] + requirements,
    extras_require={"dev": ["pytest"]},
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "serialtok = serialtok.run_serialtok:cli",
        ]
    },
)
