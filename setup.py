#!/usr/bin/env python3
"""Setup script for the OmniSharp LSP client package."""

import sys

from setuptools import find_packages, setup

# Read version from the package
with open("omnilsp/__init__.py") as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break
    else:
        version = "0.0.0"

# Read long description from README
with open("README.md") as f:
    long_description = f.read()

# Display note about the server itself
print("""
NOTE: The OmniSharp server is not installed via pip. It is downloaded from
the OmniSharp release page on first use (or with `omnilsp install`).
Non-Windows hosts without a dedicated build need Mono to run it.
""", file=sys.stderr)

setup(
    name="omnilsp",
    version=version,
    description="OmniSharp language server client with version-aware server provisioning",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pygls>=1.1.0",
        "pydantic>=2.0.0",
        "click>=8.1.0",
        "requests>=2.28.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "omnilsp=omnilsp.cli:main",
            "omnilsp-serve=omnilsp.service:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
)
