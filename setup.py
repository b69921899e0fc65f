"""Setup configuration for the textreplace package."""

import os
from setuptools import setup, find_packages

# Read the README for PyPI
readme_file = os.path.join(os.path.dirname(__file__), "README.md")
if os.path.exists(readme_file):
    with open(readme_file, "r", encoding="utf-8") as fh:
        long_description = fh.read()
else:
    long_description = ""

# Read version from package
version_file = os.path.join(os.path.dirname(__file__), "textreplace", "__init__.py")
with open(version_file) as f:
    for line in f:
        if line.startswith("__version__"):
            version = line.split("=")[1].strip().strip('"').strip("'")
            break
    else:
        version = "0.1.0"

setup(
    name="textreplace",
    version=version,
    description="Longest-match-first literal string replacement in files and streams",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: System Administrators",
        "Topic :: Text Processing :: Filters",
        "Topic :: Utilities",
        "License :: OSI Approved :: GNU General Public License v2 (GPLv2)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "click>=8.2",
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "coverage>=6.0",
        ],
        "dev": [
            "pytest>=7.0",
            "coverage>=6.0",
            "ruff>=0.1",
            "mypy>=1.0",
            "black>=23.0",
            "isort>=5.0",
            "build>=0.10",
            "twine>=4.0",
            "types-PyYAML",
        ],
    },
    entry_points={
        "console_scripts": [
            "replace=textreplace.cli:main",
            "textreplace=textreplace.cli:main",  # Alternative name
        ],
    },
    keywords=[
        "replace",
        "search-and-replace",
        "text-processing",
        "cli",
        "in-place",
    ],
)
