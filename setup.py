"""
ash - alias-based interactive SSH shells.
"""

from setuptools import setup, find_packages
from pathlib import Path

readme = Path(__file__).parent / "README.md"
long_description = readme.read_text() if readme.exists() else ""

setup(
    name="ash-ssh",
    version="0.1.0",
    description="Interactive SSH shells by alias, with raw-mode terminal and resize tracking",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["ash", "ash.*"]),
    python_requires=">=3.10",
    install_requires=[
        "paramiko>=3.2.0",
        "PyYAML>=6.0",
        "click>=8.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "cryptography>=41.0.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "ash=ash.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Networking",
        "Topic :: Terminals",
    ],
    keywords="ssh terminal paramiko pty alias",
)
