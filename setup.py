"""
Setup script for stickydisk
"""

from setuptools import setup, find_packages
import pathlib

# Read the README file
HERE = pathlib.Path(__file__).parent
README = (HERE / "README.md").read_text(encoding="utf-8")

# Basic setup configuration
setup(
    name="stickydisk",
    version="1.0.0",
    description="Mount, commit and delete persistent sticky disk caches in CI jobs",
    long_description=README,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["stickydisk", "stickydisk.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.11.5",
        "pydantic-settings>=2.12.0",
        "structlog>=24.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "stickydisk=stickydisk.interfaces.cli.main:entry_point",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
    ],
    keywords="ci cache block-device github-actions",
)
