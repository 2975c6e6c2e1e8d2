"""
Setup configuration for the DLx database access layer
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="dlxdb",
    version="1.0.0",
    author="Digital Linguistics",
    description="Data-access layer for partitioned linguistic document stores",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["dlxdb", "dlxdb.*"]),
    package_data={
        "dlxdb": ["schemas/*.json", "schemas/database/*.json"],
    },
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "motor>=3.3.0",
        "pymongo>=4.5.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "jsonschema>=4.18.0",
        "referencing>=0.30.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    keywords="database cosmos mongodb linguistics batch partition",
)
