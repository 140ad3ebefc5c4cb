"""
Setup script for tingxie.

Tingxie is a local, single-device vocabulary drilling engine. It serves
three roles:

1. Scheduler - SM-2 spaced repetition per word and per character
2. Session composer - Due-first, bounded practice sessions
3. Durable state - Debounced persistence with resumable sessions

The 'tingxie' command is the terminal front end.
"""

from setuptools import find_packages, setup

setup(
    name="tingxie",
    version="1.0.0",
    description="Spaced repetition scheduling and practice sessions for vocabulary drills",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Tingxie",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"tingxie": ["data/*.json"]},
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tingxie=tingxie.delivery.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition sm2 vocabulary chinese cli",
)
