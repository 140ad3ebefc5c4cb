"""
Entry point for running Tingxie as a module.

Usage:
    python -m tingxie.delivery study
    python -m tingxie.delivery stats
    python -m tingxie.delivery --help
"""
from .cli import main

if __name__ == "__main__":
    main()
