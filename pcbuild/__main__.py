"""Entry point for running pcbuild.

This module provides the `python -m pcbuild` entry point.
"""

from .cli import main

if __name__ == "__main__":
    main()
