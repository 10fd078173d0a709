"""
Entry point for running logcombine as a Python module.

This module enables the package to be executed directly via:
    python -m logcombine <path-or-url>
"""

from .cli import main

if __name__ == "__main__":
    main()
