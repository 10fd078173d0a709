"""
logcombine - Merge many log files into one time-ordered stream.

Log files from a CI run or a cluster come from many components, each with
its own undeclared timestamp format. logcombine extracts a comparable time
from every line, orders all lines from all files globally and prints them
with the time and the source file prepended.

Package Structure:
    - cli.py: Command-line interface and entry point
    - core/: Timestamp extraction, line tagging and the concurrent merge
    - utils/: Source discovery, configuration and run logging
    - errors.py: Error types reported by the CLI

Usage:
    Run as a module: python -m logcombine <path-or-url>

Example:
    python -m logcombine ./artifacts > combined.log
    python -m logcombine https://gcsweb.k8s.io/gcs/kubernetes-jenkins/logs/ci-e2e/1234/
"""

__version__ = "0.1.0"
