"""
Utility modules for logcombine.

This subpackage contains the collaborators around the merge engine:

Modules:
    - sources: Source discovery for local directory trees
    - bucket: Source discovery and streaming for object-store buckets
    - settings: Environment and .env configuration
    - runlog: Append-only run logging
"""
