"""
The timestamp extraction and merge engine.

Modules:
    - model: Value types (Timestamp, SortKey, TaggedLine, Source)
    - timeparse: Heuristic multi-pattern timestamp extraction
    - tagger: Sort keys, display times and provenance tags
    - scanner: Per-source processing with rolling timestamp state
    - merger: Concurrent fan-out and the global sort

Architecture:
    1. One scanner per source runs in its own thread
    2. Each scanner tags every line with a total-order SortKey
    3. The merger concatenates all batches and sorts them once
"""
