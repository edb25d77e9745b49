"""Core media acquisition logic for mediagrab.

This package contains the pipeline and its engines with no HTTP or CLI
dependencies. Each module can be tested independently and used by different
interfaces (web API, CLI).

Architecture principles:
- No imports from server/ or cli
- Engines report progress as async iterators
- The job store is injected, never global
"""

__all__ = [
    "codec",
    "formats",
    "jobs",
    "metadata",
    "pipeline",
    "source",
]
