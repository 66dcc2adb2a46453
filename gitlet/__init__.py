"""
gitlet - a minimal version-control engine.

Records immutable snapshots of a file tree as commits, links them into a
directed acyclic graph through parent ids, keeps named branch pointers into
that graph and reconciles diverging histories with a three-way merge.
"""

__version__ = "0.1.0"

# Configuration is available at top level for convenience
from gitlet.config import config

__all__ = ["config", "__version__"]
