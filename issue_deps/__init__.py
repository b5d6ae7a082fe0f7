"""Issue dependency graph: blocking, relations, duplicates and critical paths."""

from issue_deps.engine import DependencyEngine

__version__ = "0.1.0"

__all__ = ["DependencyEngine", "__version__"]
