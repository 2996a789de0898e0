"""
Commit pipeline: classifies operations and applies them batch by batch.
"""

from .committer import GraphCommitter
from .executor import BatchExecutor, BatchResult

__all__ = ["GraphCommitter", "BatchExecutor", "BatchResult"]
