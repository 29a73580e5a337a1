"""Connection implementations for search-engine I/O."""

from docbridge.connection.base import BULK_OPERATIONS, BulkCommitError, Connection
from docbridge.connection.memory import MemoryConnection

__all__ = ["BULK_OPERATIONS", "BulkCommitError", "Connection", "MemoryConnection"]
