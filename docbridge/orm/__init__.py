"""Persistence facade: Manager and Repository.

``Manager`` maps documents to bulk index operations and hands the batch to a
connection; ``Repository`` reads and removes documents of the types it is
bound to.  Both raise domain exceptions (``ValueError``, ``LookupError``
subclasses) and let connection errors propagate unchanged.
"""

from docbridge.orm.manager import DocumentNotMappedError, Manager, UndefinedRepositoryError
from docbridge.orm.repository import Repository

__all__ = ["DocumentNotMappedError", "Manager", "Repository", "UndefinedRepositoryError"]
