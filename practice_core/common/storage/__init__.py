"""
Key-Value Storage Package

The storage capability consumed by the migration manager, plus adapters for
process memory, a directory of files, and any SQLAlchemy-supported database.
"""

from practice_core.common.storage.base import KeyValueStorage
from practice_core.common.storage.memory import InMemoryStorage
from practice_core.common.storage.file import FileStorage
from practice_core.common.storage.sql import SQLStorage

__all__ = [
    'KeyValueStorage',
    'InMemoryStorage',
    'FileStorage',
    'SQLStorage',
]
