"""
Database Module

This module provides the SQLAlchemy base and the tables used by the SQL
storage adapter.
"""

from practice_core.database.base import Base, metadata
from practice_core.database.models import KeyValueEntry

__all__ = ['Base', 'metadata', 'KeyValueEntry']
