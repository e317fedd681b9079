"""
SQLAlchemy Base Configuration

Declarative base for the SQL storage adapter's tables, with a constraint
naming convention so generated names are stable across databases.
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)

Base = declarative_base(metadata=metadata)
