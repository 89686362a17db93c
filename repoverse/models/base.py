"""
Base model class for SQLAlchemy ORM.

Re-exports the Base class from the database module for convenience.
"""

from repoverse.db import Base

__all__ = ["Base"]
