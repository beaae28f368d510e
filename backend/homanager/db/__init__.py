"""Database package."""

from homanager.db.base import Base, BaseModel
from homanager.db.session import DBSession, get_db_session

__all__ = ["Base", "BaseModel", "DBSession", "get_db_session"]
