"""
SQLAlchemy ORM models for database tables.

This module contains database table definitions using SQLAlchemy.
For Pydantic request/response schemas, see schemas.py.
"""

from sqlalchemy import Column, Integer, Text, text
from sqlalchemy.types import UserDefinedType

from contact_api.storage import Base


class StoreTimestamp(UserDefinedType):
    """
    DATETIME column whose values are passed through as the raw text the
    store holds. Decoding is left to utils.parse_created_at.
    """
    cache_ok = True

    def get_col_spec(self, **kw):
        return "DATETIME"


class Contact(Base):
    """
    SQLAlchemy model for stored contact-form submissions.

    Table: contacts
    Primary Key: id (AUTOINCREMENT, so ids are never reused)
    """
    __tablename__ = "contacts"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(StoreTimestamp(), server_default=text("CURRENT_TIMESTAMP"))
