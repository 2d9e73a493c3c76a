"""Declarative base and session factory for the SQL record store."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


class Base(DeclarativeBase):
    pass


def make_session_factory(database_url: str, echo: bool = False) -> sessionmaker:
    """Create a sessionmaker bound to a new engine for database_url."""
    engine = create_engine(database_url, echo=echo)
    return sessionmaker(bind=engine, expire_on_commit=False)
