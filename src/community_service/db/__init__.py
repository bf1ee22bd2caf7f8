"""Database configuration and utilities."""

from .session import Base, SessionLocal, atomic, get_db

__all__ = ["Base", "get_db", "SessionLocal", "atomic"]
