"""Persistence layer for Skirmish: protocols plus in-memory and SQLAlchemy backings."""
