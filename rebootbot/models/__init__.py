"""Pydantic domain models and SQLAlchemy ORM models."""
