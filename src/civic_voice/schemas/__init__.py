"""Pydantic schemas for the Civic Voice API."""

from .common import CamelModel, Envelope, Pagination

__all__ = ["CamelModel", "Envelope", "Pagination"]
