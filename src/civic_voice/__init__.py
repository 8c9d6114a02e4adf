"""Civic Voice backend: accounts, posts, engagement and analytics."""

__version__ = "0.1.0"
