"""
Repository layer for data access.

Provides data access abstractions following the Repository pattern,
isolating store access from business logic.
"""
