"""
Repository layer for data access.

Each domain has a storage-neutral interface (repositories.interfaces) with a SQL
adapter built on SQLAlchemy and a memory adapter for running without a database.
repositories.storage bundles them per request and picks the backend at startup.
"""
