"""
Core application utilities for settings, logging, security and FastAPI dependencies.

This package provides:
- Application-level settings (separate from DB settings)
- Logging configuration with request-scoped context
- Password hashing and session token helpers
- Dependency helpers (storage per request, current user, admin guard)
"""
