"""Base exception hierarchy shared by every bounded context.

Use cases raise these; adapters (Celery tasks, FastAPI routers, CLI
scripts) translate them into transport-specific responses.
"""

from __future__ import annotations


class DomainError(Exception):
    """Base class for all domain-level failures."""
