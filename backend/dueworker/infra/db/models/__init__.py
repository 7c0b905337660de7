"""ORM models for the delivery worker."""
from .due_item import DueItemRow

__all__ = ["DueItemRow"]
