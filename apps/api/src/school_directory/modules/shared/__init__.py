"""
Shared module - Common model base classes.
"""

from school_directory.modules.shared.models import BaseModel, TimestampMixin

__all__ = ["BaseModel", "TimestampMixin"]
