"""
Schools module - School directory records.
"""

from school_directory.modules.schools.models import School
from school_directory.modules.schools.router import router

__all__ = ["School", "router"]
