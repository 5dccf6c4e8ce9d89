"""
Users module - Credential store.
"""

from school_directory.modules.users.models import User
from school_directory.modules.users.repository import UserRepository

__all__ = ["User", "UserRepository"]
