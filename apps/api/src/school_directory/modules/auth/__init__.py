"""Authentication module."""

from school_directory.modules.auth.models import OTPCode
from school_directory.modules.auth.router import router

__all__ = ["router", "OTPCode"]
