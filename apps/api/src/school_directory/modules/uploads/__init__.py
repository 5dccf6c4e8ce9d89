"""Uploads module - School image storage."""

from school_directory.modules.uploads.router import router

__all__ = ["router"]
