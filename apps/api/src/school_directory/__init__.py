"""School Directory API."""
