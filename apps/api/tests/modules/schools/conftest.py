"""
Fixtures for school directory tests.
"""

from datetime import UTC, datetime

import pytest

from school_directory.modules.schools.models import School

SCHOOL_FIELDS = {
    "name": "Greenwood High",
    "address": "12 Park Street",
    "city": "Bengaluru",
    "state": "Karnataka",
    "contact": "9876543210",
    "email": "office@greenwood.edu",
    "image": "/schoolImages/1700000000000-ab12cd34-greenwood.png",
}


def make_school(school_id: int = 1, created_by: int | None = 1, **overrides) -> School:
    """Build a transient School with timestamps set."""
    school = School(**{**SCHOOL_FIELDS, **overrides}, created_by=created_by)
    school.id = school_id
    school.created_at = datetime(2026, 1, 1, tzinfo=UTC)
    school.updated_at = datetime(2026, 1, 1, tzinfo=UTC)
    return school


@pytest.fixture
def school_payload() -> dict[str, str]:
    """Valid request body for creating a school."""
    return dict(SCHOOL_FIELDS)


@pytest.fixture
def owned_school() -> School:
    """School owned by the session_user fixture (id 1)."""
    return make_school(school_id=5, created_by=1)


@pytest.fixture
def ownerless_school() -> School:
    """Legacy school without an owner."""
    return make_school(school_id=6, created_by=None, name="Old Town School")


@pytest.fixture
def school_factory():
    return make_school
