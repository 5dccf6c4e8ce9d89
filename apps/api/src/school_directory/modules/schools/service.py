"""
School Service Layer

Business logic for the school directory.

- Listing and viewing are public
- Creating requires a session; the caller becomes the owner
- Updating and deleting require the caller to be the owner. Records without
  an owner cannot be changed through the API
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.auth import SessionUser
from school_directory.core.errors import ForbiddenError, NotFoundError, ValidationError
from school_directory.modules.schools import repository
from school_directory.modules.schools.models import School
from school_directory.modules.schools.schemas import (
    Pagination,
    SchoolCreate,
    SchoolListResponse,
    SchoolResponse,
    SchoolUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class SchoolNotFoundError(NotFoundError):
    """Raised when a school is not found."""

    def __init__(self, school_id: int):
        super().__init__(
            message=f"School {school_id} not found",
            error_code="SCHOOL_NOT_FOUND",
        )


class NotSchoolOwnerError(ForbiddenError):
    """Raised when a user tries to change a school they did not create."""

    def __init__(self):
        super().__init__("You can only modify schools that you created")


def _calculate_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def _has_more(offset: int, returned: int, total: int) -> bool:
    return offset + returned < total


async def list_schools(
    db: AsyncSession,
    *,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    search: str | None = None,
    city: str | None = None,
) -> SchoolListResponse:
    """
    Get one page of schools with the city filter options.

    The total is counted in a separate query, so it may drift from the page
    under concurrent writes.

    Args:
        db: Database session
        page: 1-based page number
        limit: Page size (1-100)
        search: Substring matched against name or address
        city: Exact city filter

    Returns:
        SchoolListResponse with schools, cities, and pagination
    """
    search = search.strip() if search else None
    city = city.strip() if city else None
    offset = _calculate_offset(page, limit)

    schools = await repository.list_page(
        db,
        search=search,
        city=city,
        offset=offset,
        limit=limit,
    )
    total = await repository.count(db, search=search, city=city)
    cities = await repository.list_cities(db)

    return SchoolListResponse(
        schools=[SchoolResponse.model_validate(school) for school in schools],
        cities=cities,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            has_more=_has_more(offset, len(schools), total),
        ),
    )


async def _get_or_404(db: AsyncSession, school_id: int) -> School:
    school = await repository.get_by_id(db, school_id)
    if school is None:
        raise SchoolNotFoundError(school_id)
    return school


async def get_school(db: AsyncSession, school_id: int) -> SchoolResponse:
    """
    Get a school by ID.

    Raises:
        SchoolNotFoundError: If the school does not exist
    """
    school = await _get_or_404(db, school_id)
    return SchoolResponse.model_validate(school)


async def create_school(
    db: AsyncSession,
    data: SchoolCreate,
    user: SessionUser,
) -> SchoolResponse:
    """Create a school owned by the session user."""
    school = await repository.create(
        db,
        name=data.name,
        address=data.address,
        city=data.city,
        state=data.state,
        contact=data.contact,
        email=data.email,
        image=data.image,
        created_by=user.id,
    )
    return SchoolResponse.model_validate(school)


def _ensure_owner(school: School, user: SessionUser, action: str) -> None:
    if not school.is_owned_by(user.id):
        logger.warning(
            f"User {user.id} denied {action} on school {school.id} (owner: {school.created_by})"
        )
        raise NotSchoolOwnerError()


def _parse_update(data: SchoolUpdate | dict[str, Any]) -> SchoolUpdate:
    if isinstance(data, SchoolUpdate):
        return data
    try:
        return SchoolUpdate.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        fields = [
            {
                "field": ".".join(str(part) for part in error.get("loc", ())),
                "message": str(error.get("msg", "")).removeprefix("Value error, "),
            }
            for error in errors
        ]
        raise ValidationError(fields[0]["message"], extra={"fields": fields}) from e


async def update_school(
    db: AsyncSession,
    school_id: int,
    data: SchoolUpdate | dict[str, Any],
    user: SessionUser,
) -> SchoolResponse:
    """
    Update a school owned by the session user.

    A raw payload is validated only after ownership is confirmed, so a
    non-owner always gets 403 regardless of what was sent.

    Raises:
        SchoolNotFoundError: If the school does not exist
        NotSchoolOwnerError: If the user is not the owner
        ValidationError: If the payload is empty or has invalid fields
    """
    school = await _get_or_404(db, school_id)
    _ensure_owner(school, user, "update")
    data = _parse_update(data)

    school = await repository.update(db, school, **data.model_dump(exclude_none=True))
    return SchoolResponse.model_validate(school)


async def delete_school(
    db: AsyncSession,
    school_id: int,
    user: SessionUser,
) -> None:
    """
    Delete a school owned by the session user.

    Raises:
        SchoolNotFoundError: If the school does not exist
        NotSchoolOwnerError: If the user is not the owner
    """
    school = await _get_or_404(db, school_id)
    _ensure_owner(school, user, "delete")

    await repository.delete(db, school)
