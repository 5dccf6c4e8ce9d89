"""
Schools Router

API endpoints for the school directory.

Endpoints:
- GET /schools - Paginated list with search and city filter (public)
- GET /schools/{id} - School detail (public)
- POST /schools - Add a school (session required)
- PUT /schools/{id} - Update a school (owner only)
- DELETE /schools/{id} - Delete a school (owner only)
"""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from school_directory.core.auth import SessionUser, get_current_user
from school_directory.core.database import get_db
from school_directory.modules.schools import service
from school_directory.modules.schools.schemas import (
    SchoolCreate,
    SchoolCreatedResponse,
    SchoolDeletedResponse,
    SchoolDetailResponse,
    SchoolListResponse,
    SchoolUpdatedResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_OWNER_RESPONSES = {
    401: {"description": "Not authenticated"},
    403: {"description": "Authenticated user is not the school's owner"},
    404: {"description": "School not found"},
}


@router.get(
    "",
    response_model=SchoolListResponse,
    summary="List Schools",
    description="""
List schools ordered by name.

**Filters:**
- `search`: case-insensitive substring of the name or address
- `city`: exact city match

`cities` holds every distinct city for building a filter control.
`pagination.hasMore` is true while more rows exist after this page.
""",
)
async def list_schools(
    page: int = Query(1, ge=1, description="Page number (1-based)"),
    limit: int = Query(
        service.DEFAULT_PAGE_SIZE, ge=1, le=service.MAX_PAGE_SIZE, description="Page size"
    ),
    search: str | None = Query(None, max_length=255, description="Name or address substring"),
    city: str | None = Query(None, max_length=100, description="Exact city"),
    db: AsyncSession = Depends(get_db),
) -> SchoolListResponse:
    return await service.list_schools(db, page=page, limit=limit, search=search, city=city)


@router.get(
    "/{school_id}",
    response_model=SchoolDetailResponse,
    summary="Get School",
    responses={404: {"description": "School not found"}},
)
async def get_school(
    school_id: int,
    db: AsyncSession = Depends(get_db),
) -> SchoolDetailResponse:
    return SchoolDetailResponse(school=await service.get_school(db, school_id))


@router.post(
    "",
    response_model=SchoolCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add School",
    description="""
Add a school to the directory. The logged-in user becomes its owner.

**Validation:**
- All fields are required
- `contact` must be exactly 10 digits
- `email` must be a valid address
- `image` is the `filePath` returned by `POST /upload`
""",
    responses={
        400: {"description": "Missing or invalid fields"},
        401: {"description": "Not authenticated"},
    },
)
async def create_school(
    data: SchoolCreate,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SchoolCreatedResponse:
    school = await service.create_school(db, data, user)
    return SchoolCreatedResponse(message="School added successfully", id=school.id, school=school)


@router.put(
    "/{school_id}",
    response_model=SchoolUpdatedResponse,
    summary="Update School",
    description="""
Update some or all fields of a school you created.

Ownership is checked before the body is validated: a non-owner gets 403
whatever the body contains.
""",
    responses={400: {"description": "Invalid fields"}, **_OWNER_RESPONSES},
)
async def update_school(
    school_id: int,
    payload: dict[str, Any] = Body(..., examples=[{"city": "Mysuru"}]),
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SchoolUpdatedResponse:
    school = await service.update_school(db, school_id, payload, user)
    return SchoolUpdatedResponse(message="School updated successfully", school=school)


@router.delete(
    "/{school_id}",
    response_model=SchoolDeletedResponse,
    summary="Delete School",
    description="Delete a school you created.",
    responses=_OWNER_RESPONSES,
)
async def delete_school(
    school_id: int,
    user: SessionUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SchoolDeletedResponse:
    await service.delete_school(db, school_id, user)
    return SchoolDeletedResponse(message="School deleted successfully", id=school_id)
