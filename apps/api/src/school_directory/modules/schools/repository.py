"""
School Repository

Database operations for school directory entries.

Design Principles:
- All queries are parameterized (no SQL injection); search terms are
  escaped so % and _ match literally
- Single responsibility - only database operations, no business logic
- No commits here; the request session commits on success
"""

import logging
from typing import Any

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import School

logger = logging.getLogger(__name__)

# Columns that may be changed through update()
UPDATABLE_FIELDS = frozenset({"name", "address", "city", "state", "contact", "email", "image"})


def _apply_filters(query: Select, search: str | None, city: str | None) -> Select:
    """Add search (name/address substring, case-insensitive) and exact city filters."""
    if search:
        query = query.where(
            or_(
                School.name.icontains(search, autoescape=True),
                School.address.icontains(search, autoescape=True),
            )
        )

    if city:
        query = query.where(School.city == city)

    return query


async def create(
    db: AsyncSession,
    *,
    name: str,
    address: str,
    city: str,
    state: str,
    contact: str,
    email: str,
    image: str,
    created_by: int | None,
) -> School:
    """Create a new school."""

    school = School(
        name=name,
        address=address,
        city=city,
        state=state,
        contact=contact,
        email=email,
        image=image,
        created_by=created_by,
    )

    db.add(school)
    await db.flush()
    await db.refresh(school)

    logger.info(f"Created school: {school.id} - {school.name} (owner: {created_by})")
    return school


async def get_by_id(db: AsyncSession, school_id: int) -> School | None:
    """Get school by ID."""
    return await db.get(School, school_id)


async def list_page(
    db: AsyncSession,
    *,
    search: str | None = None,
    city: str | None = None,
    offset: int = 0,
    limit: int = 10,
) -> list[School]:
    """
    Get one page of schools ordered by name.

    Args:
        db: Database session
        search: Substring matched against name or address (optional)
        city: Exact city filter (optional)
        offset: Number of records to skip
        limit: Maximum records to return

    Returns:
        List of schools
    """
    query = _apply_filters(select(School), search, city)
    query = query.order_by(School.name.asc(), School.id.asc()).offset(offset).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count(
    db: AsyncSession,
    *,
    search: str | None = None,
    city: str | None = None,
) -> int:
    """Count schools matching the same filters as list_page()."""
    query = _apply_filters(select(func.count()).select_from(School), search, city)
    result = await db.execute(query)
    return result.scalar() or 0


async def list_cities(db: AsyncSession) -> list[str]:
    """Distinct cities across all schools, sorted."""
    result = await db.execute(select(School.city).distinct().order_by(School.city.asc()))
    return [city for city in result.scalars().all() if city]


async def update(db: AsyncSession, school: School, **fields: Any) -> School:
    """
    Apply field changes to a school.

    Raises:
        ValueError: If a field is not updatable
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields not updatable: {sorted(unknown)}")

    for field, value in fields.items():
        setattr(school, field, value)

    await db.flush()
    await db.refresh(school)

    logger.info(f"Updated school: {school.id} ({', '.join(sorted(fields))})")
    return school


async def delete(db: AsyncSession, school: School) -> None:
    """Delete a school."""
    await db.delete(school)
    await db.flush()

    logger.info(f"Deleted school: {school.id}")
