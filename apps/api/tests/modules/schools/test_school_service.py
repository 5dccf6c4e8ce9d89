"""
Unit tests for the school service layer.
"""

from unittest.mock import AsyncMock, patch

import pytest

from school_directory.core.auth import SessionUser
from school_directory.core.errors import ValidationError
from school_directory.modules.schools.schemas import SchoolCreate, SchoolUpdate
from school_directory.modules.schools.service import (
    NotSchoolOwnerError,
    SchoolNotFoundError,
    _has_more,
    create_school,
    delete_school,
    get_school,
    list_schools,
    update_school,
)

SERVICE = "school_directory.modules.schools.service"


class TestPagination:
    @pytest.mark.parametrize(
        ("offset", "returned", "total", "expected"),
        [
            (0, 10, 25, True),
            (20, 5, 25, False),
            (0, 0, 0, False),
            (10, 10, 20, False),
            (10, 10, 21, True),
        ],
    )
    def test_has_more(self, offset, returned, total, expected):
        assert _has_more(offset, returned, total) is expected


class TestListSchools:
    @pytest.mark.asyncio
    async def test_first_page_with_more(self, mock_db, school_factory):
        schools = [school_factory(school_id=i, name=f"School {i:02d}") for i in range(1, 11)]

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_page = AsyncMock(return_value=schools)
            mock_repo.count = AsyncMock(return_value=25)
            mock_repo.list_cities = AsyncMock(return_value=["Bengaluru", "Mumbai"])

            result = await list_schools(mock_db, page=1, limit=10)

        assert len(result.schools) == 10
        assert result.cities == ["Bengaluru", "Mumbai"]
        assert result.pagination.total == 25
        assert result.pagination.has_more is True
        mock_repo.list_page.assert_awaited_once_with(
            mock_db, search=None, city=None, offset=0, limit=10
        )

    @pytest.mark.asyncio
    async def test_last_page(self, mock_db, school_factory):
        schools = [school_factory(school_id=i) for i in range(21, 26)]

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_page = AsyncMock(return_value=schools)
            mock_repo.count = AsyncMock(return_value=25)
            mock_repo.list_cities = AsyncMock(return_value=["Bengaluru"])

            result = await list_schools(mock_db, page=3, limit=10)

        assert result.pagination.page == 3
        assert result.pagination.has_more is False
        assert mock_repo.list_page.call_args.kwargs["offset"] == 20

    @pytest.mark.asyncio
    async def test_filters_are_trimmed_and_passed_through(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_page = AsyncMock(return_value=[])
            mock_repo.count = AsyncMock(return_value=0)
            mock_repo.list_cities = AsyncMock(return_value=[])

            result = await list_schools(mock_db, search="  green ", city=" Pune ")

        assert result.schools == []
        assert result.pagination.has_more is False
        mock_repo.count.assert_awaited_once_with(mock_db, search="green", city="Pune")
        assert mock_repo.list_page.call_args.kwargs["city"] == "Pune"

    @pytest.mark.asyncio
    async def test_blank_filters_are_ignored(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_page = AsyncMock(return_value=[])
            mock_repo.count = AsyncMock(return_value=0)
            mock_repo.list_cities = AsyncMock(return_value=[])

            await list_schools(mock_db, search="", city="")

        mock_repo.count.assert_awaited_once_with(mock_db, search=None, city=None)


class TestGetSchool:
    @pytest.mark.asyncio
    async def test_found(self, mock_db, owned_school):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)

            school = await get_school(mock_db, 5)

        assert school.id == 5
        assert school.name == "Greenwood High"
        assert school.created_by == 1

    @pytest.mark.asyncio
    async def test_not_found(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(SchoolNotFoundError) as exc_info:
                await get_school(mock_db, 404)

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "SCHOOL_NOT_FOUND"


class TestCreateSchool:
    @pytest.mark.asyncio
    async def test_caller_becomes_owner(self, mock_db, school_payload, session_user, school_factory):
        created = school_factory(school_id=42, created_by=session_user.id)

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.create = AsyncMock(return_value=created)

            school = await create_school(mock_db, SchoolCreate(**school_payload), session_user)

        assert school.id == 42
        kwargs = mock_repo.create.call_args.kwargs
        assert kwargs["created_by"] == session_user.id
        assert kwargs["contact"] == "9876543210"


class TestUpdateSchool:
    @pytest.mark.asyncio
    async def test_owner_can_update(self, mock_db, owned_school, session_user):
        async def apply(db, school, **fields):
            for key, value in fields.items():
                setattr(school, key, value)
            return school

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.update = AsyncMock(side_effect=apply)

            school = await update_school(
                mock_db, 5, SchoolUpdate(city="Mysuru"), session_user
            )

        assert school.city == "Mysuru"
        assert school.name == "Greenwood High"
        # Only provided fields are written
        assert mock_repo.update.call_args.kwargs == {"city": "Mysuru"}

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, mock_db, owned_school, other_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.update = AsyncMock()

            with pytest.raises(NotSchoolOwnerError) as exc_info:
                await update_school(mock_db, 5, SchoolUpdate(city="Mysuru"), other_user)

        assert exc_info.value.status_code == 403
        mock_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_ownerless_school_is_forbidden(self, mock_db, ownerless_school, session_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=ownerless_school)
            mock_repo.update = AsyncMock()

            with pytest.raises(NotSchoolOwnerError):
                await update_school(mock_db, 6, SchoolUpdate(name="New"), session_user)

        mock_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_school(self, mock_db, session_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(SchoolNotFoundError):
                await update_school(mock_db, 99, SchoolUpdate(name="New"), session_user)

    @pytest.mark.asyncio
    async def test_raw_payload_is_validated_after_owner_check(
        self, mock_db, owned_school, other_user
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.update = AsyncMock()

            with pytest.raises(NotSchoolOwnerError):
                await update_school(mock_db, 5, {"contact": "12"}, other_user)

        mock_repo.update.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("payload", "message"),
        [
            ({"contact": "12"}, "Contact must be exactly 10 digits"),
            ({}, "At least one field must be provided"),
        ],
    )
    async def test_owner_raw_payload_rejected(
        self, mock_db, owned_school, session_user, payload, message
    ):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.update = AsyncMock()

            with pytest.raises(ValidationError) as exc_info:
                await update_school(mock_db, 5, payload, session_user)

        assert exc_info.value.message == message
        assert exc_info.value.status_code == 400
        mock_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_raw_payload_applied(self, mock_db, owned_school, session_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.update = AsyncMock(return_value=owned_school)

            await update_school(mock_db, 5, {"city": " Mysuru "}, session_user)

        assert mock_repo.update.call_args.kwargs == {"city": "Mysuru"}


class TestDeleteSchool:
    @pytest.mark.asyncio
    async def test_owner_can_delete(self, mock_db, owned_school, session_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.delete = AsyncMock()

            await delete_school(mock_db, 5, session_user)

        mock_repo.delete.assert_awaited_once_with(mock_db, owned_school)

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, mock_db, owned_school):
        intruder = SessionUser(id=3, email="intruder@example.com", name="Intruder")

        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=owned_school)
            mock_repo.delete = AsyncMock()

            with pytest.raises(NotSchoolOwnerError):
                await delete_school(mock_db, 5, intruder)

        mock_repo.delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_school(self, mock_db, session_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)
            mock_repo.delete = AsyncMock()

            with pytest.raises(SchoolNotFoundError):
                await delete_school(mock_db, 99, session_user)

        mock_repo.delete.assert_not_called()
