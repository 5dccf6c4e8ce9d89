"""
Tests for the OTP repository.

The session is mocked; the statements handed to it are compiled for
PostgreSQL and inspected.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from school_directory.modules.auth import repository
from school_directory.modules.auth.models import OTPCode

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _executed_sql(mock_db) -> str:
    statement = mock_db.execute.call_args.args[0]
    return str(statement.compile(dialect=postgresql.dialect()))


def _executed_params(mock_db) -> dict:
    statement = mock_db.execute.call_args.args[0]
    return statement.compile(dialect=postgresql.dialect()).params


class TestCreateCode:
    @pytest.mark.asyncio
    async def test_adds_unused_code_and_flushes(self, mock_db):
        code = await repository.create_code(
            mock_db, email="ada@example.com", otp_code="123456", expires_at=NOW
        )

        assert isinstance(code, OTPCode)
        assert code.email == "ada@example.com"
        assert code.otp_code == "123456"
        assert code.expires_at == NOW
        assert code.used is False
        mock_db.add.assert_called_once_with(code)
        mock_db.flush.assert_awaited_once()
        mock_db.commit.assert_not_called()


class TestFindValidCode:
    @pytest.mark.asyncio
    async def test_returns_match(self, mock_db, sample_otp_code):
        result = MagicMock()
        result.scalar_one_or_none.return_value = sample_otp_code
        mock_db.execute.return_value = result

        found = await repository.find_valid_code(mock_db, "ada@example.com", "123456", NOW)

        assert found is sample_otp_code

    @pytest.mark.asyncio
    async def test_query_filters_unexpired_unused_newest_first(self, mock_db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        mock_db.execute.return_value = result

        found = await repository.find_valid_code(mock_db, "ada@example.com", "123456", NOW)

        assert found is None
        sql = _executed_sql(mock_db)
        assert "otp_codes.expires_at >" in sql
        assert "otp_codes.used IS false" in sql
        assert "ORDER BY otp_codes.created_at DESC, otp_codes.id DESC" in sql
        assert "LIMIT" in sql

        # Values are bound, never interpolated
        params = _executed_params(mock_db)
        assert "ada@example.com" in params.values()
        assert "123456" in params.values()
        assert "ada@example.com" not in sql


class TestMarkCodeUsed:
    @pytest.mark.asyncio
    async def test_consumes_unused_code(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=1)

        assert await repository.mark_code_used(mock_db, 99) is True

        sql = _executed_sql(mock_db)
        assert sql.startswith("UPDATE otp_codes SET used=")
        assert "otp_codes.used IS false" in sql

    @pytest.mark.asyncio
    async def test_already_used_code_is_not_consumed(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=0)

        assert await repository.mark_code_used(mock_db, 99) is False


class TestDeleteStaleCodes:
    @pytest.mark.asyncio
    async def test_deletes_expired_or_used_for_email(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=3)

        deleted = await repository.delete_stale_codes(mock_db, "ada@example.com", NOW)

        assert deleted == 3
        sql = _executed_sql(mock_db)
        assert sql.startswith("DELETE FROM otp_codes")
        assert "otp_codes.email =" in sql
        assert "otp_codes.expires_at <" in sql
        assert "otp_codes.used IS true" in sql

    @pytest.mark.asyncio
    async def test_purge_covers_every_email(self, mock_db):
        mock_db.execute.return_value = MagicMock(rowcount=None)

        deleted = await repository.purge_stale_codes(mock_db, NOW)

        assert deleted == 0
        sql = _executed_sql(mock_db)
        assert sql.startswith("DELETE FROM otp_codes")
        assert "otp_codes.email" not in sql

