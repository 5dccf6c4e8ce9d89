"""
Fixtures for authentication tests.
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from school_directory.core.security import hash_password
from school_directory.modules.auth.models import OTPCode
from school_directory.modules.auth.schemas import (
    LoginRequest,
    RegisterRequest,
    SendOTPRequest,
    VerifyOTPRequest,
)
from school_directory.modules.users.models import User

VALID_PASSWORD = "Passw0rd!"


@pytest.fixture
def register_request():
    return RegisterRequest(name="Ada Lovelace", email="ada@example.com", password=VALID_PASSWORD)


@pytest.fixture
def send_otp_request():
    return SendOTPRequest(email="ada@example.com", name="Ada Lovelace")


@pytest.fixture
def verify_otp_request():
    return VerifyOTPRequest(email="ada@example.com", otp="123456")


@pytest.fixture
def login_request():
    return LoginRequest(email="ada@example.com", password=VALID_PASSWORD)


@pytest.fixture
def sample_user():
    """A verified user whose password is VALID_PASSWORD."""
    user = MagicMock(spec=User)
    user.id = 10
    user.name = "Ada Lovelace"
    user.email = "ada@example.com"
    user.password_hash = hash_password(VALID_PASSWORD)
    user.email_verified = True
    return user


@pytest.fixture
def unverified_user(sample_user):
    sample_user.email_verified = False
    return sample_user


@pytest.fixture
def sample_otp_code():
    """An unused code expiring in 5 minutes."""
    code = MagicMock(spec=OTPCode)
    code.id = 99
    code.email = "ada@example.com"
    code.otp_code = "123456"
    code.used = False
    code.expires_at = datetime.now(UTC) + timedelta(minutes=5)
    code.created_at = datetime.now(UTC) - timedelta(minutes=5)
    return code
