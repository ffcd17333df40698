"""
Tests for registration and login.
"""

import pytest

from api.errors import Conflict, InvalidCredentials, ValidationFailed
from api.models import LoginRequest, RegisterRequest
from api.users import UserService
from storage.models import EntityKind


@pytest.fixture
def service(memory_store, credential_service):
    return UserService(memory_store, credential_service)


class TestRegister:
    """Test cases for UserService.register."""

    @pytest.mark.asyncio
    async def test_register_stores_digest(self, service, memory_store, credential_service):
        result = await service.register(RegisterRequest(email="ann@example.com", password="secret123", name="Ann"))

        assert result.message == "User registered successfully"
        assert result.user.name == "Ann"
        stored = await memory_store.load(EntityKind.USERS)
        assert len(stored) == 1
        assert stored[0]["password"] != "secret123"
        assert await credential_service.verify_password("secret123", stored[0]["password"])
        assert credential_service.decode_access_token(result.token).user_id == result.user.id

    @pytest.mark.asyncio
    async def test_name_defaults_to_local_part(self, service):
        result = await service.register(RegisterRequest(email="jo.smith@example.com", password="secret123"))

        assert result.user.name == "jo.smith"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload, message", [
        (None, "Email and password are required"),
        (RegisterRequest(email="a@example.com"), "Email and password are required"),
        (RegisterRequest(email="a@example.com", password="12345"), "Password must be at least 6 characters long"),
        (RegisterRequest(email="not-an-email", password="secret123"), "Please provide a valid email address"),
        (RegisterRequest(email="a b@example.com", password="secret123"), "Please provide a valid email address"),
    ])
    async def test_invalid_input(self, service, payload, message):
        with pytest.raises(ValidationFailed) as exc_info:
            await service.register(payload)
        assert exc_info.value.message == message

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service):
        await service.register(RegisterRequest(email="ann@example.com", password="secret123"))

        with pytest.raises(Conflict) as exc_info:
            await service.register(RegisterRequest(email="ann@example.com", password="other123"))

        assert exc_info.value.message == "User with this email already exists"


class TestLogin:
    """Test cases for UserService.login."""

    @pytest.mark.asyncio
    async def test_login(self, service):
        registered = await service.register(RegisterRequest(email="ann@example.com", password="secret123"))

        result = await service.login(LoginRequest(email="ann@example.com", password="secret123"))

        assert result.message == "Login successful"
        assert result.user.id == registered.user.id

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_alike(self, service):
        await service.register(RegisterRequest(email="ann@example.com", password="secret123"))

        with pytest.raises(InvalidCredentials) as wrong_password:
            await service.login(LoginRequest(email="ann@example.com", password="wrong123"))
        with pytest.raises(InvalidCredentials) as unknown_email:
            await service.login(LoginRequest(email="bob@example.com", password="secret123"))

        assert wrong_password.value.message == unknown_email.value.message == "Invalid email or password"

    @pytest.mark.asyncio
    async def test_missing_fields(self, service):
        with pytest.raises(ValidationFailed):
            await service.login(LoginRequest(email="ann@example.com"))
