"""Unit tests for staff accounts, admin bootstrap and login sessions."""

import pytest
import pytest_asyncio
from fastapi import HTTPException
from werkzeug.security import check_password_hash, generate_password_hash

from coinbook.auth.jwt import decode_token
from coinbook.config import settings
from coinbook.dal.users_dal import LoginSessionDAL, UserDAL
from coinbook.errors import ConflictError, NotFoundError, ValidationError
from coinbook.models.user import User
from coinbook.services.user_service import UserService


@pytest_asyncio.fixture
async def user_dal(test_db) -> UserDAL:
    return UserDAL(test_db)


@pytest_asyncio.fixture
async def service(test_db, user_dal) -> UserService:
    return UserService(user_dal, LoginSessionDAL(test_db))


class TestSignup:

    @pytest.mark.asyncio
    async def test_creates_regular_user(self, service: UserService):
        user = await service.signup("alice", " Alice@Example.com ", "secret1")
        assert user.id
        assert user.email == "alice@example.com"
        assert user.role == "user"
        assert user.password_hash != "secret1"
        assert check_password_hash(user.password_hash, "secret1")

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service: UserService):
        await service.signup("alice", "a@x.io", "secret1")
        with pytest.raises(ConflictError) as exc_info:
            await service.signup("alice2", "A@X.io", "secret2")
        assert exc_info.value.code == "DuplicateEmail"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args, code",
        [
            (("", "a@x.io", "secret1"), "MissingUsername"),
            (("alice", "not-an-email", "secret1"), "InvalidEmail"),
            (("alice", "a@x.io", "12345"), "InvalidPassword"),
            (("alice", "a@x.io", None), "InvalidPassword"),
        ],
    )
    async def test_rejected(self, service: UserService, args, code):
        with pytest.raises(ValidationError) as exc_info:
            await service.signup(*args)
        assert exc_info.value.code == code


class TestLoginLogout:

    @pytest.mark.asyncio
    async def test_login_issues_token_and_session(self, service: UserService):
        created = await service.signup("alice", "a@x.io", "secret1")
        result = await service.login("A@x.io", "secret1")

        assert result["token_type"] == "bearer"
        assert result["session_id"]
        payload = decode_token(result["access_token"])
        assert payload["sub"] == created.id
        assert payload["username"] == "alice"
        assert payload["role"] == "user"
        assert result["user"].last_sign_in_at is not None

        sessions = await service.list_sessions("alice")
        assert len(sessions) == 1
        assert sessions[0].sign_out_at is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("email, password", [("a@x.io", "wrong!!"), ("b@x.io", "secret1")])
    async def test_bad_credentials_are_indistinguishable(self, service: UserService, email, password):
        await service.signup("alice", "a@x.io", "secret1")
        with pytest.raises(HTTPException) as exc_info:
            await service.login(email, password)
        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_logout_closes_latest_session(self, service: UserService):
        created = await service.signup("alice", "a@x.io", "secret1")
        await service.login("a@x.io", "secret1")
        user = await service.logout(created.id)
        assert user.last_sign_out_at is not None

        sessions = await service.list_sessions("alice")
        assert sessions[0].sign_out_at is not None
        assert sessions[0].duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_end_session_idempotent(self, service: UserService):
        created = await service.signup("alice", "a@x.io", "secret1")
        session = await service.start_session(created)
        first = await service.end_session(session.id)
        second = await service.end_session(session.id)
        assert first.sign_out_at == second.sign_out_at

    @pytest.mark.asyncio
    async def test_end_unknown_session(self, service: UserService):
        with pytest.raises(NotFoundError) as exc_info:
            await service.end_session("65a1b2c3d4e5f6a7b8c9d0e1")
        assert exc_info.value.code == "SessionNotFound"


class TestEnsureAdmin:

    @pytest.mark.asyncio
    async def test_creates_then_is_stable(self, service: UserService, user_dal: UserDAL):
        first = await service.ensure_admin_user()
        second = await service.ensure_admin_user()
        assert first.id == second.id
        assert second.is_admin
        assert len(await user_dal.list_all()) == 1
        assert check_password_hash(second.password_hash, settings.ADMIN_PASSWORD)

    @pytest.mark.asyncio
    async def test_repairs_existing_account(self, service: UserService, user_dal: UserDAL):
        await user_dal.create(
            User(
                username="",
                email=settings.ADMIN_EMAIL,
                password_hash=generate_password_hash("something-else"),
            )
        )
        repaired = await service.ensure_admin_user()
        assert repaired.username == settings.ADMIN_USERNAME
        assert repaired.role == "admin"
        assert check_password_hash(repaired.password_hash, settings.ADMIN_PASSWORD)


class TestAdminManagement:

    @pytest.mark.asyncio
    async def test_set_totals(self, service: UserService):
        user = await service.signup("alice", "a@x.io", "secret1")
        updated = await service.set_totals(user.id, {"total_deposit": "120.5", "ignored": 3})
        assert updated.total_deposit == 120.5
        assert updated.total_redeem == 0
        with pytest.raises(ValidationError):
            await service.set_totals(user.id, {"total_redeem": -1})

    @pytest.mark.asyncio
    async def test_reset_password(self, service: UserService):
        user = await service.signup("alice", "a@x.io", "secret1")
        await service.reset_password(user.id, "newsecret")
        result = await service.login("a@x.io", "newsecret")
        assert result["access_token"]
        with pytest.raises(ValidationError):
            await service.reset_password(user.id, "123")

    @pytest.mark.asyncio
    async def test_delete_user(self, service: UserService):
        user = await service.signup("alice", "a@x.io", "secret1")
        removed = await service.delete_user(user.id)
        assert removed.username == "alice"
        with pytest.raises(NotFoundError):
            await service.get_user(user.id)

    @pytest.mark.asyncio
    async def test_admin_is_protected(self, service: UserService):
        admin = await service.ensure_admin_user()
        with pytest.raises(HTTPException) as exc_info:
            await service.delete_user(admin.id)
        assert exc_info.value.status_code == 403
        assert (await service.get_user(admin.id)).is_admin

    @pytest.mark.asyncio
    async def test_user_named_admin_is_protected(self, service: UserService):
        user = await service.signup("Admin", "other@x.io", "secret1")
        with pytest.raises(HTTPException) as exc_info:
            await service.delete_user(user.id)
        assert exc_info.value.status_code == 403
