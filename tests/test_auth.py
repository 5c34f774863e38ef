"""Tests for password hashing, the role policy and the auth service."""

from datetime import timedelta

import pytest

from library_service.auth import authorize, hash_password, require_admin, verify_password
from library_service.errors import (
    ForbiddenError,
    InvalidInputError,
    InvalidPasswordError,
    UnauthenticatedError,
    UserExistsError,
    UserNotFoundError,
)
from library_service.models import Identity, Role
from library_service.models.limits import NAME_MAX_LENGTH
from library_service.services import AuthService


class TestPasswords:
    def test_hash_and_verify(self):
        hashed = hash_password("correct horse", rounds=4)

        assert hashed != "correct horse"
        assert hashed.startswith("$2")
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_rounds_come_from_config(self):
        # LIBRARY_BCRYPT_ROUNDS=4 in the test environment
        assert hash_password("pw").split("$")[2] == "04"

    def test_malformed_hash_is_a_mismatch(self):
        assert not verify_password("pw", "not-a-bcrypt-hash")


class TestPolicy:
    user = Identity(user_id=1, username="alice", role=Role.USER)
    admin = Identity(user_id=2, username="root", role=Role.ADMIN)

    def test_missing_identity(self):
        with pytest.raises(UnauthenticatedError):
            authorize(None)
        with pytest.raises(UnauthenticatedError):
            require_admin(None)

    def test_user_passes_plain_check(self):
        assert authorize(self.user) is self.user

    def test_user_rejected_from_admin_operations(self):
        with pytest.raises(ForbiddenError) as exc_info:
            require_admin(self.user)
        assert exc_info.value.http_status == 403

    def test_admin_allowed(self):
        assert authorize(self.admin, require_admin=True) is self.admin


class TestRegisterAndLogin:
    def test_register(self, services):
        user = services.auth.register("alice", "wonderland")

        assert user.name == "alice"
        assert user.role == Role.USER
        assert services.auth.login("alice", "wonderland") == user

    def test_password_is_stored_hashed(self, services, store):
        services.auth.register("alice", "wonderland")

        with store.atomic() as unit:
            stored = unit.users.get_by_username("alice").password
        assert stored != "wonderland"
        assert verify_password("wonderland", stored)

    def test_duplicate_username(self, services, alice):
        with pytest.raises(UserExistsError):
            services.auth.register("alice", "another")

    @pytest.mark.parametrize("username,password", [("", "pw"), ("alice", "")])
    def test_empty_credentials(self, services, username, password):
        with pytest.raises(InvalidInputError):
            services.auth.register(username, password)
        with pytest.raises(InvalidInputError):
            services.auth.login(username, password)

    def test_overlong_username(self, services, store):
        with pytest.raises(InvalidInputError, match=f"at most {NAME_MAX_LENGTH}"):
            services.auth.register("u" * (NAME_MAX_LENGTH + 1), "pw")

        with store.atomic() as unit:
            assert unit.users.get_all() == []

    def test_unknown_user(self, services):
        with pytest.raises(UserNotFoundError):
            services.auth.login("nobody", "pw")

    def test_wrong_password(self, services, alice):
        with pytest.raises(InvalidPasswordError):
            services.auth.login("alice", "not-wonderland")


class TestSessions:
    def test_session_resolves_to_identity(self, services, alice):
        session_info = services.auth.start_session(alice)

        identity = services.auth.resolve_identity(session_info.token)

        assert identity == Identity(user_id=alice.id, username="alice", role=Role.USER)
        assert len(session_info.token) >= 32

    def test_tokens_are_unique(self, services, alice):
        first = services.auth.start_session(alice)
        second = services.auth.start_session(alice)
        assert first.token != second.token

    @pytest.mark.parametrize("token", [None, "", "made-up-token"])
    def test_missing_or_unknown_token(self, services, token):
        with pytest.raises(UnauthenticatedError):
            services.auth.resolve_identity(token)

    def test_session_expires(self, services, alice, clock):
        session_info = services.auth.start_session(alice)

        clock.advance(hours=23, minutes=59)
        services.auth.resolve_identity(session_info.token)

        clock.advance(minutes=1)
        with pytest.raises(UnauthenticatedError):
            services.auth.resolve_identity(session_info.token)

    def test_configured_max_age(self, store, alice, clock):
        auth = AuthService(store, session_max_age_seconds=60, clock=clock)
        session_info = auth.start_session(alice)

        assert session_info.expires_at - session_info.created_at == timedelta(seconds=60)

    def test_logout(self, services, alice):
        session_info = services.auth.start_session(alice)

        services.auth.logout(session_info.token)

        with pytest.raises(UnauthenticatedError):
            services.auth.resolve_identity(session_info.token)

    def test_logout_without_active_session(self, services, alice):
        with pytest.raises(UnauthenticatedError):
            services.auth.logout(None)

        session_info = services.auth.start_session(alice)
        services.auth.logout(session_info.token)
        with pytest.raises(UnauthenticatedError):
            services.auth.logout(session_info.token)

    def test_logout_only_ends_one_session(self, services, alice):
        first = services.auth.start_session(alice)
        second = services.auth.start_session(alice)

        services.auth.logout(first.token)

        assert services.auth.resolve_identity(second.token).user_id == alice.id


class TestEnsureAdmin:
    def test_creates_admin_once(self, services):
        admin = services.auth.ensure_admin("librarian", "s3cret")

        assert admin.role == Role.ADMIN
        assert services.auth.ensure_admin("librarian", "other") is None
        assert services.auth.login("librarian", "s3cret").is_admin

    def test_existing_regular_user_is_not_promoted(self, services, alice):
        assert services.auth.ensure_admin("alice", "whatever") is None
        assert services.auth.login("alice", "wonderland").role == Role.USER
