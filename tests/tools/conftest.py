"""Fixtures for tool tests: the shared services plus logged-in sessions."""

import pytest


@pytest.fixture
def user_token(shared_services, alice) -> str:
    return shared_services.auth.start_session(alice).token


@pytest.fixture
def admin_token(shared_services, admin_user) -> str:
    return shared_services.auth.start_session(admin_user).token

