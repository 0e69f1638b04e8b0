# File: tests/test_security.py

import pytest

from app.core.security import (
    Capability,
    RequestContext,
    has_capability,
    hash_password,
    verify_password,
)
from app.models import User, UserRole


def _user(role):
    return User(id=1, name="x", phone="9000000000", hashed_password="", role=role)


@pytest.mark.parametrize(
    "capability, allowed",
    [
        (Capability.VIEW_UNPUBLISHED, {UserRole.MODERATOR, UserRole.CITY_ADMIN, UserRole.SUPER_ADMIN}),
        (Capability.MODERATE, {UserRole.MODERATOR, UserRole.CITY_ADMIN, UserRole.SUPER_ADMIN}),
        (Capability.ACT_ON_ISSUES, {UserRole.AUTHORITY, UserRole.CITY_ADMIN, UserRole.SUPER_ADMIN}),
        (Capability.ADMINISTER, {UserRole.CITY_ADMIN, UserRole.SUPER_ADMIN}),
    ],
)
def test_capability_table(capability, allowed):
    for role in UserRole:
        assert has_capability(_user(role), capability) is (role in allowed), role


def test_anonymous_context_has_no_capabilities():
    ctx = RequestContext()
    assert ctx.is_anonymous
    assert not any(ctx.can(c) for c in Capability)


def test_password_hashing_round_trip():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "not-a-hash")
