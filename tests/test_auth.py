from datetime import timedelta

import bcrypt
import pytest

from src import app
from src.utils import auth
from src.utils.auth import (
    create_token, decode_token, get_current_user, generate_password_hash
)
from src.auth.models import Role, UserStatus
from helpers import closing_payload


class FakeBlocklist:
    """Stands in for the redis client that holds revoked token ids."""

    def __init__(self):
        self.revoked = set()

    async def get(self, key):
        return "revoked" if key in self.revoked else None


@pytest.fixture
def blocklist(monkeypatch):
    fake = FakeBlocklist()
    monkeypatch.setattr(auth, "redis_client", fake)
    return fake


@pytest.fixture
def real_auth(client, blocklist):
    """Authenticate requests with real tokens instead of the overridden actor."""
    app.dependency_overrides.pop(get_current_user, None)
    return client


def token_for(user, role=None, expiry=timedelta(minutes=15), type="access"):
    return create_token(
        {"user_id": user.user_id, "role": role or user.role.value}, expiry, type=type
    )


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def test_valid_access_token_is_accepted(real_auth, staff):
    response = await real_auth.get("/api/smd-closings", headers=bearer(token_for(staff)))

    assert response.status_code == 200


async def test_access_token_cookie_is_accepted(real_auth, staff):
    response = await real_auth.get(
        "/api/smd-closings", headers={"Cookie": f"access_token={token_for(staff)}"}
    )

    assert response.status_code == 200


async def test_missing_token_is_unauthorized(real_auth):
    response = await real_auth.get("/api/smd-closings")

    assert response.status_code == 401
    assert response.json()["message"] == "Authentication credentials not provided"


async def test_revoked_token_is_unauthorized(real_auth, staff, blocklist):
    token = token_for(staff)
    blocklist.revoked.add(decode_token(token)["jti"])

    response = await real_auth.get("/api/smd-closings", headers=bearer(token))

    assert response.status_code == 401


async def test_refresh_token_cannot_call_the_api(real_auth, staff):
    token = token_for(staff, type="refresh")

    response = await real_auth.get("/api/smd-closings", headers=bearer(token))

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token type. Access token required."


async def test_expired_and_garbage_tokens_are_unauthorized(real_auth, staff):
    expired = token_for(staff, expiry=timedelta(minutes=-5))

    response = await real_auth.get("/api/smd-closings", headers=bearer(expired))
    assert response.status_code == 401
    assert response.json()["message"] == "Token has expired"

    response = await real_auth.get("/api/smd-closings", headers=bearer("not-a-jwt"))
    assert response.status_code == 401


async def test_customer_token_is_forbidden(real_auth, seed):
    user = await seed.user(full_name="Some Customer", role=Role.CUSTOMER)

    response = await real_auth.get("/api/smd-closings", headers=bearer(token_for(user)))

    assert response.status_code == 403


async def test_deactivated_staff_cannot_write(real_auth, seed):
    blocked = await seed.user(full_name="Blocked Staff", role=Role.STAFF, status=UserStatus.BLOCKED)
    customer = await seed.customer()
    smd = await seed.smd()

    response = await real_auth.post(
        "/api/smd-closings", json=closing_payload(customer, smd), headers=bearer(token_for(blocked))
    )

    assert response.status_code == 401


def test_password_hash_is_salted_bcrypt():
    first = generate_password_hash("s3cret-pass")
    second = generate_password_hash("s3cret-pass")

    assert first != second
    assert first.startswith("$2b$")
    assert bcrypt.checkpw(b"s3cret-pass", first.encode("utf-8"))
    assert not bcrypt.checkpw(b"wrong-pass", first.encode("utf-8"))
