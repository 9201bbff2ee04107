# tests/test_auth.py

"""
Tests for token verification and identity loading.
"""

import logging

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from core.config import settings
from core.errors import Unauthenticated
from dependencies.auth import (
    create_access_token,
    decode_access_token,
    get_db_client,
    load_identity,
)
from conftest import ORG_A, ORG_B


def test_decode_round_trip_claims():
    payload = decode_access_token(create_access_token("u-admin", ORG_A, "a@example.com"))
    assert payload["sub"] == "u-admin"
    assert payload["org_id"] == ORG_A
    assert payload["email"] == "a@example.com"


def test_decode_rejects_bad_signature():
    token = jwt.encode({"sub": "u-admin"}, "some-other-secret", algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(Unauthenticated):
        decode_access_token(token)


def test_decode_rejects_missing_subject():
    token = jwt.encode({"org_id": ORG_A}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    with pytest.raises(Unauthenticated):
        decode_access_token(token)


def test_load_identity_uses_stored_org(fake_db):
    identity = load_identity({"sub": "u-admin"}, None, fake_db)
    assert identity.org_id == ORG_A
    assert identity.email == "u-admin@example.com"


def test_load_identity_unknown_user(fake_db):
    with pytest.raises(Unauthenticated):
        load_identity({"sub": "ghost"}, None, fake_db)


def test_load_identity_inactive_user(fake_db):
    with pytest.raises(Unauthenticated):
        load_identity({"sub": "u-inactive"}, None, fake_db)


def test_load_identity_org_claim_mismatch(fake_db):
    with pytest.raises(Unauthenticated):
        load_identity({"sub": "u-admin", "org_id": ORG_B}, None, fake_db)


def test_org_override_ignored_for_org_users(fake_db):
    identity = load_identity({"sub": "u-admin", "org_id": ORG_A}, ORG_B, fake_db)
    assert identity.org_id == ORG_A


def test_platform_override_requires_platform_role(fake_db):
    identity = load_identity({"sub": "u-platform", "org_id": None}, ORG_A, fake_db)
    assert identity.org_id == ORG_A

    identity = load_identity({"sub": "u-platform-plain", "org_id": None}, ORG_A, fake_db)
    assert identity.org_id is None


def test_platform_without_override_has_no_org(fake_db):
    identity = load_identity({"sub": "u-platform", "org_id": None}, None, fake_db)
    assert identity.org_id is None


# -----------------------------------------------------
# HTTP
# -----------------------------------------------------
def test_missing_token_is_401(client: TestClient):
    response = client.get("/me/permissions")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHENTICATED"
    assert response.headers["www-authenticate"] == "Bearer"


def test_garbage_token_is_401(client: TestClient):
    response = client.get("/me/permissions", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_me_permissions(client: TestClient, auth_headers):
    response = client.get("/me/permissions", headers=auth_headers("u-viewer"))
    assert response.status_code == 200
    data = response.json()
    assert data["org_id"] == ORG_A
    assert data["permissions"] == sorted(data["permissions"])
    assert "roles.read" in data["permissions"]


def test_platform_me_without_org(client: TestClient, auth_headers):
    response = client.get("/me/permissions", headers=auth_headers("u-platform"))
    assert response.status_code == 200
    assert response.json()["org_id"] is None
    assert "platform.org.read" in response.json()["permissions"]


def test_invalid_org_header_is_400(client: TestClient, auth_headers):
    response = client.get(
        "/me/permissions", headers=auth_headers("u-platform", **{"X-Org-Id": "acme"})
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_ORG_SCOPE"


def test_org_header_without_platform_role_is_ignored(client: TestClient, auth_headers):
    response = client.get(
        "/org/buildings/b-1", headers=auth_headers("u-platform-plain", **{"X-Org-Id": ORG_A})
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ORG_SCOPE_REQUIRED"


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/me/permissions", headers={"X-Request-Id": "req-42"})
    assert response.json()["request_id"] == "req-42"


def test_unexpected_error_is_logged_and_wrapped(app, auth_headers, caplog):
    def broken_client():
        raise RuntimeError("socket closed")

    app.dependency_overrides[get_db_client] = broken_client
    with TestClient(app, raise_server_exceptions=False) as client:
        with caplog.at_level(logging.ERROR, logger="tenantgate"):
            response = client.get("/me/permissions", headers=auth_headers("u-viewer"))

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"
    assert "Unhandled error at http://testserver/me/permissions" in caplog.text
