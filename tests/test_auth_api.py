"""Tests for login, refresh and the unified auth resolver."""

import pytest


@pytest.mark.asyncio
async def test_login_returns_tokens(client, member, password):
    response = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": password}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["refresh_token"]
    assert data["user"]["email"] == member.email
    assert data["user"]["role"] == "member"


@pytest.mark.asyncio
async def test_login_errors_do_not_reveal_account(client, member, password):
    wrong_password = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": "wrong-password"}
    )
    unknown_email = await client.post(
        "/api/v1/auth/login", json={"email": "nobody@example.com", "password": password}
    )

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json()["detail"] == unknown_email.json()["detail"]


@pytest.mark.asyncio
async def test_refresh_and_logout(client, member, password):
    login = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": password}
    )
    tokens = login.json()

    refreshed = await client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    new_tokens = refreshed.json()

    logout = await client.post(
        "/api/v1/auth/logout", headers={"Authorization": f"Bearer {new_tokens['access_token']}"}
    )
    assert logout.status_code == 204

    after_logout = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": new_tokens["refresh_token"]}
    )
    assert after_logout.status_code == 401


@pytest.mark.asyncio
async def test_access_token_is_not_a_refresh_token(client, member, password):
    login = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": password}
    )

    response = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": login.json()["access_token"]}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_me_requires_session(client, member, api_key, auth_headers):
    with_session = await client.get("/api/v1/auth/me", headers=auth_headers(member))
    with_api_key = await client.get("/api/v1/auth/me", headers={"X-Tenant-Key": api_key})
    anonymous = await client.get("/api/v1/auth/me")
    bad_token = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert with_session.status_code == 200
    assert with_session.json()["id"] == member.id
    assert with_api_key.status_code == 401
    assert anonymous.status_code == 401
    assert bad_token.status_code == 401


@pytest.mark.asyncio
async def test_inactive_user_cannot_log_in(client, db_session, member, password):
    member.is_active = False
    await db_session.commit()

    response = await client.post(
        "/api/v1/auth/login", json={"email": member.email, "password": password}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"]
