from datetime import timedelta
from jose import jwt
from core.config import settings
from tests.helpers import (post_with_refresh_cookie, refresh_cookie_value, refresh_set_cookie,
                           store_refresh_token)


async def login(client):
    response = await client.post("/auth/login", json={"email": "a@a.com", "senha": "secret1"})
    assert response.status_code == 200
    return refresh_cookie_value(response)


async def test_refresh_token_success(client, store_owner):
    """A valid refresh cookie yields a new access token for the same profile."""
    raw = await login(client)

    response = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert response.status_code == 200
    access_token = response.json()["accessToken"]

    payload = jwt.decode(access_token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    assert payload["id"] == store_owner.user.id
    assert payload["profile_id"] == store_owner.profile.id
    assert payload["loja_id"] == store_owner.store.id
    assert payload["role"] == store_owner.profile.role
    assert payload["type"] == "access"


async def test_refresh_token_is_reusable(client, store_owner):
    """Refresh tokens are not rotated: the same cookie keeps working."""
    raw = await login(client)

    first = await post_with_refresh_cookie(client, "/auth/refresh", raw)
    second = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert first.status_code == 200
    assert second.status_code == 200
    assert refresh_set_cookie(first) is None


async def test_refresh_without_cookie(client):
    client.cookies.clear()
    response = await client.post("/auth/refresh")

    assert response.status_code == 401
    assert response.json()["detail"] == "Refresh token não encontrado."


async def test_refresh_with_unknown_token(client, store_owner):
    response = await post_with_refresh_cookie(client, "/auth/refresh", "not-a-real-token")

    assert response.status_code == 403
    assert response.json()["detail"] == "Token inválido ou expirado."


async def test_refresh_with_expired_token(client, session, store_owner):
    raw = store_refresh_token(session, store_owner, expires_in=timedelta(seconds=-1))

    response = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert response.status_code == 403
    assert response.json()["detail"] == "Token inválido ou expirado."


async def test_refresh_with_revoked_token(client, session, store_owner):
    raw = store_refresh_token(session, store_owner, expires_in=timedelta(days=1), revoked=True)

    response = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert response.status_code == 403


async def test_refresh_with_inactive_user(client, session, store_owner):
    raw = store_refresh_token(session, store_owner, expires_in=timedelta(days=1))
    store_owner.user.is_active = False
    session.commit()

    response = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert response.status_code == 403


async def test_refresh_with_inactive_profile(client, session, store_owner):
    raw = store_refresh_token(session, store_owner, expires_in=timedelta(days=1))
    store_owner.profile.is_active = False
    session.commit()

    response = await post_with_refresh_cookie(client, "/auth/refresh", raw)

    assert response.status_code == 403


async def test_refresh_access_token_cannot_be_used_as_refresh(client, store_owner):
    login_response = await client.post("/auth/login", json={"email": "a@a.com", "senha": "secret1"})
    access_token = login_response.json()["accessToken"]

    response = await post_with_refresh_cookie(client, "/auth/refresh", access_token)

    assert response.status_code == 403
