"""
tests/test_api.py
End-to-end flows through the HTTP surface: auth, profile, view, booking,
news and settings, each on its own client session.
"""

import pytest
from httpx import AsyncClient
from sqlmodel import Session

from app.models.news import NewsItem
from app.models.profile import Profile
from tests.conftest import sign_in

API = "/api/v1"


# ── Auth ───────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_fresh_session_is_resolved_and_signed_out(client: AsyncClient, registry):
    response = await client.get(f"{API}/auth/state")

    assert response.status_code == 200
    data = response.json()
    assert data["resolving"] is False
    assert data["signed_in"] is False
    assert "X-Session-Token" in response.headers
    assert len(registry) == 1

    # the cookie brings us back to the same session
    await client.get(f"{API}/auth/state")
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_bearer_token_selects_session(client: AsyncClient, registry):
    first = await client.get(f"{API}/auth/state")
    token = first.headers["X-Session-Token"]
    client.cookies.clear()

    response = await client.get(
        f"{API}/auth/state", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    assert "X-Session-Token" not in response.headers
    assert len(registry) == 1


@pytest.mark.asyncio
async def test_views_require_sign_in(client: AsyncClient, registry):
    for path in ("/profile", "/view", "/booking", "/news", "/settings"):
        response = await client.get(f"{API}{path}")
        assert response.status_code == 401, path
        assert "X-Session-Token" not in response.headers

    # nobody is signed in without a session, so none is opened
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_bad_credentials_give_readable_error(client: AsyncClient):
    response = await client.post(
        f"{API}/auth/sign-in",
        json={"email": "anna@example.com", "password": "forkert"},
    )

    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid login credentials"
    # the first response opened the session; its token survives the error
    assert "X-Session-Token" in response.headers

    state = (await client.get(f"{API}/auth/state")).json()
    assert state["signed_in"] is False
    assert state["error"] == "Invalid login credentials"


@pytest.mark.asyncio
async def test_sign_in_then_profile_is_created(client: AsyncClient, engine):
    state = await sign_in(client)
    assert state["signed_in"] is True
    assert state["identity"]["id"] == "u1"

    response = await client.get(f"{API}/profile")

    assert response.status_code == 200
    data = response.json()
    assert data["loading"] is False
    assert data["warning"] is None
    assert data["profile"]["name"] == "Anna"
    assert data["profile"]["language"] == "Dansk"
    assert data["profile"]["created_at"] is not None

    with Session(engine) as session:
        assert session.get(Profile, "u1") is not None


@pytest.mark.asyncio
async def test_sign_up_sets_display_name(client: AsyncClient, auth_client):
    response = await client.post(
        f"{API}/auth/sign-up",
        json={"email": "bo.jensen@example.com", "password": "hemmelig"},
    )

    assert response.status_code == 200
    assert response.json()["identity"]["display_name"] == "bo.jensen"
    assert auth_client.calls == ["sign_up", "update_user"]


@pytest.mark.asyncio
async def test_oauth_start_and_callback(client: AsyncClient):
    unknown = await client.post(f"{API}/auth/oauth/myspace")
    assert unknown.status_code == 404

    start = await client.post(f"{API}/auth/oauth/google")
    assert start.status_code == 200
    assert start.json()["url"] == "https://auth.test/google"

    bad = await client.get(f"{API}/auth/callback", params={"code": "nope"})
    assert bad.status_code == 400

    done = await client.get(f"{API}/auth/callback", params={"code": "good-code"})
    assert done.status_code == 200
    assert done.json()["identity"]["display_name"] == "Gitte"

    profile = (await client.get(f"{API}/profile")).json()["profile"]
    assert profile["photo_url"] == "https://img.test/g"


@pytest.mark.asyncio
async def test_sign_out_unwinds_state(client: AsyncClient):
    await sign_in(client)
    await client.put(f"{API}/view/tab", json={"tab": "booking"})

    response = await client.post(f"{API}/auth/sign-out")

    assert response.json()["signed_in"] is False
    assert (await client.get(f"{API}/profile")).status_code == 401

    await sign_in(client)
    view = (await client.get(f"{API}/view")).json()
    assert view["tab"] == "home"


@pytest.mark.asyncio
async def test_discarding_session_starts_over(client: AsyncClient, registry):
    await sign_in(client)

    response = await client.delete(f"{API}/auth/session")
    assert response.status_code == 204
    assert len(registry) == 0

    state = (await client.get(f"{API}/auth/state")).json()
    assert len(registry) == 1
    assert state["resolving"] is False


# ── Profile & view ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_patch_profile_merges(client: AsyncClient):
    await sign_in(client)
    await client.get(f"{API}/profile")

    response = await client.patch(f"{API}/profile", json={"phone": "12345678"})

    assert response.status_code == 200
    profile = response.json()["profile"]
    assert profile["phone"] == "12345678"
    assert profile["name"] == "Anna"


@pytest.mark.asyncio
async def test_view_state_theme_and_greeting(client: AsyncClient):
    await sign_in(client)

    view = (await client.get(f"{API}/view")).json()
    assert view == {
        "tab": "home",
        "settings_open": False,
        "theme": "light",
        "greeting_name": "Anna",
        "photo_url": None,
        "warning": None,
    }

    await client.patch(f"{API}/profile", json={"dark_mode": True})
    view = (await client.get(f"{API}/view")).json()
    assert view["theme"] == "dark"


@pytest.mark.asyncio
async def test_unknown_tab_is_422(client: AsyncClient):
    await sign_in(client)

    response = await client.put(f"{API}/view/tab", json={"tab": "admin"})

    assert response.status_code == 422


# ── Booking ────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_full_booking_flow(client: AsyncClient, webhook_requests):
    await sign_in(client)

    booking = (await client.get(f"{API}/booking")).json()
    assert booking["stage"] == "setup"

    booking = (
        await client.post(
            f"{API}/booking/setup",
            json={"name": "Anna", "address": "Vej 1", "phone": "12345678"},
        )
    ).json()
    assert booking["stage"] == "scheduling"
    assert booking["can_submit"] is False

    not_ready = await client.post(f"{API}/booking/submit")
    assert not_ready.status_code == 409

    booking = (
        await client.put(
            f"{API}/booking/schedule", json={"date": "2025-06-01", "hours": 4}
        )
    ).json()
    assert booking["can_submit"] is True
    assert booking["hours"] == 4

    booking = (await client.post(f"{API}/booking/submit")).json()
    assert booking["done"] is True
    assert booking["sending"] is False
    assert webhook_requests == [
        {
            "url": "https://hook.test/booking",
            "json": {
                "name": "Anna",
                "address": "Vej 1",
                "phone": "12345678",
                "hours": "4",
                "date": "2025-06-01",
                "userId": "u1",
            },
        }
    ]


@pytest.mark.asyncio
async def test_blank_setup_field_is_422(client: AsyncClient):
    await sign_in(client)

    response = await client.post(
        f"{API}/booking/setup",
        json={"name": "Anna", "address": "   ", "phone": "1"},
    )

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("hours, status_code", [(0, 422), (1, 200), (8, 200), (9, 422)])
async def test_hours_bounds(client: AsyncClient, hours, status_code):
    await sign_in(client)

    response = await client.put(f"{API}/booking/schedule", json={"hours": hours})

    assert response.status_code == status_code


# ── News ───────────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_empty_news_feed(client: AsyncClient):
    await sign_in(client)

    data = (await client.get(f"{API}/news")).json()

    assert data["items"] == []
    assert data["empty"] is True
    assert data["empty_message"] == "Ingen nyheder endnu"


@pytest.mark.asyncio
async def test_news_tab_fetches_snapshot(client: AsyncClient, engine):
    with Session(engine) as session:
        session.add(NewsItem(id="n1", title="Sommertilbud"))
        session.commit()
    await sign_in(client)

    view = (await client.put(f"{API}/view/tab", json={"tab": "news"})).json()
    assert view["tab"] == "news"

    data = (await client.get(f"{API}/news")).json()
    assert [item["title"] for item in data["items"]] == ["Sommertilbud"]
    assert data["empty"] is False


# ── Settings ───────────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_settings_draft_and_confirm(client: AsyncClient):
    await sign_in(client)
    await client.get(f"{API}/profile")

    view = (await client.post(f"{API}/view/settings/open")).json()
    assert view["settings_open"] is True

    settings = (
        await client.patch(f"{API}/settings/draft", json={"name": "Anne"})
    ).json()
    assert settings["draft"]["name"] == "Anne"
    profile = (await client.get(f"{API}/profile")).json()["profile"]
    assert profile["name"] == "Anna"

    settings = (await client.post(f"{API}/settings/confirm")).json()
    assert settings["open"] is False
    profile = (await client.get(f"{API}/profile")).json()["profile"]
    assert profile["name"] == "Anne"


@pytest.mark.asyncio
async def test_avatar_upload(client: AsyncClient, uploads):
    await sign_in(client)
    await client.get(f"{API}/profile")

    response = await client.post(
        f"{API}/settings/avatar",
        files={"file": ("me.png", b"\x89PNG fake", "image/png")},
    )

    assert response.status_code == 200
    assert response.json() == {
        "photo_url": "https://cdn.test/avatars/u1",
        "upload_failed": False,
    }
    assert uploads[0]["path"] == "avatars/u1"

    view = (await client.get(f"{API}/view")).json()
    assert view["photo_url"] == "https://cdn.test/avatars/u1"


@pytest.mark.asyncio
async def test_avatar_must_be_an_image(client: AsyncClient, uploads):
    await sign_in(client)

    response = await client.post(
        f"{API}/settings/avatar",
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400
    assert uploads == []


@pytest.mark.asyncio
async def test_settings_sign_out(client: AsyncClient, auth_client):
    await sign_in(client)

    response = await client.post(f"{API}/settings/sign-out")

    assert response.status_code == 200
    assert response.json()["signed_in"] is False
    assert auth_client.calls[-1] == "sign_out"
