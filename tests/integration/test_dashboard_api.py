"""Author dashboard endpoints."""

import pytest

from tests.utils_jwt import auth_headers

BASE = "/api/v1/dashboard"


@pytest.mark.asyncio
async def test_dashboard_requires_login(async_client):
    response = await async_client.get(f"{BASE}/posts")

    assert response.status_code == 401
    error = response.json()["error"]
    assert error["code"] == "login_required"
    assert error["details"]["login_url"] == "/auth/login?redirect=%2Fdashboard"


@pytest.mark.asyncio
async def test_expired_cookie_counts_as_anonymous(async_client):
    response = await async_client.get(f"{BASE}/posts", headers={"Cookie": "sb-access-token=expired.or.broken"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_list_my_posts_includes_drafts(async_client, make_post, author_id, other_author_id):
    for i in range(7):
        await make_post(author_id, title=f"Mine {i}", published=i % 2 == 0)
    await make_post(other_author_id, title="Theirs")

    body = (await async_client.get(f"{BASE}/posts", headers=auth_headers(author_id))).json()

    assert len(body["posts"]) == 6
    assert body["pagination"]["total_count"] == 7
    assert body["pagination"]["page_size"] == 6
    assert all(post["author_id"] == author_id for post in body["posts"])


@pytest.mark.asyncio
async def test_create_post(async_client, author_id):
    response = await async_client.post(
        f"{BASE}/posts",
        json={"title": "  Fresh post  ", "content": "Hello **world**", "published": True},
        headers=auth_headers(author_id),
    )

    assert response.status_code == 201
    post = response.json()
    assert post["title"] == "Fresh post"
    assert post["author_id"] == author_id
    assert post["published"] is True

    public = (await async_client.get("/api/v1/posts")).json()
    assert [p["id"] for p in public["posts"]] == [post["id"]]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload, field, message",
    [
        ({"title": "", "content": ""}, "title", "Title is required"),
        ({"title": "   ", "content": "Body"}, "title", "Title is required"),
        ({"title": "x" * 201, "content": "Body"}, "title", "Title must be at most 200 characters"),
        ({"title": "Fine", "content": "  "}, "content", "Content is required"),
    ],
)
async def test_create_validation_reports_first_error(async_client, author_id, payload, field, message):
    response = await async_client.post(f"{BASE}/posts", json=payload, headers=auth_headers(author_id))

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "validation_error"
    assert error["message"] == message
    assert error["details"]["field"] == field


@pytest.mark.asyncio
async def test_edit_form_only_for_author(async_client, make_post, author_id, other_author_id):
    post = await make_post(author_id, title="Editable")

    mine = await async_client.get(f"{BASE}/posts/{post.id}/edit", headers=auth_headers(author_id))
    assert mine.status_code == 200
    assert mine.json()["title"] == "Editable"

    theirs = await async_client.get(f"{BASE}/posts/{post.id}/edit", headers=auth_headers(other_author_id))
    assert theirs.status_code == 403
    details = theirs.json()["error"]["details"]
    assert details["presentation"] == "page"
    assert details["recovery"]["href"] == "/dashboard"

    missing = await async_client.get(f"{BASE}/posts/nope/edit", headers=auth_headers(author_id))
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_patch_updates_given_fields(async_client, make_post, author_id):
    post = await make_post(author_id, title="Before", content="Unchanged body")

    response = await async_client.patch(
        f"{BASE}/posts/{post.id}", json={"published": False}, headers=auth_headers(author_id)
    )

    assert response.status_code == 200
    body = response.json()
    assert body["published"] is False
    assert body["title"] == "Before"
    assert body["content"] == "Unchanged body"


@pytest.mark.asyncio
async def test_patch_by_non_author_is_dismissible_error(async_client, make_post, author_id, other_author_id):
    post_id = (await make_post(author_id, title="Not yours")).id

    response = await async_client.patch(
        f"{BASE}/posts/{post_id}", json={"title": "Taken over"}, headers=auth_headers(other_author_id)
    )

    assert response.status_code == 403
    details = response.json()["error"]["details"]
    assert details["presentation"] == "dismissible"
    assert details["input"] == {"title": "Taken over"}


@pytest.mark.asyncio
async def test_patch_validates_provided_fields(async_client, make_post, author_id):
    post = await make_post(author_id)
    response = await async_client.patch(
        f"{BASE}/posts/{post.id}", json={"content": ""}, headers=auth_headers(author_id)
    )
    assert response.status_code == 422
    assert response.json()["error"]["details"]["field"] == "content"


@pytest.mark.asyncio
async def test_delete_returns_listing_without_item(async_client, make_post, author_id):
    posts = [await make_post(author_id, title=f"Mine {i}") for i in range(8)]
    target_id = posts[-1].id

    response = await async_client.delete(f"{BASE}/posts/{target_id}", headers=auth_headers(author_id))

    assert response.status_code == 200
    body = response.json()
    assert body["pagination"]["total_count"] == 7
    assert target_id not in [post["id"] for post in body["posts"]]
    # Dropped locally, the page is not backfilled
    assert len(body["posts"]) == 5


@pytest.mark.asyncio
async def test_delete_by_non_author_is_alert(async_client, make_post, author_id, other_author_id):
    post_id = (await make_post(author_id)).id

    response = await async_client.delete(f"{BASE}/posts/{post_id}", headers=auth_headers(other_author_id))

    assert response.status_code == 403
    details = response.json()["error"]["details"]
    assert details["presentation"] == "alert"
    assert details["post_id"] == post_id

    listing = (await async_client.get(f"{BASE}/posts", headers=auth_headers(author_id))).json()
    assert [post["id"] for post in listing["posts"]] == [post_id]


@pytest.mark.asyncio
async def test_preview_endpoint(async_client, author_id):
    response = await async_client.post(
        f"{BASE}/preview",
        json={"content": "word " * 20, "mode": "preview", "max_length": 20},
        headers=auth_headers(author_id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "preview"
    assert body["truncated"] is True
    assert body["fade_overlay"] is True

    anonymous = await async_client.post(f"{BASE}/preview", json={"content": "x"})
    assert anonymous.status_code == 401
