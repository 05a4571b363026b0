"""Integration tests for the community FastAPI application."""

from __future__ import annotations

import uuid

from fastapi.testclient import TestClient
from sqlalchemy import func, select

from vlab.community.api import CommunitySettings, create_app
from vlab.community.models import CommunityPostVote


def _create_client(database, verifier) -> TestClient:
    settings = CommunitySettings(database_url="sqlite+pysqlite:///:memory:")
    app = create_app(settings, auth_verifier=verifier, database=database)
    return TestClient(app)


def _create_post(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {
        "title": "Cursor rules that work",
        "content": "Keep a rules file per package.",
        "category": "tip",
        "tip_category": "productivity",
        "tags": [" AI ", "tools", "ai"],
    }
    payload.update(overrides)
    response = client.post("/v1/posts", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_and_list_posts(database, verifier, auth_headers) -> None:
    verifier.add("alice", name="Alice")
    client = _create_client(database, verifier)

    post = _create_post(client, auth_headers("alice"))

    assert post["title"] == "Cursor rules that work"
    assert post["tags"] == ["ai", "tools"]
    assert post["author"]["name"] == "Alice"
    assert (post["upvotes"], post["downvotes"], post["comment_count"]) == (0, 0, 0)

    listing = client.get("/v1/posts")
    assert listing.status_code == 200
    body = listing.json()
    assert [p["id"] for p in body["data"]] == [post["id"]]
    assert body["data"][0]["user_vote"] is None
    assert body["pagination"] == {
        "page": 1,
        "limit": 20,
        "total": 1,
        "total_pages": 1,
        "has_next_page": False,
        "has_prev_page": False,
    }


def test_create_post_requires_auth_and_valid_fields(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    client = _create_client(database, verifier)

    anonymous = client.post("/v1/posts", json={"title": "t", "content": "c", "category": "tip"})
    bad_category = client.post(
        "/v1/posts",
        json={"title": "t", "content": "c", "category": "rant"},
        headers=auth_headers("alice"),
    )
    blank_title = client.post(
        "/v1/posts",
        json={"title": "   ", "content": "c", "category": "tool"},
        headers=auth_headers("alice"),
    )

    assert anonymous.status_code == 401
    assert bad_category.status_code == 400
    assert bad_category.json()["error"].startswith("Invalid request")
    assert blank_title.status_code == 400


def test_list_pagination_and_filters(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    client = _create_client(database, verifier)
    headers = auth_headers("alice")
    _create_post(client, headers, title="Zed editor", category="tool", tool="zed", tags=["editor"])
    _create_post(client, headers, title="Prompt tip", content="Use 50% fewer words", tags=["prompts"])
    _create_post(client, headers, title="Another tip", tags=["prompts"])

    first = client.get("/v1/posts", params={"limit": 2}).json()
    second = client.get("/v1/posts", params={"limit": 2, "page": 2}).json()

    assert len(first["data"]) == 2
    assert first["pagination"]["total"] == 3
    assert first["pagination"]["total_pages"] == 2
    assert first["pagination"]["has_next_page"] is True
    assert len(second["data"]) == 1
    assert second["pagination"]["has_prev_page"] is True
    assert first["data"][0]["title"] == "Another tip"

    oldest = client.get("/v1/posts", params={"sort": "oldest"}).json()
    assert oldest["data"][0]["title"] == "Zed editor"

    tools = client.get("/v1/posts", params={"category": "tool"}).json()
    assert [p["title"] for p in tools["data"]] == ["Zed editor"]

    by_tool = client.get("/v1/posts", params={"tool": "zed"}).json()
    assert by_tool["pagination"]["total"] == 1

    by_tag = client.get("/v1/posts", params={"tag": "Prompts"}).json()
    assert {p["title"] for p in by_tag["data"]} == {"Prompt tip", "Another tip"}

    search = client.get("/v1/posts", params={"search": "50%"}).json()
    assert [p["title"] for p in search["data"]] == ["Prompt tip"]

    capped = client.get("/v1/posts", params={"limit": 500}).json()
    assert capped["pagination"]["limit"] == 50


def test_vote_replaces_previous_vote(database, verifier, auth_headers) -> None:
    voter = verifier.add("bob", name="Bob")
    verifier.add("alice")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))
    url = f"/v1/posts/{post['id']}/vote"

    up = client.post(url, json={"vote_type": "upvote"}, headers=auth_headers("bob"))
    down = client.post(url, json={"vote_type": "downvote"}, headers=auth_headers("bob"))

    assert up.status_code == 200
    assert down.status_code == 200
    assert down.json()["data"]["vote_type"] == "downvote"

    detail = client.get(f"/v1/posts/{post['id']}", headers=auth_headers("bob")).json()["data"]
    assert (detail["upvotes"], detail["downvotes"]) == (0, 1)
    assert detail["user_vote"] == "downvote"

    with database.session() as session:
        rows = session.execute(
            select(func.count())
            .select_from(CommunityPostVote)
            .where(CommunityPostVote.user_id == uuid.UUID(voter.id))
        ).scalar_one()
    assert rows == 1

    removed = client.delete(url, headers=auth_headers("bob"))
    assert removed.json() == {"message": "Vote removed successfully"}
    detail = client.get(f"/v1/posts/{post['id']}").json()["data"]
    assert (detail["upvotes"], detail["downvotes"]) == (0, 0)


def test_invalid_vote_type(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))

    response = client.post(
        f"/v1/posts/{post['id']}/vote", json={"vote_type": "meh"}, headers=auth_headers("alice")
    )

    assert response.status_code == 400


def test_threaded_comments(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    verifier.add("bob", name="Bob")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))
    comments_url = f"/v1/posts/{post['id']}/comments"

    c1 = client.post(comments_url, json={"content": "  First!  "}, headers=auth_headers("bob"))
    assert c1.status_code == 201
    c1 = c1.json()["data"]
    assert c1["content"] == "First!"
    c2 = client.post(
        comments_url, json={"content": "Reply", "parent_comment_id": c1["id"]}, headers=auth_headers("alice")
    ).json()["data"]
    c3 = client.post(
        comments_url, json={"content": "Nested", "parent_comment_id": c2["id"]}, headers=auth_headers("bob")
    ).json()["data"]

    detail = client.get(f"/v1/posts/{post['id']}").json()["data"]

    assert detail["comment_count"] == 3
    [root] = detail["comments"]
    assert root["id"] == c1["id"]
    assert root["author"]["name"] == "Bob"
    assert [r["id"] for r in root["replies"]] == [c2["id"]]
    assert [r["id"] for r in root["replies"][0]["replies"]] == [c3["id"]]


def test_comment_validation(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))
    other = _create_post(client, auth_headers("alice"), title="Other post")
    foreign = client.post(
        f"/v1/posts/{other['id']}/comments", json={"content": "elsewhere"}, headers=auth_headers("alice")
    ).json()["data"]

    blank = client.post(
        f"/v1/posts/{post['id']}/comments", json={"content": "   "}, headers=auth_headers("alice")
    )
    wrong_parent = client.post(
        f"/v1/posts/{post['id']}/comments",
        json={"content": "hi", "parent_comment_id": foreign["id"]},
        headers=auth_headers("alice"),
    )
    missing_post = client.post(
        f"/v1/posts/{uuid.uuid4()}/comments", json={"content": "hi"}, headers=auth_headers("alice")
    )

    assert blank.status_code == 400
    assert blank.json() == {"error": "Comment content is required"}
    assert wrong_parent.status_code == 404
    assert missing_post.status_code == 404
    assert missing_post.json() == {"error": "Post not found"}


def test_delete_comment_only_by_author(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    verifier.add("mallory", name="Mallory")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))
    comment = client.post(
        f"/v1/posts/{post['id']}/comments", json={"content": "Mine"}, headers=auth_headers("alice")
    ).json()["data"]

    forbidden = client.delete(f"/v1/comments/{comment['id']}", headers=auth_headers("mallory"))
    assert forbidden.status_code == 403
    assert forbidden.json() == {"error": "You can only delete your own comments"}

    deleted = client.delete(f"/v1/comments/{comment['id']}", headers=auth_headers("alice"))
    assert deleted.json() == {"message": "Comment deleted successfully"}

    again = client.delete(f"/v1/comments/{comment['id']}", headers=auth_headers("alice"))
    assert again.status_code == 404

    detail = client.get(f"/v1/posts/{post['id']}").json()["data"]
    assert detail["comments"] == []
    assert detail["comment_count"] == 0


def test_view_count_only_for_signed_in_viewers(database, verifier, auth_headers) -> None:
    verifier.add("alice")
    client = _create_client(database, verifier)
    post = _create_post(client, auth_headers("alice"))

    client.get(f"/v1/posts/{post['id']}")
    client.get(f"/v1/posts/{post['id']}", headers=auth_headers("alice"))
    detail = client.get(f"/v1/posts/{post['id']}", headers=auth_headers("alice")).json()["data"]

    assert detail["view_count"] == 2
