from __future__ import annotations

from vlab.community.threads import build_comment_tree


def _comment(comment_id: str, parent: str | None = None) -> dict:
    return {"id": comment_id, "parent_comment_id": parent, "content": f"comment {comment_id}"}


def test_nested_replies_keep_creation_order() -> None:
    flat = [
        _comment("c1"),
        _comment("c2", "c1"),
        _comment("c3", "c2"),
        _comment("c4"),
        _comment("c5", "c1"),
    ]

    roots = build_comment_tree(flat)

    assert [node["id"] for node in roots] == ["c1", "c4"]
    c1 = roots[0]
    assert [reply["id"] for reply in c1["replies"]] == ["c2", "c5"]
    assert [reply["id"] for reply in c1["replies"][0]["replies"]] == ["c3"]
    assert roots[1]["replies"] == []


def test_orphan_replies_are_dropped() -> None:
    roots = build_comment_tree([_comment("c1"), _comment("c9", "deleted-parent")])

    assert [node["id"] for node in roots] == ["c1"]


def test_input_is_not_mutated() -> None:
    flat = [_comment("c1"), _comment("c2", "c1")]

    build_comment_tree(flat)

    assert "replies" not in flat[0]


def test_child_listed_before_parent_is_still_attached() -> None:
    roots = build_comment_tree([_comment("c2", "c1"), _comment("c1")])

    assert [node["id"] for node in roots] == ["c1"]
    assert [reply["id"] for reply in roots[0]["replies"]] == ["c2"]
