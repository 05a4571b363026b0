"""Comment thread assembly."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

__all__ = ["build_comment_tree"]


def build_comment_tree(comments: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    """Nest flat comments under their parents.

    ``comments`` must be ordered by creation time; siblings keep that order.
    Each returned node is a copy of the input with a ``replies`` list. A
    reply whose parent is not among ``comments`` is dropped. Two linear
    passes, no recursion.
    """

    ordered = [dict(comment, replies=[]) for comment in comments]
    nodes = {node["id"]: node for node in ordered}

    roots: list[dict[str, Any]] = []
    for node in ordered:
        parent_id = node.get("parent_comment_id")
        if parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(parent_id)
        if parent is not None:
            parent["replies"].append(node)
    return roots
