"""Community forum: posts, threaded comments and votes."""

from .threads import build_comment_tree

__all__ = ["build_comment_tree"]
