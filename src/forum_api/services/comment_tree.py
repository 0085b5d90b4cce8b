"""Rebuild the reply tree of a post from its flat comment rows."""

import json
from collections import defaultdict
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import Any

from forum_api.schemas.comment import CommentResponse
from forum_api.schemas.post import PostAuthor
from forum_api.services.assembler import CommentRow


class CommentSort(StrEnum):
    """Sibling order applied at every level of the tree."""

    LATEST = "latest"
    OLDEST = "oldest"
    HIGHEST = "highest"
    LOWEST = "lowest"


# Ties are broken by id ascending so output is deterministic.
_SORT_KEYS: dict[CommentSort, Callable[[CommentResponse], Any]] = {
    CommentSort.OLDEST: lambda c: (c.created_at, c.id),
    CommentSort.HIGHEST: lambda c: (-c.reply_count, c.id),
    CommentSort.LOWEST: lambda c: (c.reply_count, c.id),
}


def sort_siblings(comments: list[CommentResponse], sort: CommentSort) -> None:
    """Sort one level of siblings in place."""
    if sort is CommentSort.LATEST:
        # Newest first; reverse=True on (created_at, -id) keeps ids ascending on ties
        comments.sort(key=lambda c: (c.created_at, -c.id), reverse=True)
    else:
        comments.sort(key=_SORT_KEYS[sort])


def build_comment_tree(
    rows: Iterable[CommentRow],
    sort: CommentSort = CommentSort.LATEST,
) -> list[CommentResponse]:
    """Nest flat comment rows under their parents.

    Rows are grouped by parent id once, then the forest is walked from the
    top-level comments down with an explicit stack, so reply chains of any
    depth are handled. Rows whose parent is not in ``rows`` cannot be reached
    from a top-level comment and are left out.

    Returns:
        Top-level comments, each carrying its replies recursively. Every level
        is ordered by ``sort``; leaves have an empty ``replies`` list.
    """
    children: defaultdict[int | None, list[CommentRow]] = defaultdict(list)
    for row in rows:
        children[row.parent_id].append(row)

    roots = [_node(row) for row in children[None]]
    sort_siblings(roots, sort)

    stack = list(roots)
    while stack:
        node = stack.pop()
        node.replies = [_node(row) for row in children.get(node.id, ())]
        sort_siblings(node.replies, sort)
        stack.extend(node.replies)

    return roots


def _node(row: CommentRow) -> CommentResponse:
    return CommentResponse(
        id=row.id,
        parent_id=row.parent_id,
        body=row.body,
        author=PostAuthor(id=row.author_id, username=row.author_name),
        created_at=row.created_at,
        reply_count=row.replies,
        replies=[],
    )


def render_comment_forest(roots: list[CommentResponse]) -> str:
    """Serialize a comment forest to a JSON array.

    Nested models are not handed to the JSON encoder, which gives up past a
    few hundred levels. Each comment's own fields are encoded on their own and
    the ``replies`` arrays are stitched together with an explicit stack.
    """
    chunks: list[str] = ["["]
    stack: list[CommentResponse | str] = []
    _push_siblings(stack, roots)

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            chunks.append(item)
            continue

        fields = json.dumps(item.model_dump(mode="json", exclude={"replies"}))
        # Reopen the object to append its replies array
        chunks.append(fields[:-1] + ',"replies":[')
        stack.append("]}")
        _push_siblings(stack, item.replies)

    chunks.append("]")
    return "".join(chunks)


def _push_siblings(stack: list[CommentResponse | str], siblings: list[CommentResponse]) -> None:
    # Pushed in reverse so the first sibling is popped first
    for position, sibling in enumerate(reversed(siblings)):
        if position:
            stack.append(",")
        stack.append(sibling)
