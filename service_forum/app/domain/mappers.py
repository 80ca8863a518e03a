"""
Mapping from GitHub payloads to the canonical result structures.

There are two families: ``*_from_graphql`` for the authenticated GraphQL
path and ``*_from_rest`` for the anonymous REST fallback. Both return the
same models from ``domain.models``.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import (
    Author,
    Category,
    CategoryRef,
    Comment,
    CommentConnection,
    PageInfo,
    Reaction,
    Reactions,
    Reply,
    SearchResults,
    ThreadDetail,
    ThreadPage,
    ThreadSummary,
)


EMOJI_SHORTCODES: Dict[str, str] = {
    ":art:": "🎨",
    ":ballot_box:": "🗳️",
    ":books:": "📚",
    ":bug:": "🐛",
    ":bulb:": "💡",
    ":calendar:": "📅",
    ":eyes:": "👀",
    ":fire:": "🔥",
    ":gear:": "⚙️",
    ":hash:": "#️⃣",
    ":heart:": "❤️",
    ":handshake:": "🤝",
    ":lock:": "🔒",
    ":loudspeaker:": "📢",
    ":mega:": "📣",
    ":memo:": "📝",
    ":newspaper:": "📰",
    ":package:": "📦",
    ":page_facing_up:": "📄",
    ":pray:": "🙏",
    ":question:": "❓",
    ":raised_hands:": "🙌",
    ":rocket:": "🚀",
    ":sparkles:": "✨",
    ":speech_balloon:": "💬",
    ":star:": "⭐",
    ":tada:": "🎉",
    ":thinking:": "🤔",
    ":trophy:": "🏆",
    ":wave:": "👋",
    ":wrench:": "🔧",
}

# REST reaction counter keys -> GraphQL ReactionContent values
REST_REACTION_CONTENT: Dict[str, str] = {
    "+1": "THUMBS_UP",
    "-1": "THUMBS_DOWN",
    "laugh": "LAUGH",
    "hooray": "HOORAY",
    "confused": "CONFUSED",
    "heart": "HEART",
    "rocket": "ROCKET",
    "eyes": "EYES",
}

REACTION_GLYPHS: Dict[str, str] = {
    "THUMBS_UP": "👍",
    "THUMBS_DOWN": "👎",
    "LAUGH": "😄",
    "HOORAY": "🎉",
    "CONFUSED": "😕",
    "HEART": "❤️",
    "ROCKET": "🚀",
    "EYES": "👀",
}

_SHORTCODE = re.compile(r"^:[a-z0-9_+\-]+:$")
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def emoji_glyph(value: Optional[str]) -> str:
    """Translate a ``:shortcode:`` to its glyph; unknown shortcodes become ''."""
    if not value:
        return ""
    if _SHORTCODE.match(value):
        return EMOJI_SHORTCODES.get(value, "")
    return value


def reaction_emoji(content: str) -> str:
    """Glyph for a GraphQL reaction content value (``THUMBS_UP`` -> 👍)."""
    return REACTION_GLYPHS.get(content, content)


def slugify(text: str) -> str:
    return _NON_SLUG.sub("-", text.lower()).strip("-")


def is_page_cursor(cursor: Optional[str]) -> bool:
    """REST cursors are page numbers; GraphQL cursors are opaque strings."""
    return bool(cursor) and cursor.isdigit()


def _count(connection: Optional[Mapping[str, Any]]) -> int:
    if not connection:
        return 0
    return int(connection.get("totalCount") or 0)


# ---------------------------------------------------------------------------
# GraphQL -> canonical
# ---------------------------------------------------------------------------

def author_from_graphql(node: Optional[Mapping[str, Any]]) -> Optional[Author]:
    if not node:
        return None
    return Author(login=node["login"], avatar_url=node.get("avatarUrl") or "", url=node.get("url") or "")


def category_from_graphql(node: Mapping[str, Any]) -> Category:
    return Category(
        id=node["id"],
        name=node["name"],
        description=node.get("description") or "",
        emoji=emoji_glyph(node.get("emoji")),
        slug=node["slug"],
    )


def category_ref_from_graphql(node: Optional[Mapping[str, Any]]) -> Optional[CategoryRef]:
    if not node:
        return None
    return CategoryRef(name=node["name"], slug=node["slug"])


def page_info_from_graphql(node: Optional[Mapping[str, Any]]) -> PageInfo:
    if not node:
        return PageInfo()
    return PageInfo(has_next_page=bool(node.get("hasNextPage")), end_cursor=node.get("endCursor"))


def reactions_from_graphql(node: Optional[Mapping[str, Any]]) -> Reactions:
    if not node:
        return Reactions()
    return Reactions(
        nodes=[Reaction(content=item["content"]) for item in node.get("nodes") or []],
        total_count=_count(node),
    )


def thread_summary_from_graphql(node: Mapping[str, Any]) -> ThreadSummary:
    return ThreadSummary(
        id=node["id"],
        number=node["number"],
        title=node["title"],
        created_at=node["createdAt"],
        author=author_from_graphql(node.get("author")),
        comment_count=_count(node.get("comments")),
        reaction_count=_count(node.get("reactions")),
        category=category_ref_from_graphql(node.get("category")),
    )


def thread_page_from_graphql(connection: Mapping[str, Any]) -> ThreadPage:
    return ThreadPage(
        page_info=page_info_from_graphql(connection.get("pageInfo")),
        nodes=[thread_summary_from_graphql(node) for node in connection.get("nodes") or [] if node],
    )


def reply_from_graphql(node: Mapping[str, Any]) -> Reply:
    return Reply(
        id=node["id"],
        body=node.get("body") or "",
        body_html=node.get("bodyHTML") or "",
        created_at=node["createdAt"],
        author=author_from_graphql(node.get("author")),
    )


def comment_from_graphql(node: Mapping[str, Any]) -> Comment:
    replies = (node.get("replies") or {}).get("nodes") or []
    return Comment(
        id=node["id"],
        body=node.get("body") or "",
        body_html=node.get("bodyHTML") or "",
        created_at=node["createdAt"],
        author=author_from_graphql(node.get("author")),
        reactions=reactions_from_graphql(node.get("reactions")),
        replies=[reply_from_graphql(reply) for reply in replies],
    )


def thread_detail_from_graphql(node: Mapping[str, Any]) -> ThreadDetail:
    comments = node.get("comments") or {}
    return ThreadDetail(
        id=node["id"],
        number=node["number"],
        title=node["title"],
        body=node.get("body") or "",
        body_html=node.get("bodyHTML") or "",
        created_at=node["createdAt"],
        author=author_from_graphql(node.get("author")),
        category=category_ref_from_graphql(node.get("category")),
        reactions=reactions_from_graphql(node.get("reactions")),
        comments=CommentConnection(
            total_count=_count(comments),
            page_info=page_info_from_graphql(comments.get("pageInfo")),
            nodes=[comment_from_graphql(comment) for comment in comments.get("nodes") or []],
        ),
    )


def search_results_from_graphql(search: Mapping[str, Any]) -> SearchResults:
    # Non-discussion hits come back as empty objects from the inline fragment
    return SearchResults(
        discussion_count=int(search.get("discussionCount") or 0),
        page_info=page_info_from_graphql(search.get("pageInfo")),
        nodes=[thread_summary_from_graphql(node) for node in search.get("nodes") or [] if node],
    )


# ---------------------------------------------------------------------------
# REST -> canonical
# ---------------------------------------------------------------------------

def author_from_rest(user: Optional[Mapping[str, Any]]) -> Optional[Author]:
    if not user:
        return None
    return Author(login=user["login"], avatar_url=user.get("avatar_url") or "", url=user.get("html_url") or "")


def category_from_rest(category: Mapping[str, Any]) -> Category:
    return Category(
        id=category["node_id"],
        name=category["name"],
        description=category.get("description") or "",
        emoji=emoji_glyph(category.get("emoji")),
        slug=category.get("slug") or slugify(category["name"]),
    )


def category_ref_from_rest(category: Optional[Mapping[str, Any]]) -> Optional[CategoryRef]:
    if not category:
        return None
    return CategoryRef(name=category["name"], slug=category.get("slug") or slugify(category["name"]))


def reactions_from_rest(counters: Optional[Mapping[str, Any]]) -> Reactions:
    """Expand per-type counters into one synthetic node per reaction.

    ``{"+1": 3, "heart": 1, "total_count": 4}`` becomes three THUMBS_UP
    nodes, one HEART node and ``total_count == 4``.
    """
    if not counters:
        return Reactions()
    nodes: List[Reaction] = []
    for key, content in REST_REACTION_CONTENT.items():
        nodes.extend(Reaction(content=content) for _ in range(int(counters.get(key) or 0)))
    total = counters.get("total_count")
    return Reactions(nodes=nodes, total_count=int(total) if total is not None else len(nodes))


def rest_page_info(page: int, has_next_page: bool) -> PageInfo:
    return PageInfo(has_next_page=has_next_page, end_cursor=str(page + 1) if has_next_page else None)


def thread_summary_from_rest(item: Mapping[str, Any]) -> ThreadSummary:
    reactions = item.get("reactions") or {}
    return ThreadSummary(
        id=item["node_id"],
        number=item["number"],
        title=item["title"],
        created_at=item["created_at"],
        author=author_from_rest(item.get("user")),
        comment_count=int(item.get("comments") or 0),
        reaction_count=int(reactions.get("total_count") or 0),
        category=category_ref_from_rest(item.get("category")),
    )


def reply_from_rest(item: Mapping[str, Any]) -> Reply:
    return Reply(
        id=item["node_id"],
        body=item.get("body") or "",
        body_html=item.get("body_html") or "",
        created_at=item["created_at"],
        author=author_from_rest(item.get("user")),
    )


def comments_from_rest(items: Iterable[Mapping[str, Any]]) -> List[Comment]:
    """Build top-level comments, nesting replies under their ``parent_id``."""
    items = list(items)
    replies_by_parent: Dict[Any, List[Reply]] = {}
    for item in items:
        parent_id = item.get("parent_id")
        if parent_id is not None:
            replies_by_parent.setdefault(parent_id, []).append(reply_from_rest(item))

    return [
        Comment(
            id=item["node_id"],
            body=item.get("body") or "",
            body_html=item.get("body_html") or "",
            created_at=item["created_at"],
            author=author_from_rest(item.get("user")),
            reactions=reactions_from_rest(item.get("reactions")),
            replies=replies_by_parent.get(item.get("id"), []),
        )
        for item in items
        if item.get("parent_id") is None
    ]


def thread_detail_from_rest(item: Mapping[str, Any], comments: List[Comment]) -> ThreadDetail:
    total = int(item.get("comments") or 0)
    return ThreadDetail(
        id=item["node_id"],
        number=item["number"],
        title=item["title"],
        body=item.get("body") or "",
        body_html=item.get("body_html") or "",
        created_at=item["created_at"],
        author=author_from_rest(item.get("user")),
        category=category_ref_from_rest(item.get("category")),
        reactions=reactions_from_rest(item.get("reactions")),
        comments=CommentConnection(
            total_count=total,
            page_info=PageInfo(),
            nodes=comments,
        ),
    )
