"""
Canonical result structures shared by the GraphQL and REST paths.

Field names are snake_case in Python and serialise with the camelCase
names GitHub's GraphQL API uses (``by_alias=True``).
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Author(CanonicalModel):
    login: str
    avatar_url: str = ""
    url: str = ""


class Category(CanonicalModel):
    id: str
    name: str
    description: str = ""
    emoji: str = ""
    slug: str


class CategoryRef(CanonicalModel):
    name: str
    slug: str


class Reaction(CanonicalModel):
    content: str


class Reactions(CanonicalModel):
    nodes: List[Reaction] = Field(default_factory=list)
    total_count: int = 0


class PageInfo(CanonicalModel):
    has_next_page: bool = False
    end_cursor: Optional[str] = None


class ThreadSummary(CanonicalModel):
    id: str
    number: int
    title: str
    created_at: str
    author: Optional[Author] = None
    comment_count: int = 0
    reaction_count: int = 0
    category: Optional[CategoryRef] = None


class ThreadPage(CanonicalModel):
    page_info: PageInfo = Field(default_factory=PageInfo)
    nodes: List[ThreadSummary] = Field(default_factory=list)


class Reply(CanonicalModel):
    id: str
    body: str = ""
    body_html: str = Field(default="", alias="bodyHTML")
    created_at: str
    author: Optional[Author] = None


class Comment(CanonicalModel):
    id: str
    body: str = ""
    body_html: str = Field(default="", alias="bodyHTML")
    created_at: str
    author: Optional[Author] = None
    reactions: Reactions = Field(default_factory=Reactions)
    replies: List[Reply] = Field(default_factory=list)


class CommentConnection(CanonicalModel):
    total_count: int = 0
    page_info: PageInfo = Field(default_factory=PageInfo)
    nodes: List[Comment] = Field(default_factory=list)


class ThreadDetail(CanonicalModel):
    id: str
    number: int
    title: str
    body: str = ""
    body_html: str = Field(default="", alias="bodyHTML")
    created_at: str
    author: Optional[Author] = None
    category: Optional[CategoryRef] = None
    reactions: Reactions = Field(default_factory=Reactions)
    comments: CommentConnection = Field(default_factory=CommentConnection)


class SearchResults(CanonicalModel):
    discussion_count: int = 0
    page_info: PageInfo = Field(default_factory=PageInfo)
    nodes: List[ThreadSummary] = Field(default_factory=list)


class Viewer(CanonicalModel):
    login: str
    avatar_url: str = ""


class CreatedDiscussion(CanonicalModel):
    number: int
    title: str


class CreatedComment(CanonicalModel):
    id: str
    created_at: str
