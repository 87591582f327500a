"""
Record types produced by the export parser.

Records are immutable; every later stage derives new values from them.
"""

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class MetaEntry:
    """A single wp:postmeta key/value pair."""
    key: str
    value: str


@dataclass(frozen=True)
class CommentRecord:
    """A comment attached to a post."""
    comment_id: str
    author: Optional[str]
    author_email: str
    author_url: str
    date_gmt: Optional[str]
    content: str
    approved: bool = True


@dataclass(frozen=True)
class PostRecord:
    """A post item from the export, with its raw HTML body."""
    post_id: str
    title: str
    content: str
    status: str
    link: Optional[str] = None
    pub_date: Optional[str] = None
    post_date: Optional[str] = None
    description: str = ""
    post_type: str = "post"
    categories: Tuple[str, ...] = ()
    meta: Tuple[MetaEntry, ...] = ()
    comments: Tuple[CommentRecord, ...] = ()

    @property
    def is_draft(self) -> bool:
        return self.status == "draft"
