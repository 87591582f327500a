"""
Conversion settings.

The comment rendering mode and the frontmatter date mode have no default:
the two output layouts are equally valid and callers must pick one.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class CommentRenderMode(Enum):
    """Where converted comments end up."""
    INLINE = "inline"
    SEPARATE = "separate"


class FrontmatterDateMode(Enum):
    """Which date keys the frontmatter carries."""
    ID_AND_DATE = "id-date"
    PUBLISHED = "published"


class CommentErrorPolicy(Enum):
    """What a bad comment does to the rest of its post."""
    CONTINUE = "continue"
    ABORT = "abort"


DEFAULT_USER_AGENT = 'Mozilla/5.0 (WordPress-to-static/1.0)'


@dataclass
class ConversionConfig:
    """Settings shared by every stage of a run."""
    output_dir: Path
    comment_mode: CommentRenderMode
    date_mode: FrontmatterDateMode
    site_hosts: List[str] = field(default_factory=list)
    default_hero: Optional[str] = None
    request_timeout: float = 30.0
    comment_errors: CommentErrorPolicy = CommentErrorPolicy.CONTINUE
    include_unapproved_comments: bool = False
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        if not isinstance(self.comment_mode, CommentRenderMode):
            self.comment_mode = CommentRenderMode(self.comment_mode)
        if not isinstance(self.date_mode, FrontmatterDateMode):
            self.date_mode = FrontmatterDateMode(self.date_mode)
        if not isinstance(self.comment_errors, CommentErrorPolicy):
            self.comment_errors = CommentErrorPolicy(self.comment_errors)

    def redirect_prefixes(self) -> List[str]:
        """Expand site hosts into scheme and www variants, longest first."""
        prefixes = []
        for host in self.site_hosts:
            host = host.strip().rstrip('/')
            if host.startswith('www.'):
                host = host[4:]
            if not host:
                continue
            for scheme in ('https', 'http'):
                prefixes.append(f"{scheme}://www.{host}")
                prefixes.append(f"{scheme}://{host}")
        return prefixes
