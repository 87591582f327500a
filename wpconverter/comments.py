"""
Comment rendering.

Comments are converted with their own pipeline and rendered either as an
inline <article> block or as a standalone file.
"""

import re

from rich.console import Console
from rich.markup import escape

from .errors import CommentError
from .models import CommentRecord
from .rendering import TemplateRenderer
from .transformer import MarkdownPipeline

console = Console()

PATH_SEPARATORS = re.compile(r'[\\/]')


def _escape_quoted(value: str) -> str:
    """Escape a value placed inside a double-quoted YAML scalar."""
    return value.replace('\\', '\\\\').replace('"', '\\"')


class CommentRenderer:
    """Turns comment records into Markdown fragments or files."""

    def __init__(self, renderer: TemplateRenderer = None):
        self.renderer = renderer or TemplateRenderer()

    def _check(self, comment: CommentRecord) -> None:
        """Fail when the author block or timestamp cannot be read."""
        problems = []
        if comment.author is None:
            problems.append('author')
        if not comment.date_gmt:
            problems.append('date')
        if problems:
            console.print(f"[red]Bad comment {escape(comment.comment_id)}: missing {', '.join(problems)}[/red]")
            raise CommentError(f"Comment {comment.comment_id} is missing {', '.join(problems)}")

    def author_line(self, comment: CommentRecord) -> str:
        """Author as a Markdown link to the homepage or mail address."""
        self._check(comment)
        author = comment.author
        email = comment.author_email
        website = comment.author_url

        if email:
            if website:
                return f"[{author} ({email})]({website})"
            return f"[{author} ({email})](mailto:{email})"
        if website:
            return f"[{author}]({website})"
        return author

    def file_name(self, comment: CommentRecord) -> str:
        """File name under comments/: <id>_<authorEmail>."""
        return PATH_SEPARATORS.sub('', f"{comment.comment_id}_{comment.author_email}")

    def render_inline(self, comment: CommentRecord) -> str:
        """Comment as an <article> block for the parent document."""
        author_line = self.author_line(comment)
        return self.renderer.render(
            'comment.html.j2',
            author=author_line,
            date=comment.date_gmt,
            body=MarkdownPipeline().convert(comment.content),
        )

    def render_file(self, comment: CommentRecord) -> str:
        """Comment as a standalone Markdown document with its own header."""
        self._check(comment)
        return self.renderer.render(
            'comment.md.j2',
            comment=comment,
            author=_escape_quoted(comment.author),
            email=_escape_quoted(comment.author_email),
            url=_escape_quoted(comment.author_url),
            body=MarkdownPipeline().convert(comment.content),
        )
