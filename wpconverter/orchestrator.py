"""
Post orchestrator.

Runs one post at a time through filtering, directory allocation, image
localization, text conversion, comment processing, frontmatter assembly and
emission. A failure in any of these steps abandons that post only.
"""

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from rich.console import Console
from rich.markup import escape

from .comments import CommentRenderer
from .config import CommentErrorPolicy, CommentRenderMode, ConversionConfig
from .errors import ConverterError, OutputSlotError
from .frontmatter import FrontmatterBuilder
from .image_handler import ASSET_DIRECTORY, AssetRegistry, ImageLocalizer, scan_image_refs
from .models import CommentRecord, PostRecord
from .rendering import TemplateRenderer
from .sink import FileSink
from .transformer import MarkdownPipeline

console = Console()

SLUG_SPECIAL_CHARS = re.compile(r'[^\w\s-]')
SLUG_SPACES = re.compile(r'[-\s]+')

STATUS_WRITTEN = 'written'
STATUS_SKIPPED = 'skipped'
STATUS_FAILED = 'failed'


def slugify(text: str) -> str:
    """Convert text to URL-friendly slug."""
    slug = unicodedata.normalize('NFKD', text).encode('ascii', 'ignore').decode('ascii')
    slug = slug.lower().replace('*', '')
    slug = SLUG_SPECIAL_CHARS.sub('', slug)  # Remove special chars
    slug = SLUG_SPACES.sub('-', slug)   # Replace spaces/multiple hyphens
    return slug.strip('-')


@dataclass
class PostResult:
    """Outcome of processing one post."""
    title: str
    status: str
    directory: Optional[str] = None
    images: List[str] = field(default_factory=list)
    comments: int = 0
    error: Optional[str] = None


class PostOrchestrator:
    """Converts post records into documents below the output root."""

    def __init__(self, config: ConversionConfig, sink: Optional[FileSink] = None,
                 localizer: Optional[ImageLocalizer] = None, renderer: Optional[TemplateRenderer] = None):
        """Initialize orchestrator; the sink defaults to the configured output directory."""
        self.config = config
        self.sink = sink or FileSink(config.output_dir)
        self.localizer = localizer or ImageLocalizer(
            self.sink, timeout=config.request_timeout, user_agent=config.user_agent
        )
        self.renderer = renderer or TemplateRenderer()
        self.frontmatter_builder = FrontmatterBuilder(config)
        self.comment_renderer = CommentRenderer(self.renderer)

    def run(self, records: Iterable[PostRecord]) -> List[PostResult]:
        """Process records one after another."""
        return [self.process_post(record) for record in records]

    def allocate_directory(self, slug: str) -> str:
        """Create <slug>/ and <slug>/img/, retrying once with a -2 suffix."""
        directory = slug
        if self.sink.exists(directory):
            directory = f"{slug}-2"
            if self.sink.exists(directory):
                raise OutputSlotError(f"Output directories '{slug}' and '{directory}' both exist")

        try:
            self.sink.make_dir(directory)
            self.sink.make_dir(f"{directory}/{ASSET_DIRECTORY}")
        except OSError as e:
            raise OutputSlotError(f"Could not create output directory '{directory}': {e}") from e
        return directory

    def process_post(self, record: PostRecord) -> PostResult:
        """Convert a single post; per-document failures are logged, not raised."""
        title = record.title
        console.print(f"[blue]Processing post: {escape(title)}[/blue]")

        if record.is_draft:
            console.print(f"[yellow]DRAFT, skipping {escape(title)}[/yellow]")
            return PostResult(title=title, status=STATUS_SKIPPED)

        result = PostResult(title=title, status=STATUS_FAILED)
        try:
            self._convert(record, result)
        except ConverterError as e:
            result.error = str(e)
            console.print(f"[red]Failed to convert {escape(title)}: {escape(str(e))}[/red]")
            return result

        result.status = STATUS_WRITTEN
        return result

    def _convert(self, record: PostRecord, result: PostResult) -> None:
        slug = slugify(record.title) or slugify(f"post-{record.post_id}") or 'untitled'
        directory = self.allocate_directory(slug)
        result.directory = directory

        registry = AssetRegistry(directory)
        content = record.content

        # explicit hero is localized before any body image
        hero_candidates = self.frontmatter_builder.hero_candidates(record)
        hero_url = hero_candidates[0] if hero_candidates else None
        if hero_url:
            content, registry = self.localizer.localize(hero_url, content, registry)

        for url in scan_image_refs(content):
            content, registry = self.localizer.localize(url, content, registry)
        result.images = registry.local_paths()

        body = MarkdownPipeline().convert(content)

        inline_comments = self._process_comments(record, directory, result)

        frontmatter = self.frontmatter_builder.build(record, registry, hero_url)

        document = self.renderer.render(
            'post.md.j2',
            frontmatter=frontmatter.render(),
            body=body,
            comments=inline_comments,
        )
        self.sink.write(f"{directory}/index.md", document)

    def _visible_comments(self, record: PostRecord) -> List[CommentRecord]:
        if self.config.include_unapproved_comments:
            return list(record.comments)
        return [comment for comment in record.comments if comment.approved]

    def _process_comments(self, record: PostRecord, directory: str, result: PostResult) -> List[str]:
        """Render comments inline or into comments/; returns the inline blocks."""
        inline = []
        for comment in self._visible_comments(record):
            try:
                if self.config.comment_mode == CommentRenderMode.INLINE:
                    inline.append(self.comment_renderer.render_inline(comment))
                else:
                    self.sink.write(
                        f"{directory}/comments/{self.comment_renderer.file_name(comment)}",
                        self.comment_renderer.render_file(comment),
                    )
            except ConverterError as e:
                if self.config.comment_errors == CommentErrorPolicy.ABORT:
                    raise
                console.print(f"[yellow]Skipping comment {escape(comment.comment_id)}: {escape(str(e))}[/yellow]")
                continue
            result.comments += 1
        return inline
