"""
Frontmatter module.

Builds the YAML header placed at the top of every rendered post.
"""

import datetime
import html
from typing import List, Optional, Tuple

from dateutil import parser as dateutil_parser
from rich.console import Console
from rich.markup import escape

from .config import ConversionConfig, FrontmatterDateMode
from .errors import FrontmatterError
from .image_handler import AssetRegistry
from .models import PostRecord

console = Console()

DESCRIPTION_MARKERS = ('metadesc', 'description')
HERO_MARKERS = ('opengraph-image', 'twitter-image')
# WordPress writes these for posts that were never published
NULL_DATE_MARKERS = ('0000-00-00', '-0001')


def quote_single(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def quote_double(value: str) -> str:
    value = ' '.join(value.split())
    return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'


class Frontmatter:
    """Ordered key/value header for a rendered document."""

    def __init__(self):
        self.entries: List[Tuple[str, str]] = []

    def add(self, key: str, value: str) -> None:
        self.entries.append((key, value))

    def keys(self) -> List[str]:
        return [key for key, _ in self.entries]

    def get(self, key: str) -> Optional[str]:
        for entry_key, value in self.entries:
            if entry_key == key:
                return value
        return None

    def render(self) -> str:
        """Render as a ---delimited block ending in a newline."""
        lines = ['---']
        for key, value in self.entries:
            lines.append(f'{key}: {value}' if not value.startswith('\n') else f'{key}:{value}')
        lines.append('---')
        return '\n'.join(lines) + '\n'


class FrontmatterBuilder:
    """Derives the frontmatter of a post from its record and localized images."""

    def __init__(self, config: ConversionConfig):
        """Initialize builder with conversion settings."""
        self.config = config

    def select_description(self, record: PostRecord) -> str:
        """Longest of the native description and description-like meta values."""
        candidates = [record.description or '']
        candidates.extend(
            entry.value for entry in record.meta
            if any(marker in entry.key for marker in DESCRIPTION_MARKERS)
        )
        # max() keeps the earliest candidate on ties
        return max(candidates, key=len)

    def hero_candidates(self, record: PostRecord) -> List[str]:
        """Explicit social-preview image URLs from the post meta."""
        return [
            entry.value for entry in record.meta
            if any(marker in entry.key for marker in HERO_MARKERS) and entry.value.startswith('http')
        ]

    def select_hero(self, registry: AssetRegistry, hero_url: Optional[str] = None) -> Optional[str]:
        """Explicit hero if localized, else first non-GIF image, else the default."""
        if hero_url:
            local_path = registry.lookup(html.unescape(hero_url))
            if local_path:
                return local_path

        for local_path in registry.local_paths():
            if not local_path.lower().endswith('.gif'):
                return local_path

        return self.config.default_hero

    def categories(self, record: PostRecord) -> Optional[str]:
        if not record.categories:
            return None
        return ', '.join(record.categories)

    def redirect_path(self, record: PostRecord) -> str:
        """Canonical link with the site's own host prefixes removed."""
        if not record.link:
            raise FrontmatterError(f"Post '{record.title}' has no canonical link")

        path = record.link.strip()
        for prefix in self.config.redirect_prefixes():
            if path.startswith(prefix):
                path = path[len(prefix):]
                break

        return path or '/'

    def _parse_date(self, value: Optional[str]) -> Optional[datetime.datetime]:
        if not value or not value.strip():
            return None
        if any(marker in value for marker in NULL_DATE_MARKERS):
            return None
        try:
            return dateutil_parser.parse(value)
        except (ValueError, OverflowError):
            return None

    def resolve_date(self, record: PostRecord) -> datetime.datetime:
        """Publish date, falling back to the post date."""
        date = self._parse_date(record.pub_date) or self._parse_date(record.post_date)
        if date is None:
            raise FrontmatterError(
                f"Unparseable date for '{record.title}' (pubDate={record.pub_date!r}, post_date={record.post_date!r})"
            )
        return date

    def build(self, record: PostRecord, registry: AssetRegistry, hero_url: Optional[str] = None) -> Frontmatter:
        """Assemble the frontmatter; failures are logged and re-raised."""
        try:
            frontmatter = Frontmatter()
            frontmatter.add('title', quote_single(record.title))
            frontmatter.add('description', quote_double(self.select_description(record)))

            date = self.resolve_date(record)
            if self.config.date_mode == FrontmatterDateMode.ID_AND_DATE:
                frontmatter.add('date', date.strftime('%Y-%m-%d %H:%M:%S'))
                frontmatter.add('id', record.post_id)
            else:
                frontmatter.add('published', date.strftime('%Y-%m-%d'))

            frontmatter.add('redirect_from', f"\n  - {self.redirect_path(record)}")

            categories = self.categories(record)
            if categories:
                frontmatter.add('categories', quote_double(categories))

            hero = self.select_hero(registry, hero_url)
            if hero:
                frontmatter.add('hero', hero)
        except FrontmatterError as e:
            console.print(f"[red]Bad frontmatter for {escape(record.title)}: {escape(str(e))}[/red]")
            raise

        return frontmatter
