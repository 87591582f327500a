"""
Parser module for WordPress exports.

Handles loading and validating WordPress eXtended RSS (WXR) export files and
turns their items into PostRecord values.
"""

import os
from typing import Dict, Iterator, List, Optional, Sequence, Any
from xml.etree import ElementTree as ET

from rich.console import Console

from .models import CommentRecord, MetaEntry, PostRecord

console = Console()

WP_NAMESPACE_PREFIX = "http://wordpress.org/export/"

BASE_NAMESPACES = {
    "content": "http://purl.org/rss/1.0/modules/content/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "wfw": "http://wellformedweb.org/CommentAPI/",
}


class WXRParser:
    """Parser for WordPress WXR export files."""

    def __init__(self, export_path: str, post_types: Sequence[str] = ("post",)):
        """Initialize parser with export file path."""
        self.export_path = export_path
        self.post_types = tuple(post_types)
        self.namespaces: Dict[str, str] = dict(BASE_NAMESPACES)
        self._channel: Optional[ET.Element] = None
        self._items: List[ET.Element] = []

    def load_export(self) -> None:
        """Load and validate the export file."""
        if not os.path.exists(self.export_path):
            raise FileNotFoundError(f"Export file not found: {self.export_path}")

        try:
            tree = ET.parse(self.export_path)
        except ET.ParseError as e:
            raise ValueError(f"Invalid XML in export file: {e}")
        except OSError as e:
            raise ValueError(f"Error reading export file: {e}")

        self._validate_export(tree.getroot())
        self._extract_data()

    def _validate_export(self, root: ET.Element) -> None:
        """Validate the export structure and detect the WXR namespace."""
        if root.tag != 'rss':
            raise ValueError("Export must be an RSS document")

        self._channel = root.find('channel')
        if self._channel is None:
            raise ValueError("Export must contain a 'channel' element")

        wp_namespace = self._detect_wp_namespace(root)
        if wp_namespace is None:
            raise ValueError("Export does not use the WordPress export namespace")
        self.namespaces['wp'] = wp_namespace
        self.namespaces['excerpt'] = wp_namespace + "excerpt/"

    def _detect_wp_namespace(self, root: ET.Element) -> Optional[str]:
        """Find the versioned wp: namespace URI (WXR 1.0, 1.1 and 1.2 differ)."""
        for element in root.iter():
            if not isinstance(element.tag, str) or not element.tag.startswith('{'):
                continue
            uri = element.tag[1:].split('}', 1)[0]
            if uri.startswith(WP_NAMESPACE_PREFIX) and not uri.endswith('excerpt/'):
                return uri
        return None

    def _extract_data(self) -> None:
        """Extract items from the channel."""
        self._items = self._channel.findall('item')

        if not self._items:
            console.print("[yellow]Warning: No items found in export[/yellow]")

        console.print(f"[green]Loaded {len(self._items)} items[/green]")

    def _text(self, element: ET.Element, path: str) -> Optional[str]:
        """Text of a child element, None when the child is missing."""
        node = element.find(path, self.namespaces)
        if node is None:
            return None
        return node.text or ''

    def _post_type(self, item: ET.Element) -> str:
        return self._text(item, 'wp:post_type') or ''

    def posts(self, limit: Optional[int] = None) -> Iterator[PostRecord]:
        """Yield post records lazily, optionally limited to a number of posts."""
        if self._channel is None:
            raise RuntimeError("Must call load_export() first")

        count = 0
        for item in self._items:
            if self._post_type(item) not in self.post_types:
                continue
            if limit is not None and count >= limit:
                console.print(f"[yellow]Limited to {limit} posts[/yellow]")
                return
            count += 1
            yield self._parse_item(item)

    def _parse_item(self, item: ET.Element) -> PostRecord:
        """Build a PostRecord from an export item."""
        return PostRecord(
            post_id=self._text(item, 'wp:post_id') or '',
            title=self._text(item, 'title') or '',
            content=self._text(item, 'content:encoded') or '',
            status=self._text(item, 'wp:status') or '',
            link=self._text(item, 'link'),
            pub_date=self._text(item, 'pubDate'),
            post_date=self._text(item, 'wp:post_date'),
            description=self._text(item, 'description') or '',
            post_type=self._post_type(item),
            categories=self._parse_categories(item),
            meta=self._parse_meta(item),
            comments=tuple(self._parse_comment(c) for c in item.findall('wp:comment', self.namespaces)),
        )

    def _parse_categories(self, item: ET.Element) -> tuple:
        """Category and tag labels, merged and de-duplicated in export order."""
        labels = []
        for category in item.findall('category'):
            label = (category.text or '').strip()
            if label and label not in labels:
                labels.append(label)
        return tuple(labels)

    def _parse_meta(self, item: ET.Element) -> tuple:
        entries = []
        for meta in item.findall('wp:postmeta', self.namespaces):
            key = self._text(meta, 'wp:meta_key')
            if key is None:
                continue
            entries.append(MetaEntry(key=key, value=self._text(meta, 'wp:meta_value') or ''))
        return tuple(entries)

    def _parse_comment(self, comment: ET.Element) -> CommentRecord:
        """Build a CommentRecord; missing author or date stay None."""
        approved = self._text(comment, 'wp:comment_approved')
        return CommentRecord(
            comment_id=self._text(comment, 'wp:comment_id') or '',
            author=self._text(comment, 'wp:comment_author'),
            author_email=self._text(comment, 'wp:comment_author_email') or '',
            author_url=self._text(comment, 'wp:comment_author_url') or '',
            date_gmt=self._text(comment, 'wp:comment_date_gmt'),
            content=self._text(comment, 'wp:comment_content') or '',
            approved=approved is None or approved == '1',
        )

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of the export data."""
        if self._channel is None:
            raise RuntimeError("Must call load_export() first")

        post_count = len([item for item in self._items if self._post_type(item) in self.post_types])

        return {
            'site_title': self._text(self._channel, 'title') or 'Unknown',
            'total_items': len(self._items),
            'total_posts': post_count,
        }
