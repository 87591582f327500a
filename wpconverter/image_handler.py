"""
Image handler module.

Downloads images referenced by a post, names them after their URL path and
real file type, and rewrites the post so it points at the local copies.
"""

import html
import re
from pathlib import PurePosixPath
from typing import Dict, Iterator, List, Optional, Set, Tuple
from urllib.parse import urlparse

import requests
from filetype import guess
from rich.console import Console
from rich.markup import escape

from .config import DEFAULT_USER_AGENT
from .errors import AssetWriteError
from .sink import FileSink

console = Console()

IMAGE_SRC_PATTERN = re.compile(r'''\bsrc\s*=\s*(?:"([^"]*)"|'([^']*)')''', re.IGNORECASE)
UNSAFE_FILENAME_CHARS = re.compile(r'[^\w.\-]')
URL_CONTINUATION = r'(?![\w\-./?=&;%#~+])'
ASSET_DIRECTORY = "img"


def scan_image_refs(content: str) -> Iterator[str]:
    """Yield every src attribute value in the content, skipping scripts."""
    for match in IMAGE_SRC_PATTERN.finditer(content or ''):
        url = match.group(1) if match.group(1) is not None else match.group(2)
        url = url.strip()
        if url and not url.lower().endswith('.js'):
            yield url


def detect_image_extension(data: bytes) -> Optional[str]:
    """File extension from the image's magic number, None if not recognized."""
    kind = guess(data)
    if kind and kind.mime.startswith('image/'):
        ext = kind.extension.lower()
        if ext == 'jpeg':
            return 'jpg'
        return ext
    return None


def construct_image_name(url_path: str, data: bytes) -> str:
    """Flatten a URL path into a file name, using the sniffed extension."""
    flattened = url_path.lstrip('/').replace('/', '-').replace('*', '')
    flattened = UNSAFE_FILENAME_CHARS.sub('', flattened)
    parts = PurePosixPath(flattened or 'image')
    stem = parts.stem or 'image'
    extension = detect_image_extension(data)
    suffix = f".{extension}" if extension else parts.suffix
    return f"{stem}{suffix}"


def substitute_url(content: str, url: str, local_path: str) -> str:
    """Replace every complete occurrence of url, leaving longer URLs alone."""
    return re.sub(re.escape(url) + URL_CONTINUATION, lambda _: local_path, content)


class AssetRegistry:
    """Remote URL to local path mapping for a single document."""

    def __init__(self, directory: str, prefix: str = f"./{ASSET_DIRECTORY}/"):
        self.directory = directory
        self.prefix = prefix
        self._assets: Dict[str, str] = {}
        self._failed: Set[str] = set()

    def __contains__(self, url: str) -> bool:
        return url in self._assets

    def __len__(self) -> int:
        return len(self._assets)

    def lookup(self, url: str) -> Optional[str]:
        return self._assets.get(url)

    def is_local(self, url: str) -> bool:
        """True for references already pointing into this document's asset directory."""
        return url.startswith(self.prefix) or url.startswith(self.prefix[2:])

    def has_failed(self, url: str) -> bool:
        return url in self._failed

    def mark_failed(self, url: str) -> None:
        self._failed.add(url)

    def record(self, url: str, file_name: str) -> str:
        """Record a download, suffixing the name if another URL already owns it."""
        taken = set(self._assets.values())
        local_path = self.prefix + file_name
        counter = 2
        stem = PurePosixPath(file_name).stem
        suffix = PurePosixPath(file_name).suffix
        while local_path in taken:
            local_path = f"{self.prefix}{stem}-{counter}{suffix}"
            counter += 1
        self._assets[url] = local_path
        return local_path

    def forget(self, url: str) -> None:
        self._assets.pop(url, None)

    def local_paths(self) -> List[str]:
        """Local paths in the order they were localized."""
        return list(self._assets.values())

    def items(self) -> List[Tuple[str, str]]:
        return list(self._assets.items())


class ImageLocalizer:
    """Downloads referenced images and rewrites content to local copies."""

    def __init__(self, sink: FileSink, session: Optional[requests.Session] = None,
                 timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT):
        """Initialize localizer with the output sink and an HTTP session."""
        self.sink = sink
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': user_agent
        })

    def localize(self, url: str, content: str, registry: AssetRegistry) -> Tuple[str, AssetRegistry]:
        """Localize one image reference; failures keep the remote reference."""
        clean_url = html.unescape(url)

        if registry.is_local(clean_url):
            console.print(f"[dim]Already processed {escape(clean_url)} in {escape(registry.directory)}[/dim]")
            return content, registry

        local_path = registry.lookup(clean_url)
        if local_path:
            return self._rewrite(content, url, clean_url, local_path), registry

        if registry.has_failed(clean_url):
            return content, registry

        local_path = self._download(clean_url, registry)
        if local_path is None:
            registry.mark_failed(clean_url)
            return content, registry

        return self._rewrite(content, url, clean_url, local_path), registry

    def _rewrite(self, content: str, url: str, clean_url: str, local_path: str) -> str:
        content = substitute_url(content, url, local_path)
        if clean_url != url:
            content = substitute_url(content, clean_url, local_path)
        return content

    def _download(self, url: str, registry: AssetRegistry) -> Optional[str]:
        """Fetch, sniff and store a single image, returning its local path."""
        if not url.startswith(('http://', 'https://')):
            console.print(f"[yellow]Keeping ref to {escape(url)} (not a remote URL)[/yellow]")
            return None

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            console.print(f"[yellow]Keeping ref to {escape(url)} ({escape(str(e))})[/yellow]")
            return None

        content_type = response.headers.get('content-type', '')
        if 'image' not in content_type and 'octet-stream' not in content_type:
            console.print(f"[yellow]Keeping ref to {escape(url)} (content-type: {escape(content_type)})[/yellow]")
            return None

        data = response.content
        if not data:
            console.print(f"[yellow]Keeping ref to {escape(url)} (empty response)[/yellow]")
            return None

        file_name = construct_image_name(urlparse(url).path, data)
        local_path = registry.record(url, file_name)
        target = f"{registry.directory}/{ASSET_DIRECTORY}/{PurePosixPath(local_path).name}"

        try:
            self.sink.write(target, data)
        except AssetWriteError as e:
            registry.forget(url)
            console.print(f"[yellow]Keeping ref to {escape(url)} ({escape(str(e))})[/yellow]")
            return None

        return local_path
