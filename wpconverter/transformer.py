"""
Content transformer module.

Converts WordPress post HTML to Markdown through an ordered set of passes:
pre-sanitize, parse, HTML fixups, Markdown conversion, shortcode cleanup,
then a final formatting step that makes output identical across runs.
"""

import re
from dataclasses import dataclass
from typing import Callable, Tuple

from bs4 import BeautifulSoup
from markdownify import ATX, BACKSLASH, MarkdownConverter

from .cleanup import cleanup_shortcodes, code_language, fix_bad_html, fix_code_blocks, fix_embeds, split_fenced
from .errors import ConversionError

URL_PREFIX = re.compile(r'https?://')
TRAILING_WHITESPACE = re.compile(r'[ \t]+$', re.MULTILINE)
EXTRA_WHITESPACE = re.compile(r'\n{3,}')


@dataclass(frozen=True)
class TransformPass:
    """A named rewrite applied to a document tree or to Markdown text."""
    name: str
    apply: Callable


HTML_PASSES: Tuple[TransformPass, ...] = (
    TransformPass('code-blocks', fix_code_blocks),
    TransformPass('embeds', fix_embeds),
)

MARKDOWN_PASSES: Tuple[TransformPass, ...] = (
    TransformPass('shortcodes', cleanup_shortcodes),
)


class PostMarkdownConverter(MarkdownConverter):
    """markdownify converter with the output style used for posts."""

    def __init__(self, **options):
        markdownify_options = {
            'heading_style': ATX,
            'bullets': '-',
            'newline_style': BACKSLASH,
            'code_language_callback': code_language,
            'escape_asterisks': True,
            'escape_underscores': True,
            'escape_misc': False,
        }
        markdownify_options.update(options)
        super().__init__(**markdownify_options)


def fix_url_escapes(markdown: str) -> str:
    """Undo underscore escaping after a URL prefix on the same line."""
    segments = split_fenced(markdown)
    for index in range(0, len(segments), 2):
        lines = segments[index].split('\n')
        # only lines that are followed by a newline
        for number, line in enumerate(lines[:-1]):
            match = URL_PREFIX.search(line)
            if match and '\\_' in line[match.end():]:
                lines[number] = line[:match.end()] + line[match.end():].replace('\\_', '_')
        segments[index] = '\n'.join(lines)
    return ''.join(segments)


def tidy_markdown(markdown: str) -> str:
    """Normalize spacing so identical input always yields identical text.

    Only whitespace is touched: trailing spaces are stripped and blank-line
    runs collapsed outside fenced code, and the text ends in one newline.
    Markdown structure is left exactly as markdownify produced it.
    """
    segments = split_fenced(markdown.replace('\r\n', '\n'))
    for index in range(0, len(segments), 2):
        prose = TRAILING_WHITESPACE.sub('', segments[index])
        segments[index] = EXTRA_WHITESPACE.sub('\n\n', prose)

    content = ''.join(segments).strip('\n')
    return content + '\n' if content else ''


class MarkdownPipeline:
    """Transforms a single WordPress HTML fragment into Markdown."""

    def __init__(self, html_passes: Tuple[TransformPass, ...] = HTML_PASSES,
                 markdown_passes: Tuple[TransformPass, ...] = MARKDOWN_PASSES, **converter_options):
        """Initialize the pipeline with its ordered passes."""
        self.html_passes = html_passes
        self.markdown_passes = markdown_passes
        self.converter = PostMarkdownConverter(**converter_options)

    def parse(self, html: str) -> BeautifulSoup:
        """Parse a fragment; duplicate attributes keep their first value."""
        try:
            return BeautifulSoup(html, 'html.parser', on_duplicate_attribute='ignore')
        except Exception as e:
            raise ConversionError(f"Could not parse HTML: {e}") from e

    def convert(self, raw_html: str) -> str:
        """Run every stage in order and return canonical Markdown."""
        soup = self.parse(fix_bad_html(raw_html or ''))

        for transform in self.html_passes:
            soup = self._apply(transform, soup)

        try:
            markdown = self.converter.convert_soup(soup)
        except Exception as e:
            raise ConversionError(f"Markdown conversion failed: {e}") from e

        for transform in self.markdown_passes:
            markdown = self._apply(transform, markdown)

        return tidy_markdown(fix_url_escapes(markdown + "\n"))

    def _apply(self, transform: TransformPass, document):
        try:
            result = transform.apply(document)
        except Exception as e:
            raise ConversionError(f"Pass '{transform.name}' failed: {e}") from e
        return document if result is None else result
