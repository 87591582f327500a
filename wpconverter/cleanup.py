"""
Article cleanup passes.

WordPress stores post bodies as loosely formed HTML mixed with shortcodes.
These passes repair the markup before parsing, rewrite code blocks and
embeds into shapes markdownify understands, and strip shortcodes from the
converted Markdown.
"""

import html
import re
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

# Compile regex patterns once at module level for better performance
CODE_SHORTCODE = re.compile(r'\[(sourcecode|code)(?=[\s\]])([^\]]*)\](.*?)\[/\1\]', re.DOTALL | re.IGNORECASE)
SHORTCODE_LANGUAGE = re.compile(r'\b(?:lang|language)\s*=\s*["\']?([\w+#-]+)', re.IGNORECASE)
BARE_AMPERSAND = re.compile(r'&(?!#\d+;|#[xX][0-9a-fA-F]+;|[a-zA-Z][a-zA-Z0-9]*;)')
STRAY_LESS_THAN = re.compile(r'<(?![a-zA-Z/!?])')
BROKEN_BR = re.compile(r'<\s*/?\s*br\s*/?\s*>', re.IGNORECASE)
SPACED_SELF_CLOSE = re.compile(r'\s*/\s+>')

BRUSH_CLASS = re.compile(r'brush:\s*([\w+#-]+)')
CRAYON_CLASS = re.compile(r'\blang:([\w+#-]+)')
LANGUAGE_CLASS = re.compile(r'^(?:language|lang)-([\w+#-]+)$')

LANGUAGE_ALIASES = {
    'py': 'python',
    'py3': 'python',
    'js': 'javascript',
    'jscript': 'javascript',
    'ts': 'typescript',
    'sh': 'bash',
    'shell': 'bash',
    'rb': 'ruby',
    'ml': 'ocaml',
    'c#': 'csharp',
    'yml': 'yaml',
    'xhtml': 'html',
    'plain': '',
    'plaintext': '',
    'text': '',
    'none': '',
}

YOUTUBE_ID = re.compile(r'(?:youtube(?:-nocookie)?\.com/(?:embed/|v/|watch\?v=)|youtu\.be/)([\w-]{6,})')
VIMEO_ID = re.compile(r'vimeo\.com/(?:video/)?(\d+)')

FENCED_BLOCK = re.compile(r'(^```[^\n]*\n.*?^```[ \t]*$)', re.MULTILINE | re.DOTALL)


def _shortcode_name(name: str) -> str:
    # markdownify escapes underscores in text nodes
    return name.replace('_', r'\\?_')


CAPTION_SHORTCODE = re.compile(
    r'\[(caption|%s)\b[^\]]*\](.*?)\[/\1\]' % _shortcode_name('wp_caption'), re.DOTALL | re.IGNORECASE)
EMBED_SHORTCODE = re.compile(r'\[embed\b[^\]]*\](.*?)\[/embed\]', re.DOTALL | re.IGNORECASE)
YOUTUBE_SHORTCODE = re.compile(r'\[youtube[=\s]+([^\]\s]+)[^\]]*\]', re.IGNORECASE)
VIMEO_SHORTCODE = re.compile(r'\[vimeo[=\s]+([^\]\s]+)[^\]]*\]', re.IGNORECASE)
MEDIA_SHORTCODE = re.compile(r'\[(audio|video)\b([^\]]*)\](?!\()(?:(.*?)\[/\1\])?', re.DOTALL)
MEDIA_SOURCE = re.compile(r'\b(?:src|mp3|mp4|m4a|ogg|oga|webm|wav|flv)\s*=\s*["\']([^"\']+)["\']')
REMOVED_SHORTCODES = ('gallery', 'playlist', 'contact-form-7', 'contact-form', 'more',
                      'googlemaps', 'slideshare', 'caption', 'wp_caption', 'embed',
                      'audio', 'video', 'youtube', 'vimeo')
LEFTOVER_SHORTCODE = re.compile(
    r'\[/?(?:%s)\b[^\]]*\](?!\()' % '|'.join(_shortcode_name(re.escape(n)) for n in REMOVED_SHORTCODES))


def normalize_language(language: Optional[str]) -> str:
    """Map a highlighter language name onto a common fence label."""
    if not language:
        return ''
    language = language.strip().lower()
    return LANGUAGE_ALIASES.get(language, language)


def _code_shortcode_to_html(match: re.Match) -> str:
    language_match = SHORTCODE_LANGUAGE.search(match.group(2))
    language = normalize_language(language_match.group(1) if language_match else None)
    code = html.escape(html.unescape(match.group(3)).strip('\n'), quote=False)
    class_attr = f' class="language-{language}"' if language else ''
    return f'<pre><code{class_attr}>{code}</code></pre>'


def fix_bad_html(raw_html: str) -> str:
    """Patch markup the HTML parser would otherwise misread."""
    if not raw_html:
        return ""

    content = CODE_SHORTCODE.sub(_code_shortcode_to_html, raw_html)
    content = BARE_AMPERSAND.sub('&amp;', content)
    content = STRAY_LESS_THAN.sub('&lt;', content)
    content = BROKEN_BR.sub('<br/>', content)
    content = SPACED_SELF_CLOSE.sub(' />', content)

    return content


def _class_text(element: Tag) -> str:
    classes = element.get('class') or []
    if isinstance(classes, str):
        return classes
    return ' '.join(classes)


def _element_language(element: Tag) -> Optional[str]:
    """Language named by a pre or code element's attributes, if any."""
    class_text = _class_text(element)
    for pattern in (BRUSH_CLASS, CRAYON_CLASS):
        match = pattern.search(class_text)
        if match:
            return match.group(1).rstrip(';')
    for token in class_text.split():
        match = LANGUAGE_CLASS.match(token)
        if match:
            return match.group(1)
    for attribute in ('data-language', 'data-lang', 'lang'):
        if element.get(attribute):
            return element[attribute]
    return None


def code_language(pre: Tag) -> str:
    """Fence language for a canonical pre element."""
    code = pre.find('code')
    if code is not None:
        language = _element_language(code)
        if language:
            return normalize_language(language)
    return normalize_language(_element_language(pre))


def fix_code_blocks(soup: BeautifulSoup) -> BeautifulSoup:
    """Collapse highlighter markup into <pre><code class="language-x">."""
    for wrapper in soup.find_all('div', class_='wp-block-syntaxhighlighter-code'):
        wrapper.unwrap()

    for pre in list(soup.find_all('pre')):
        language = code_language(pre)

        for br in pre.find_all('br'):
            br.replace_with('\n')

        canonical = soup.new_tag('pre')
        code = soup.new_tag('code')
        if language:
            code['class'] = [f'language-{language}']
        code.string = pre.get_text()
        canonical.append(code)
        pre.replace_with(canonical)

    return soup


def canonical_media_url(src: str) -> str:
    """Watch URL for known video providers, the source URL otherwise."""
    if src.startswith('//'):
        src = 'https:' + src
    youtube = YOUTUBE_ID.search(src)
    if youtube:
        return f"https://www.youtube.com/watch?v={youtube.group(1)}"
    vimeo = VIMEO_ID.search(src)
    if vimeo:
        return f"https://vimeo.com/{vimeo.group(1)}"
    return src


def _anchor(soup: BeautifulSoup, url: str, text: Optional[str] = None) -> Tag:
    anchor = soup.new_tag('a', href=url)
    anchor.string = text or url
    return anchor


def _replace_with_anchor(soup: BeautifulSoup, element: Tag, url: str) -> None:
    """Swap an embed for a link, in its own paragraph unless already inline."""
    anchor = _anchor(soup, canonical_media_url(url))
    if element.parent is not None and element.parent.name in ('p', 'li', 'td', 'th', 'a'):
        element.replace_with(anchor)
        return
    paragraph = soup.new_tag('p')
    paragraph.append(anchor)
    element.replace_with(paragraph)


def _media_source(element: Tag) -> Optional[str]:
    if element.get('src'):
        return element['src']
    source = element.find(['source', 'embed'], src=True)
    if source is not None:
        return source['src']
    movie = element.find('param', attrs={'name': 'movie'})
    if movie is not None and movie.get('value'):
        return movie['value']
    return None


def fix_embeds(soup: BeautifulSoup) -> BeautifulSoup:
    """Rewrite provider widgets into plain links markdownify can keep."""
    for figure in list(soup.find_all('figure', class_='wp-block-embed')):
        wrapper = figure.find('div', class_='wp-block-embed__wrapper')
        url = (wrapper or figure).get_text(' ', strip=True).split(' ')[0]
        if not url.startswith(('http://', 'https://')):
            continue
        caption = figure.find('figcaption')
        caption_text = caption.get_text(' ', strip=True) if caption else ''
        paragraph = soup.new_tag('p')
        paragraph.append(_anchor(soup, canonical_media_url(url)))
        figure.replace_with(paragraph)
        if caption_text:
            caption_paragraph = soup.new_tag('p')
            caption_paragraph.string = caption_text
            paragraph.insert_after(caption_paragraph)

    for blockquote in soup.find_all('blockquote', class_='twitter-tweet'):
        # the permalink anchor is already inside the quote
        blockquote.attrs = {}

    for blockquote in list(soup.find_all('blockquote', class_=['instagram-media', 'tiktok-embed'])):
        permalink = blockquote.get('data-instgrm-permalink') or blockquote.get('cite')
        if not permalink:
            link = blockquote.find('a', href=True)
            permalink = link['href'] if link else None
        if permalink:
            _replace_with_anchor(soup, blockquote, permalink.split('?')[0])
        else:
            blockquote.decompose()

    for element in list(soup.find_all(['iframe', 'object', 'embed', 'video', 'audio'])):
        if element.parent is None:
            continue
        src = _media_source(element) or element.get('data-src')
        if src:
            _replace_with_anchor(soup, element, src)
        else:
            element.decompose()

    for element in list(soup.find_all(['script', 'style', 'noscript'])):
        if element.parent is not None:
            element.decompose()

    return soup


def split_fenced(markdown: str) -> List[str]:
    """Split Markdown into prose and fenced-code segments (code at odd indices)."""
    return FENCED_BLOCK.split(markdown)


def _autolink(url: str) -> str:
    url = url.strip().replace('\\_', '_')
    return f"<{canonical_media_url(url)}>" if url else ''


def _media_shortcode(match: re.Match) -> str:
    source = MEDIA_SOURCE.search(match.group(2))
    return _autolink(source.group(1)) if source else ''


def _vimeo_shortcode(match: re.Match) -> str:
    target = match.group(1)
    if target.isdigit():
        target = f"https://vimeo.com/{target}"
    return _autolink(target)


def _cleanup_prose(text: str) -> str:
    text = CAPTION_SHORTCODE.sub(lambda m: m.group(2).strip(), text)
    text = EMBED_SHORTCODE.sub(lambda m: _autolink(m.group(1)), text)
    text = YOUTUBE_SHORTCODE.sub(lambda m: _autolink(m.group(1)), text)
    text = VIMEO_SHORTCODE.sub(_vimeo_shortcode, text)
    text = MEDIA_SHORTCODE.sub(_media_shortcode, text)
    return LEFTOVER_SHORTCODE.sub('', text)


def cleanup_shortcodes(markdown: str) -> str:
    """Remove or render WordPress shortcodes outside fenced code."""
    segments = split_fenced(markdown)
    for index in range(0, len(segments), 2):
        segments[index] = _cleanup_prose(segments[index])
    return ''.join(segments)
