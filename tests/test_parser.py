"""Tests for WXR export parsing."""

import pytest

from wpconverter.parser import WXRParser

SAMPLE_EXPORT = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
    xmlns:excerpt="http://wordpress.org/export/{version}/excerpt/"
    xmlns:content="http://purl.org/rss/1.0/modules/content/"
    xmlns:wfw="http://wellformedweb.org/CommentAPI/"
    xmlns:dc="http://purl.org/dc/elements/1.1/"
    xmlns:wp="http://wordpress.org/export/{version}/">
<channel>
    <title>Weaselhat</title>
    <wp:wxr_version>{version}</wp:wxr_version>
    <item>
        <title>First Post</title>
        <link>https://weaselhat.com/2020/01/02/first-post/</link>
        <pubDate>Thu, 02 Jan 2020 10:30:00 +0000</pubDate>
        <description></description>
        <content:encoded><![CDATA[<p>Hello & welcome</p>]]></content:encoded>
        <wp:post_id>1</wp:post_id>
        <wp:post_date>2020-01-02 10:30:00</wp:post_date>
        <wp:status>publish</wp:status>
        <wp:post_type>post</wp:post_type>
        <category domain="category" nicename="ocaml"><![CDATA[OCaml]]></category>
        <category domain="post_tag" nicename="types"><![CDATA[types]]></category>
        <category domain="post_tag" nicename="ocaml"><![CDATA[OCaml]]></category>
        <wp:postmeta>
            <wp:meta_key>_yoast_wpseo_metadesc</wp:meta_key>
            <wp:meta_value><![CDATA[About the first post]]></wp:meta_value>
        </wp:postmeta>
        <wp:comment>
            <wp:comment_id>5</wp:comment_id>
            <wp:comment_author><![CDATA[Ann]]></wp:comment_author>
            <wp:comment_author_email>ann@example.com</wp:comment_author_email>
            <wp:comment_author_url>https://ann.example.com</wp:comment_author_url>
            <wp:comment_date_gmt>2020-01-03 09:00:00</wp:comment_date_gmt>
            <wp:comment_content><![CDATA[Nice post]]></wp:comment_content>
            <wp:comment_approved>1</wp:comment_approved>
        </wp:comment>
        <wp:comment>
            <wp:comment_id>6</wp:comment_id>
            <wp:comment_content><![CDATA[Buy now]]></wp:comment_content>
            <wp:comment_approved>spam</wp:comment_approved>
        </wp:comment>
    </item>
    <item>
        <title>About</title>
        <content:encoded><![CDATA[About page]]></content:encoded>
        <wp:post_id>2</wp:post_id>
        <wp:status>publish</wp:status>
        <wp:post_type>page</wp:post_type>
    </item>
    <item>
        <title>Work in progress</title>
        <content:encoded><![CDATA[]]></content:encoded>
        <wp:post_id>3</wp:post_id>
        <wp:status>draft</wp:status>
        <wp:post_type>post</wp:post_type>
    </item>
</channel>
</rss>
"""


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / 'export.xml'
    path.write_text(SAMPLE_EXPORT.format(version='1.2'), encoding='utf-8')
    return path


@pytest.fixture
def parser(export_file):
    parser = WXRParser(str(export_file))
    parser.load_export()
    return parser


class TestLoadExport:
    """Loading and validation."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WXRParser(str(tmp_path / 'nope.xml')).load_export()

    def test_invalid_xml(self, tmp_path):
        path = tmp_path / 'broken.xml'
        path.write_text('<rss><channel>', encoding='utf-8')
        with pytest.raises(ValueError, match='Invalid XML'):
            WXRParser(str(path)).load_export()

    def test_not_rss(self, tmp_path):
        path = tmp_path / 'feed.xml'
        path.write_text('<feed></feed>', encoding='utf-8')
        with pytest.raises(ValueError, match='RSS'):
            WXRParser(str(path)).load_export()

    def test_missing_wp_namespace(self, tmp_path):
        path = tmp_path / 'plain.xml'
        path.write_text('<rss><channel><title>x</title></channel></rss>', encoding='utf-8')
        with pytest.raises(ValueError, match='namespace'):
            WXRParser(str(path)).load_export()

    def test_posts_before_load(self, export_file):
        with pytest.raises(RuntimeError):
            list(WXRParser(str(export_file)).posts())

    def test_older_export_version(self, tmp_path):
        path = tmp_path / 'old.xml'
        path.write_text(SAMPLE_EXPORT.format(version='1.1'), encoding='utf-8')
        parser = WXRParser(str(path))
        parser.load_export()
        assert [post.post_id for post in parser.posts()] == ['1', '3']


class TestPosts:
    """Record extraction."""

    def test_only_posts_are_yielded(self, parser):
        assert [post.title for post in parser.posts()] == ['First Post', 'Work in progress']

    def test_limit(self, parser):
        assert len(list(parser.posts(limit=1))) == 1

    def test_post_fields(self, parser):
        post = next(parser.posts())
        assert post.post_id == '1'
        assert post.link == 'https://weaselhat.com/2020/01/02/first-post/'
        assert post.pub_date == 'Thu, 02 Jan 2020 10:30:00 +0000'
        assert post.post_date == '2020-01-02 10:30:00'
        assert post.content == '<p>Hello & welcome</p>'
        assert post.status == 'publish'
        assert not post.is_draft

    def test_categories_merged(self, parser):
        post = next(parser.posts())
        assert post.categories == ('OCaml', 'types')

    def test_meta(self, parser):
        post = next(parser.posts())
        assert post.meta[0].key == '_yoast_wpseo_metadesc'
        assert post.meta[0].value == 'About the first post'

    def test_comments(self, parser):
        approved, spam = next(parser.posts()).comments
        assert approved.author == 'Ann'
        assert approved.date_gmt == '2020-01-03 09:00:00'
        assert approved.approved
        assert spam.author is None
        assert spam.date_gmt is None
        assert not spam.approved

    def test_draft_flag(self, parser):
        drafts = [post for post in parser.posts() if post.is_draft]
        assert [post.post_id for post in drafts] == ['3']

    def test_custom_post_types(self, export_file):
        parser = WXRParser(str(export_file), post_types=('post', 'page'))
        parser.load_export()
        assert len(list(parser.posts())) == 3


class TestSummary:
    """Export summary."""

    def test_summary(self, parser):
        assert parser.get_summary() == {
            'site_title': 'Weaselhat',
            'total_items': 3,
            'total_posts': 2,
        }
