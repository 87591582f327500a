"""Tests for frontmatter assembly."""

import pytest

from wpconverter.config import ConversionConfig, FrontmatterDateMode
from wpconverter.errors import FrontmatterError
from wpconverter.frontmatter import Frontmatter, FrontmatterBuilder, quote_double, quote_single
from wpconverter.image_handler import AssetRegistry
from wpconverter.models import MetaEntry, PostRecord


def make_record(**overrides):
    values = dict(
        post_id='42',
        title='Hello World',
        content='<p>Hi</p>',
        status='publish',
        link='https://www.weaselhat.com/2020/01/02/hello-world/',
        pub_date='Thu, 02 Jan 2020 10:30:00 +0000',
        post_date='2020-01-02 05:30:00',
    )
    values.update(overrides)
    return PostRecord(**values)


@pytest.fixture
def builder(config):
    return FrontmatterBuilder(config)


class TestQuoting:
    """Scalar quoting rules."""

    def test_single_quotes_doubled(self):
        assert quote_single("It's") == "'It''s'"

    def test_double_quote_escapes_and_collapses(self):
        assert quote_double('a "b"\\c\n  d') == '"a \\"b\\"\\\\c d"'


class TestDescription:
    """Description selection."""

    def test_longest_meta_value_wins(self, builder):
        record = make_record(
            description='ten chars.',
            meta=(MetaEntry('_yoast_wpseo_metadesc', 'x' * 40),),
        )
        assert builder.select_description(record) == 'x' * 40

    def test_tie_keeps_native_description(self, builder):
        record = make_record(
            description='native',
            meta=(MetaEntry('_aioseo_description', 'plugin'),),
        )
        assert builder.select_description(record) == 'native'

    def test_unrelated_meta_ignored(self, builder):
        record = make_record(description='', meta=(MetaEntry('_edit_lock', 'a much longer value here'),))
        assert builder.select_description(record) == ''


class TestHeroSelection:
    """Hero image precedence."""

    def test_explicit_hero_first(self, builder):
        registry = AssetRegistry('post')
        registry.record('https://example.com/other.jpg', 'other.jpg')
        registry.record('https://example.com/og.png', 'og.png')
        assert builder.select_hero(registry, 'https://example.com/og.png') == './img/og.png'

    def test_first_non_gif(self, builder):
        registry = AssetRegistry('post')
        registry.record('https://example.com/anim.gif', 'anim.gif')
        registry.record('https://example.com/still.png', 'still.png')
        assert builder.select_hero(registry) == './img/still.png'

    def test_unlocalized_explicit_hero_falls_through(self, builder):
        registry = AssetRegistry('post')
        registry.record('https://example.com/body.jpg', 'body.jpg')
        assert builder.select_hero(registry, 'https://gone.example.com/og.png') == './img/body.jpg'

    def test_default_hero(self, tmp_path):
        config = ConversionConfig(tmp_path, 'inline', 'published', default_hero='/images/default.png')
        registry = AssetRegistry('post')
        registry.record('https://example.com/anim.gif', 'anim.gif')
        assert FrontmatterBuilder(config).select_hero(registry) == '/images/default.png'

    def test_no_hero_at_all(self, builder):
        assert builder.select_hero(AssetRegistry('post')) is None

    def test_hero_candidates_from_meta(self, builder):
        record = make_record(meta=(
            MetaEntry('_yoast_wpseo_opengraph-image', 'https://example.com/og.png'),
            MetaEntry('_yoast_wpseo_twitter-image', 'relative/tw.png'),
        ))
        assert builder.hero_candidates(record) == ['https://example.com/og.png']


class TestRedirectPath:
    """Canonical link to site-relative path."""

    @pytest.mark.parametrize('link', [
        'https://www.weaselhat.com/2020/01/02/hello-world/',
        'https://weaselhat.com/2020/01/02/hello-world/',
        'http://www.weaselhat.com/2020/01/02/hello-world/',
        'http://weaselhat.com/2020/01/02/hello-world/',
    ])
    def test_prefix_variants_stripped(self, builder, link):
        assert builder.redirect_path(make_record(link=link)) == '/2020/01/02/hello-world/'

    def test_site_root(self, builder):
        assert builder.redirect_path(make_record(link='https://weaselhat.com')) == '/'

    def test_other_hosts_kept(self, builder):
        link = 'https://elsewhere.org/post/'
        assert builder.redirect_path(make_record(link=link)) == link

    def test_missing_link(self, builder):
        with pytest.raises(FrontmatterError):
            builder.redirect_path(make_record(link=None))


class TestBuild:
    """Full frontmatter blocks."""

    def test_id_and_date_mode(self, builder):
        frontmatter = builder.build(make_record(), AssetRegistry('post'))
        assert frontmatter.keys() == ['title', 'description', 'date', 'id', 'redirect_from']
        assert frontmatter.render() == (
            "---\n"
            "title: 'Hello World'\n"
            'description: ""\n'
            "date: 2020-01-02 10:30:00\n"
            "id: 42\n"
            "redirect_from:\n"
            "  - /2020/01/02/hello-world/\n"
            "---\n"
        )

    def test_published_mode(self, tmp_path):
        config = ConversionConfig(tmp_path, 'inline', FrontmatterDateMode.PUBLISHED, site_hosts=['weaselhat.com'])
        frontmatter = FrontmatterBuilder(config).build(make_record(), AssetRegistry('post'))
        assert frontmatter.get('published') == '2020-01-02'
        assert frontmatter.get('date') is None
        assert frontmatter.get('id') is None

    def test_categories_and_hero(self, builder):
        registry = AssetRegistry('post')
        registry.record('https://example.com/pic.jpg', 'pic.jpg')
        record = make_record(categories=('Programming Languages', 'OCaml'))
        frontmatter = builder.build(record, registry)
        assert frontmatter.keys()[-2:] == ['categories', 'hero']
        assert frontmatter.get('categories') == '"Programming Languages, OCaml"'
        assert frontmatter.get('hero') == './img/pic.jpg'

    def test_title_and_description_escaping(self, builder):
        record = make_record(title="Don't panic", description='Say "hi"')
        frontmatter = builder.build(record, AssetRegistry('post'))
        assert frontmatter.get('title') == "'Don''t panic'"
        assert frontmatter.get('description') == '"Say \\"hi\\""'

    def test_falls_back_to_post_date(self, builder):
        record = make_record(pub_date='Mon, 30 Nov -0001 00:00:00 +0000', post_date='2019-05-06 07:08:09')
        frontmatter = builder.build(record, AssetRegistry('post'))
        assert frontmatter.get('date') == '2019-05-06 07:08:09'

    def test_unparseable_dates(self, builder):
        record = make_record(pub_date='sometime', post_date='0000-00-00 00:00:00')
        with pytest.raises(FrontmatterError):
            builder.build(record, AssetRegistry('post'))

    def test_missing_link_fails_build(self, builder):
        with pytest.raises(FrontmatterError):
            builder.build(make_record(link=''), AssetRegistry('post'))


class TestFrontmatter:
    """Ordered header rendering."""

    def test_render_keeps_insertion_order(self):
        frontmatter = Frontmatter()
        frontmatter.add('b', '1')
        frontmatter.add('a', '2')
        assert frontmatter.render() == '---\nb: 1\na: 2\n---\n'
