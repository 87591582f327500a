#!/usr/bin/env python3
"""
WordPress to static site converter (wp2static)

A Python CLI tool for converting WordPress WXR exports into Markdown posts
with locally cached images.
"""

import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn

from wpconverter import (
    CommentErrorPolicy,
    CommentRenderMode,
    ConversionConfig,
    FrontmatterDateMode,
    PostOrchestrator,
    PostResult,
    WXRParser,
)
from wpconverter.orchestrator import STATUS_FAILED, STATUS_SKIPPED, STATUS_WRITTEN, slugify

console = Console()

# Load environment variables
load_dotenv()


def _split_hosts(ctx, param, value: Tuple[str, ...]) -> List[str]:
    hosts = []
    for item in value:
        hosts.extend(host.strip() for host in item.split(',') if host.strip())
    return hosts


@click.command()
@click.argument('export_file', type=click.Path(exists=True, path_type=Path))
@click.option('--output', '-o', type=click.Path(path_type=Path), default=Path('./out'),
              envvar='WP2STATIC_OUTPUT', help='Output directory for generated files')
@click.option('--comments', 'comment_mode', required=True, envvar='WP2STATIC_COMMENT_MODE',
              type=click.Choice([mode.value for mode in CommentRenderMode]),
              help='Render comments inline in index.md or as separate files')
@click.option('--date-mode', required=True, envvar='WP2STATIC_DATE_MODE',
              type=click.Choice([mode.value for mode in FrontmatterDateMode]),
              help="Frontmatter date keys: 'id-date' (date + id) or 'published'")
@click.option('--site-host', 'site_hosts', multiple=True, envvar='WP2STATIC_SITE_HOSTS',
              callback=_split_hosts, help='Host of the original site, stripped from redirect paths')
@click.option('--default-hero', envvar='WP2STATIC_DEFAULT_HERO',
              help='Hero image used when a post has no usable image')
@click.option('--timeout', type=float, default=30.0, show_default=True,
              help='Timeout in seconds for each image download')
@click.option('--comment-errors', type=click.Choice([policy.value for policy in CommentErrorPolicy]),
              default=CommentErrorPolicy.CONTINUE.value, show_default=True,
              help='Skip a bad comment or abandon its whole post')
@click.option('--include-unapproved', is_flag=True, help='Also convert unapproved and spam comments')
@click.option('--limit', '-l', type=int, help='Limit number of posts to process (for testing)')
@click.option('--dry-run', is_flag=True, help='Show what would be done without writing files')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def cli(export_file: Path, output: Path, comment_mode: str, date_mode: str, site_hosts: List[str],
        default_hero: Optional[str], timeout: float, comment_errors: str, include_unapproved: bool,
        limit: Optional[int], dry_run: bool, verbose: bool):
    """
    Convert a WordPress export to static-site Markdown documents.

    EXPORT_FILE: Path to the WordPress WXR export file
    """

    if verbose:
        console.print(f"[blue]Export file: {export_file}[/blue]")
        console.print(f"[blue]Output directory: {output}[/blue]")
        console.print(f"[blue]Comments: {comment_mode}, date mode: {date_mode}[/blue]")
        if site_hosts:
            console.print(f"[blue]Site hosts: {', '.join(site_hosts)}[/blue]")
        if limit:
            console.print(f"[blue]Limit: {limit} posts[/blue]")
        console.print(f"[blue]Dry run: {dry_run}[/blue]")
        console.print()

    config = ConversionConfig(
        output_dir=output,
        comment_mode=CommentRenderMode(comment_mode),
        date_mode=FrontmatterDateMode(date_mode),
        site_hosts=site_hosts,
        default_hero=default_hero,
        request_timeout=timeout,
        comment_errors=CommentErrorPolicy(comment_errors),
        include_unapproved_comments=include_unapproved,
    )

    try:
        converter = WordPressToStaticConverter(config, verbose=verbose)
        converter.convert(export_file=export_file, limit=limit, dry_run=dry_run)

    except KeyboardInterrupt:
        console.print("\n[red]Conversion interrupted by user[/red]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Conversion failed: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


class WordPressToStaticConverter:
    """Main converter orchestrating the conversion of a whole export."""

    def __init__(self, config: ConversionConfig, verbose: bool = False):
        """Initialize converter with options."""
        self.config = config
        self.verbose = verbose

    def convert(self, export_file: Path, limit: Optional[int] = None, dry_run: bool = False) -> List[PostResult]:
        """Main conversion process."""

        console.print("🚀 [bold blue]Starting WordPress conversion...[/bold blue]\n")

        # Phase 1: Parse export file
        console.print("📋 [blue]Phase 1: Parsing export file...[/blue]")
        parser = WXRParser(str(export_file))
        parser.load_export()

        summary = parser.get_summary()
        console.print(f"   Found {summary['total_posts']} posts in: {escape(summary['site_title'])}")
        if limit and limit < summary['total_posts']:
            console.print(f"   [yellow]Limited to {limit} posts for testing[/yellow]")
        console.print()

        if dry_run:
            console.print("🔍 [yellow]Phase 2: Dry run - showing what would be generated...[/yellow]")
            self._show_dry_run_output(parser, limit)
            return []

        # Phase 2: Convert posts one at a time
        console.print("📝 [blue]Phase 2: Converting posts...[/blue]")
        self.config.output_dir.mkdir(parents=True, exist_ok=True)
        orchestrator = PostOrchestrator(self.config)
        total = min(summary['total_posts'], limit) if limit else summary['total_posts']
        results = []

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=console
        ) as progress:

            task = progress.add_task("Converting posts", total=total)

            for record in parser.posts(limit=limit):
                results.append(orchestrator.process_post(record))
                progress.advance(task)

        console.print()
        console.print("✅ [bold green]Conversion completed![/bold green]")

        self._show_summary(results)
        return results

    def _show_dry_run_output(self, parser: WXRParser, limit: Optional[int]) -> None:
        """Show what would be generated in dry run mode."""
        records = list(parser.posts(limit=limit))
        published = [record for record in records if not record.is_draft]
        console.print(f"   Would create {len(published)} post directories in: {self.config.output_dir}/")
        console.print(f"   Would skip {len(records) - len(published)} drafts")

        if published:
            console.print("\n   Sample posts that would be generated:")
            for record in published[:3]:
                console.print(f"   - {escape(slugify(record.title))}/index.md")
            if len(published) > 3:
                console.print(f"   ... and {len(published) - 3} more")

    def _show_summary(self, results: List[PostResult]) -> None:
        """Show final summary."""
        written = [r for r in results if r.status == STATUS_WRITTEN]
        skipped = [r for r in results if r.status == STATUS_SKIPPED]
        failed = [r for r in results if r.status == STATUS_FAILED]

        console.print("\n📈 [bold blue]Conversion Summary:[/bold blue]")
        console.print(f"   Posts written: {len(written)}")
        console.print(f"   Drafts skipped: {len(skipped)}")
        console.print(f"   Posts failed: {len(failed)}")
        console.print(f"   Images localized: {sum(len(r.images) for r in written)}")
        console.print(f"   Comments converted: {sum(r.comments for r in written)}")

        if failed and self.verbose:
            console.print("\n[red]Failed posts:[/red]")
            for result in failed:
                console.print(f"   - {escape(result.title)}: {escape(result.error or 'unknown error')}")

        console.print(f"\n🎉 [bold green]Files generated in: {self.config.output_dir}[/bold green]")


if __name__ == '__main__':
    cli()
