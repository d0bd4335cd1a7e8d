#!/usr/bin/env python3
"""
Site Migrator - move existing web pages into a WordPress import file.

This tool renders each listed page with Playwright, strips it down to
portable content, classifies it as a post or a page, collects its
images and writes a CSV for the "Really Simple CSV Importer" plugin.

Usage:
    python -m site_migrator.main --urls urls.txt --output ./output

Features:
    - Renders JavaScript pages with Playwright
    - Removes layout chrome, scripts and presentation attributes
    - Converts Word-style bullet paragraphs into real lists
    - Rewrites internal links to site-relative paths
    - Downloads content images and converts AVIF to JPEG
    - Classifies posts and pages by selector or keyword heuristics
"""

import argparse
import asyncio
import logging
import os
import sys
from dataclasses import replace

from site_migrator.config import (
    load_classification_selectors,
    load_config,
    load_link_rewrites,
    MigrationConfig,
)
from site_migrator.fetcher import load_url_list
from site_migrator.pipeline import MigrationPipeline, STAGES
from site_migrator.utils.log import (
    setup_logger,
    print_status,
    print_success,
    print_error,
    print_info,
    print_warning
)


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog='site-migrator',
        description='Migrate web pages into a WordPress CSV import file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --urls urls.txt --output ./output
    %(prog)s --urls urls.txt --post-selector blog-post --page-selector .page-content
    %(prog)s --stage export --output ./output
    %(prog)s --urls urls.txt --no-images --remove .share-buttons --remove .comments
        """
    )

    parser.add_argument(
        '--urls', '-u',
        type=str,
        help='Text file with one URL per line, optionally followed by "post" or "page"'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default=None,
        help='Output directory (default: ./output)'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='JSON configuration file'
    )

    parser.add_argument(
        '--stage',
        choices=STAGES,
        default='all',
        help='Run a single stage using artifacts from a previous run (default: all)'
    )

    # Classification
    parser.add_argument(
        '--post-selector',
        type=str,
        help='CSS selector that marks a document as a post'
    )

    parser.add_argument(
        '--page-selector',
        type=str,
        help='CSS selector that marks a document as a page'
    )

    parser.add_argument(
        '--selectors-file',
        type=str,
        help='JSON file with {"post": selector, "page": selector}'
    )

    # Sanitizer
    parser.add_argument(
        '--link-map',
        type=str,
        help='JSON file mapping URL patterns to new paths'
    )

    parser.add_argument(
        '--remove',
        action='append',
        default=[],
        metavar='SELECTOR',
        help='Extra CSS selector to remove from content (repeatable)'
    )

    parser.add_argument(
        '--keep-headings',
        action='store_true',
        help='Keep h1 elements in the content'
    )

    # Fetcher
    parser.add_argument(
        '--timeout',
        type=int,
        default=None,
        help='Page load timeout in milliseconds (default: 60000)'
    )

    parser.add_argument(
        '--retries',
        type=int,
        default=None,
        help='Attempts per URL (default: 2)'
    )

    parser.add_argument(
        '--delay',
        type=float,
        default=None,
        help='Delay between page fetches in seconds (default: 1.0)'
    )

    parser.add_argument(
        '--no-headless',
        action='store_true',
        help='Run browser in visible mode (useful for debugging)'
    )

    # Assets
    parser.add_argument(
        '--concurrency', '-c',
        type=int,
        default=None,
        help='Maximum concurrent image downloads (default: 5)'
    )

    parser.add_argument(
        '--no-images',
        action='store_true',
        help='Skip image downloads and remove images from content'
    )

    parser.add_argument(
        '--no-convert',
        action='store_true',
        help='Keep AVIF images instead of converting them to JPEG'
    )

    # Export
    parser.add_argument(
        '--csv',
        type=str,
        help='Path of the CSV file (default: <output>/export/wordpress-import.csv)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress output except errors'
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MigrationConfig:
    """
    Merge the configuration file with command line overrides.

    Args:
        args: Parsed arguments

    Returns:
        MigrationConfig for the run
    """
    config = load_config(args.config)

    if args.output:
        config = replace(config, output_dir=args.output)

    fetch = config.fetch
    if args.timeout is not None:
        fetch = replace(fetch, timeout=args.timeout)
    if args.retries is not None:
        fetch = replace(fetch, max_retries=max(1, args.retries))
    if args.delay is not None:
        fetch = replace(fetch, delay=args.delay)
    if args.no_headless:
        fetch = replace(fetch, headless=False)

    classification = config.classification
    if args.selectors_file:
        from_file = load_classification_selectors(args.selectors_file)
        classification = replace(
            classification,
            post_selector=from_file.post_selector,
            page_selector=from_file.page_selector,
        )
    if args.post_selector:
        classification = replace(classification, post_selector=args.post_selector)
    if args.page_selector:
        classification = replace(classification, page_selector=args.page_selector)

    assets = config.assets
    if args.concurrency is not None:
        assets = replace(assets, max_concurrent=max(1, args.concurrency))
    if args.no_images:
        assets = replace(assets, enabled=False)
    if args.no_convert:
        assets = replace(assets, auto_convert=False)

    sanitize = config.sanitize
    if args.link_map:
        sanitize = replace(sanitize, link_rewrites=load_link_rewrites(args.link_map))
    if args.remove:
        sanitize = replace(
            sanitize, removal_selectors=sanitize.removal_selectors + tuple(args.remove)
        )
    if args.keep_headings:
        sanitize = replace(sanitize, remove_headings=False)
    sanitize = replace(sanitize, remove_images=not assets.enabled)

    export = config.export
    if args.csv:
        export = replace(export, output_path=args.csv)

    return replace(
        config,
        fetch=fetch,
        classification=classification,
        sanitize=sanitize,
        assets=assets,
        export=export,
    )


def print_banner() -> None:
    """Print the application banner."""
    banner = """
╔═══════════════════════════════════════════════════════════════╗
║                      SITE MIGRATOR v1.0                       ║
║             Web Pages to WordPress Import Bundle              ║
╚═══════════════════════════════════════════════════════════════╝
    """
    print_status(banner, "bold cyan")


def print_summary(result) -> None:
    """
    Print the run summary.

    Args:
        result: MigrationResult object
    """
    print("\n" + "=" * 60)
    print_success("MIGRATION SUMMARY")
    print("=" * 60)
    for summary in result.summaries:
        print(
            f"  {summary.stage.capitalize():<10} "
            f"ok: {summary.succeeded:<5} failed: {summary.failed:<5} skipped: {summary.skipped}"
        )
    print(f"  Errors:     {len(result.errors)}")
    print(f"  Duration:   {result.duration_seconds:.1f} seconds")
    print("=" * 60 + "\n")


async def main(argv=None) -> int:
    """
    Main entry point for the site migrator.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_arguments(argv)

    log_level = logging.DEBUG if args.verbose else (logging.WARNING if args.quiet else logging.INFO)
    setup_logger(level=log_level)

    if not args.quiet:
        print_banner()

    try:
        if args.stage in ('all', 'fetch') and not args.urls:
            raise ValueError("--urls is required for the fetch stage")

        config = build_config(args)
        entries = load_url_list(args.urls) if args.urls else []

        if not args.quiet:
            if entries:
                print_info(f"URLs: {len(entries)} from {args.urls}")
            print_info(f"Stage: {args.stage}")
            if not config.assets.enabled:
                print_warning("Image processing disabled")

        pipeline = MigrationPipeline(config)
        result = await pipeline.run(entries, stage=args.stage)

        if not args.quiet:
            print_summary(result)

        if result.export_path:
            print_success(f"Import file written to: {os.path.abspath(result.export_path)}")

        return 0

    except KeyboardInterrupt:
        print_error("\nMigration interrupted by user")
        return 1
    except ValueError as e:
        print_error(f"Invalid input: {e}")
        return 1
    except Exception as e:
        print_error(f"Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def run() -> None:
    """Entry point wrapper for running as module."""
    sys.exit(asyncio.run(main()))


if __name__ == '__main__':
    run()
