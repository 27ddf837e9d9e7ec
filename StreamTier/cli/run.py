# 05.10.26

import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional, Tuple


# External libraries
import httpx
from rich.console import Console


# Internal utilities
from StreamTier.utils import config_manager, Logger
from StreamTier.version import __version__, __title__


# Logic
from StreamTier.core.engine import QualityEngine, config_from_settings
from StreamTier.core.models import ParseResult, QualityConfig
from StreamTier.core.rewrite import select_target
from StreamTier.core.session import EVENT_ARCHIVED_STREAM
from StreamTier.transport.probe import TierProbe
from .display import TablePrinter


# Variable
console = Console()
logger = logging.getLogger(__name__)
TIMEOUT = config_manager.get_int('REQUESTS', 'timeout')
USER_AGENT = config_manager.get('REQUESTS', 'user_agent')


def load_source(source: str) -> Tuple[bytes, Optional[str]]:
    """Read a manifest from an http(s) URL or a local file. Returns (content, url)."""
    if source.startswith(('http://', 'https://')):
        response = httpx.get(source, headers={'User-Agent': USER_AGENT}, timeout=TIMEOUT, follow_redirects=True)
        response.raise_for_status()
        return response.content, str(response.url)

    return Path(source).read_bytes(), None


def build_config(args) -> QualityConfig:
    """CLI flags override the QUALITY section."""
    forced_id = getattr(args, 'forced_id', None)
    force_max = getattr(args, 'force_max', False)
    if forced_id or force_max:
        return QualityConfig(force_max=bool(force_max), forced_id=forced_id)

    return config_from_settings()


def load_engine(args, source: Optional[str] = None) -> Tuple[QualityEngine, Optional[ParseResult]]:
    """Engine configured from the flags, with the manifest at source ingested when given."""
    engine = QualityEngine()
    engine.set_config(build_config(args))

    if not source:
        return engine, None

    content, url = load_source(source)
    return engine, engine.ingest_manifest(content, args.url or url)


def cmd_inspect(args, printer: TablePrinter) -> int:
    engine, result = load_engine(args, args.source)

    if result.active_quality is not None:
        console.print(f"[cyan]Active quality:[/cyan] {result.active_quality.resolution} {result.active_quality.bitrate} Kbps")

    if not result.representations:
        console.print("[yellow]No video representations found")
        return 1

    selected = select_target(result.representations, engine.session.get_config())
    printer.print_representations(result, selected)
    return 0


def cmd_rewrite(args, printer: TablePrinter) -> int:
    engine, result = load_engine(args, args.manifest)
    if not result.representations:
        raise ValueError(f"No video representations found in {args.manifest}")

    pairs = [(url, engine.rewrite(url)) for url in args.urls]
    printer.print_rewrites(pairs)

    if args.fallback:
        for original, rewritten in pairs:
            fallback = engine.fallback_url(original, rewritten)
            console.print(f"[magenta]fallback[/magenta] {original}\n  -> {fallback or '(none)'}")

    return 0


def cmd_analyze(args, printer: TablePrinter) -> int:
    engine, _ = load_engine(args, args.manifest)

    def on_event(event, payload):
        if event == EVENT_ARCHIVED_STREAM:
            console.print(f"[red]Archived stream (tier {payload.current_tier}), quality cannot be forced")

    engine.session.subscribe(on_event)

    for url in args.urls:
        printer.print_quality(url, engine.analyze(url))
    return 0


def cmd_probe(args, printer: TablePrinter) -> int:
    probe = TierProbe(args.url, delay=args.delay)
    results = probe.run(args.start, args.stop, args.step)
    printer.print_probe(results)
    return 0


def setup_argument_parser() -> argparse.ArgumentParser:
    """Setup and return configured argument parser."""
    parser = argparse.ArgumentParser(
        prog='streamtier',
        description='Inspect DASH/HLS quality tiers and rewrite segment URLs to force a tier.',
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f'{__title__} {__version__}')
    parser.add_argument('--debug', action='store_true', help='Verbose logging')

    subparsers = parser.add_subparsers(dest='command', required=True)

    inspect = subparsers.add_parser('inspect', help='List the quality tiers of a manifest')
    inspect.add_argument('source', help='Manifest file or http(s) URL')
    inspect.add_argument('--url', help='Request URL to attribute a local file to')
    inspect.add_argument('--force-max', action='store_true', help='Mark the tier force-max would pick')
    inspect.add_argument('--forced-id', help='Mark a specific representation id')
    inspect.set_defaults(func=cmd_inspect)

    rewrite = subparsers.add_parser('rewrite', help='Rewrite segment/playlist URLs towards a tier')
    rewrite.add_argument('urls', nargs='+', help='URLs to rewrite')
    rewrite.add_argument('-m', '--manifest', required=True, help='Manifest file or http(s) URL')
    rewrite.add_argument('--url', help='Request URL to attribute a local manifest to')
    rewrite.add_argument('--force-max', action='store_true', help='Target the best tier (first >= 1080p)')
    rewrite.add_argument('--forced-id', help='Target a specific representation id')
    rewrite.add_argument('--fallback', action='store_true', help='Also show the one-tier-down fallback URL')
    rewrite.set_defaults(func=cmd_rewrite)

    analyze = subparsers.add_parser('analyze', help='Infer resolution/bitrate from segment URLs')
    analyze.add_argument('urls', nargs='+', help='Segment URLs')
    analyze.add_argument('-m', '--manifest', help='Manifest file or http(s) URL for exact values')
    analyze.add_argument('--url', help='Request URL to attribute a local manifest to')
    analyze.set_defaults(func=cmd_analyze)

    probe = subparsers.add_parser('probe', help='Discover the bitrate tiers a CDN serves')
    probe.add_argument('url', help="Segment URL with a '_TIER/' placeholder or a real '_1234/' tier")
    probe.add_argument('--start', type=int, default=None, help='Highest tier (kbps)')
    probe.add_argument('--stop', type=int, default=None, help='Lowest tier (kbps)')
    probe.add_argument('--step', type=int, default=None, help='Step between tiers (kbps)')
    probe.add_argument('--delay', type=float, default=None, help='Pause between requests (s)')
    probe.set_defaults(func=cmd_probe)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    Logger(level=logging.DEBUG if args.debug else None)
    printer = TablePrinter(console)

    try:
        return args.func(args, printer)

    except (httpx.HTTPError, OSError, ValueError) as e:
        console.print(f"[red]Error: {e}")
        return 1

    except KeyboardInterrupt:
        console.print("\n[red]Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
