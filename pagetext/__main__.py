"""CLI entry point: python -m pagetext TARGET [options]"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from pagetext.core import extract
from pagetext.errors import PagetextError
from pagetext.fetcher import fetch
from pagetext.items import ExtractionResult
from pagetext.serializers import serialize
from pagetext.settings import LOG_FORMAT, LOG_LEVEL, ExtractionConfig, OutputFormat

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagetext",
        description=(
            "Extract the main text and metadata from an HTML page.\n"
            "Deterministic, no JavaScript, no browser."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("target", metavar="TARGET",
                        help="http(s) URL, path to an HTML file, or '-' for stdin")
    parser.add_argument("--format", dest="output_format", default=OutputFormat.TEXT.value,
                        choices=[f.value for f in OutputFormat],
                        help="Output format (default: text)")
    parser.add_argument("-o", "--output", default=None, metavar="FILE",
                        help="Write output to FILE instead of stdout")
    parser.add_argument("--links", action=argparse.BooleanOptionalAction, default=None,
                        help="Keep hyperlinks in html/markdown output (default: on)")
    parser.add_argument("--images", action=argparse.BooleanOptionalAction, default=None,
                        help="Keep <img> elements instead of their alt text (default: off)")
    parser.add_argument("--tables", action=argparse.BooleanOptionalAction, default=None,
                        help="Keep tables (default: on)")
    parser.add_argument("--metadata", action=argparse.BooleanOptionalAction, default=None,
                        help="Extract title, author, date and description (default: on)")
    parser.add_argument("--skip-references", action="store_true", default=False,
                        help="Drop References, See also and similar sections (always on for Wikipedia)")
    parser.add_argument("--min-size", type=int, default=None, metavar="N",
                        help="Minimum characters a content root must yield (default: 250)")
    parser.add_argument("--keep-tag", action="append", default=[], metavar="TAG",
                        help="Keep a normally removed tag such as iframe (repeatable)")
    parser.add_argument("--base-url", default=None, metavar="URL",
                        help="Source URL for files and stdin; resolves relative links")
    parser.add_argument("--timeout", type=int, default=None, metavar="SECONDS",
                        help="Network timeout for URL targets (default: 30)")
    parser.add_argument("--user-agent", default=None, metavar="UA",
                        help="User-Agent header for URL targets")
    parser.add_argument("--log-level", default=LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {LOG_LEVEL})")
    parser.add_argument("--show-meta", action="store_true", default=False,
                        help="Print a metadata table to stderr")
    return parser


def _config_from_args(args: argparse.Namespace) -> ExtractionConfig:
    options = {
        "include_links": args.links,
        "include_images": args.images,
        "include_tables": args.tables,
        "extract_metadata": args.metadata,
        "skip_reference_sections": args.skip_references or None,
        "min_extracted_size": args.min_size,
        "timeout": args.timeout,
        "user_agent": args.user_agent,
    }
    return ExtractionConfig(
        output_format=args.output_format,
        keep_tags=args.keep_tag,
        **{k: v for k, v in options.items() if v is not None},
    )


def _is_url(target: str) -> bool:
    return target.startswith(("http://", "https://"))


def _run(target: str, base_url: str | None, config: ExtractionConfig) -> ExtractionResult:
    if _is_url(target):
        return fetch(target, config)
    if target == "-":
        raw = sys.stdin.buffer.read()
    else:
        raw = Path(target).read_bytes()
    return extract(raw, url=base_url, config=config)


def _print_meta(result: ExtractionResult) -> None:
    from rich import box
    from rich.console import Console
    from rich.table import Table

    tbl = Table(title="[bold cyan]Metadata[/bold cyan]", box=box.SIMPLE_HEAVY, show_header=False)
    tbl.add_column("Field", style="bold", no_wrap=True)
    tbl.add_column("Value", max_width=70)
    rows = [
        ("Title", result.title),
        ("Author", result.author),
        ("Date", result.date),
        ("Description", result.description),
        ("Site", result.sitename),
        ("Categories", ", ".join(result.categories)),
        ("URL", result.url),
        ("Tier", result.tier),
        ("Words", str(result.word_count)),
    ]
    for field, value in rows:
        tbl.add_row(field, value or "[dim]-[/dim]")
    Console(stderr=True).print(tbl)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=LOG_FORMAT, stream=sys.stderr)

    try:
        config = _config_from_args(args)
    except ValidationError as exc:
        parser.error(f"invalid option value: {exc.errors()[0]['msg']}")

    try:
        result = _run(args.target, args.base_url, config)
        output = serialize(result, config.output_format)
    except PagetextError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return exc.exit_code
    except OSError as exc:
        print(f"ERROR: Could not read {args.target}: {exc}", file=sys.stderr)
        return 1

    if args.show_meta:
        _print_meta(result)

    if args.output:
        try:
            Path(args.output).write_text(output + "\n", encoding="utf-8")
        except OSError as exc:
            print(f"ERROR: Could not write {args.output}: {exc}", file=sys.stderr)
            return 1
        logger.info("wrote %s", args.output)
    else:
        sys.stdout.write(output + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
