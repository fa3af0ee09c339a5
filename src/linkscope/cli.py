"""Command-line interface for linkscope."""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Optional

import pydantic
import yaml
from rich.console import Console
from rich.markup import escape
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TaskID, TextColumn

from . import __version__
from .batch import BatchOrchestrator, read_url_file
from .diagnostics import ErrorCatalog
from .errors import LinkscopeError, ValidationError
from .extraction import ExtractionHooks, ExtractionOrchestrator
from .formatters import FORMATTERS, BaseFormatter, get_formatter
from .logging_config import setup_logging
from .models.config import Cookie, LinkscopeConfig
from .models.links import ExtractionResult

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_INVALID_INPUT = 2


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="linkscope",
        description="Extract, describe and classify every link on a web page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List every link of a page
  linkscope https://example.com

  # Internal links only, as Markdown
  linkscope https://example.com --internal-only -f markdown

  # Many pages from a file, five at a time, saved as JSON
  linkscope --batch urls.txt --concurrency 5 -f json -o links.json

  # Server-rendered page without a browser
  linkscope https://example.com --static
        """,
    )

    parser.add_argument(
        "url",
        nargs="?",
        help="Page to extract links from",
    )

    parser.add_argument(
        "--batch",
        "-b",
        type=Path,
        metavar="FILE",
        help="File with one URL per line ('#' starts a comment)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        metavar="FILE",
        help="YAML configuration file (flags override its values)",
    )

    # Output
    output_group = parser.add_argument_group("output")
    output_group.add_argument(
        "--format",
        "-f",
        choices=list(FORMATTERS),
        default=None,
        help="Output format (default: text)",
    )
    output_group.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Write output to this file instead of stdout",
    )

    # Filtering
    filter_group = parser.add_argument_group("filtering")
    filter_group.add_argument(
        "--internal-only",
        action="store_true",
        help="Keep only links on the page's own host",
    )
    filter_group.add_argument(
        "--external-only",
        action="store_true",
        help="Keep only http(s) links to other hosts",
    )
    filter_group.add_argument(
        "--domains",
        nargs="+",
        metavar="DOMAIN",
        help="Keep only links to these domains (subdomains included)",
    )
    filter_group.add_argument(
        "--exclude-domains",
        nargs="+",
        metavar="DOMAIN",
        help="Drop links to these domains (subdomains included)",
    )
    filter_group.add_argument(
        "--url-pattern",
        type=str,
        metavar="REGEX",
        help="Keep only links whose URL matches this regular expression",
    )
    filter_group.add_argument(
        "--protocols",
        nargs="+",
        metavar="PROTOCOL",
        help="Keep only these protocols (e.g. https mailto)",
    )

    # Page loading
    page_group = parser.add_argument_group("page loading")
    page_group.add_argument(
        "--timeout",
        type=int,
        default=None,
        metavar="MS",
        help="Page load timeout in milliseconds (default: 30000)",
    )
    page_group.add_argument(
        "--wait-for-selector",
        type=str,
        metavar="CSS",
        help="Wait for this selector before reading links",
    )
    page_group.add_argument(
        "--header",
        action="append",
        metavar="KEY:VALUE",
        help="Extra HTTP header (repeatable)",
    )
    page_group.add_argument(
        "--cookie",
        action="append",
        metavar="NAME=VALUE",
        help="Cookie to set before loading (repeatable)",
    )
    page_group.add_argument(
        "--user-agent",
        type=str,
        help="Custom User-Agent string",
    )
    page_group.add_argument(
        "--proxy",
        type=str,
        metavar="URL",
        help="Proxy server URL",
    )
    page_group.add_argument(
        "--static",
        action="store_true",
        help="Fetch HTML without a browser (no JavaScript)",
    )

    # Extraction
    extraction_group = parser.add_argument_group("extraction")
    extraction_group.add_argument(
        "--include-metadata",
        action="store_true",
        help="Collect occurrences, nofollow, parent context and position",
    )
    extraction_group.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Pages processed at once in batch mode (default: 3)",
    )
    extraction_group.add_argument(
        "--retries",
        type=int,
        default=None,
        help="Retries on network failures for a single URL (default: 3)",
    )

    # Logging
    logging_group = parser.add_argument_group("logging")
    logging_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    logging_group.add_argument(
        "--log-file",
        type=Path,
        metavar="FILE",
        help="Also write logs to this file",
    )

    return parser


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``KEY:VALUE`` header flag."""
    key, sep, header_value = value.partition(":")
    if not sep or not key.strip():
        raise ValidationError(f"Invalid header: {value!r}", "header", "Must be KEY:VALUE")
    return key.strip(), header_value.strip()


def parse_cookie(value: str) -> Cookie:
    """Parse a ``NAME=VALUE`` cookie flag."""
    name, sep, cookie_value = value.partition("=")
    if not sep or not name.strip():
        raise ValidationError(f"Invalid cookie: {value!r}", "cookie", "Must be NAME=VALUE")
    return Cookie(name=name.strip(), value=cookie_value.strip())


def build_config(args: argparse.Namespace) -> LinkscopeConfig:
    """
    Merge the optional config file with command-line flags.

    Raises:
        ValidationError: On malformed flags or conflicting filters
        pydantic.ValidationError: On invalid option values
        yaml.YAMLError: On an unparseable config file
    """
    if args.config:
        try:
            config = LinkscopeConfig.from_yaml_file(args.config)
        except OSError as e:
            raise ValidationError(
                f"Failed to read config file: {e}",
                "config",
                "File must exist and be readable",
            ) from e
    else:
        config = LinkscopeConfig()

    data: dict[str, Any] = config.model_dump()
    extraction: dict[str, Any] = data["extraction"]

    filter_kwargs: dict[str, Any] = dict(extraction.get("filter") or {})
    if args.internal_only:
        filter_kwargs["internal_only"] = True
    if args.external_only:
        filter_kwargs["external_only"] = True
    if args.domains:
        filter_kwargs["domains"] = args.domains
    if args.exclude_domains:
        filter_kwargs["exclude_domains"] = args.exclude_domains
    if args.url_pattern:
        filter_kwargs["url_pattern"] = args.url_pattern
    if args.protocols:
        filter_kwargs["protocols"] = args.protocols
    if filter_kwargs:
        extraction["filter"] = filter_kwargs

    if filter_kwargs.get("internal_only") and filter_kwargs.get("external_only"):
        raise ValidationError(
            "--internal-only and --external-only cannot be combined",
            "filter",
            "Choose at most one of internal_only and external_only",
        )

    # Page loading
    if args.timeout is not None:
        extraction["timeout"] = args.timeout
    if args.wait_for_selector:
        extraction["wait_for_selector"] = args.wait_for_selector
    if args.header:
        extraction["headers"].update(parse_header(header) for header in args.header)
    if args.cookie:
        extraction["cookies"].extend(parse_cookie(cookie).model_dump() for cookie in args.cookie)
    if args.user_agent:
        extraction["user_agent"] = args.user_agent
    if args.proxy:
        extraction["proxy"] = args.proxy
    if args.static:
        data["renderer"] = "static"

    # Extraction
    if args.include_metadata:
        extraction["include_metadata"] = True
    if args.concurrency is not None:
        extraction["concurrency"] = args.concurrency
    if args.retries is not None:
        data["max_retries"] = args.retries

    # Output and logging
    if args.format:
        data["output_format"] = args.format
    if args.verbose:
        extraction["verbose"] = True
        data["log_level"] = "DEBUG"
    if args.log_file:
        data["log_file"] = args.log_file

    return LinkscopeConfig.model_validate(data)


class _ProgressHooks(ExtractionHooks):
    """Advance a progress bar as batch extractions finish."""

    def __init__(self, progress: Progress, task_id: TaskID) -> None:
        self.progress = progress
        self.task_id = task_id

    def on_extract_start(self, url: str) -> None:
        self.progress.update(self.task_id, description=f"[cyan]{escape(url)}")

    def on_extract_end(self, url: str, result: ExtractionResult) -> None:
        self.progress.advance(self.task_id)


def _emit(text: str, formatter: BaseFormatter, output: Optional[Path], console: Console) -> None:
    if output:
        path = formatter.save_formatted(text, output)
        console.print(f"[green]Saved:[/green] {escape(str(path))}")
        return
    sys.stdout.write(text if text.endswith("\n") else text + "\n")
    sys.stdout.flush()


def _report(console: Console, catalog: ErrorCatalog, error: BaseException) -> None:
    console.print(f"[red]{escape(catalog.render(error))}[/red]")


async def _run_single(
    url: str,
    config: LinkscopeConfig,
    output: Optional[Path],
    console: Console,
    catalog: ErrorCatalog,
) -> int:
    formatter = get_formatter(config.output_format)

    async with ExtractionOrchestrator(
        catalog=catalog,
        renderer_kind=config.renderer,
        headless=config.headless,
    ) as orchestrator:
        try:
            with console.status(f"Extracting links from {escape(url)}..."):
                result = await orchestrator.extract_with_retry(
                    url,
                    config.extraction,
                    max_retries=config.max_retries,
                )
        except LinkscopeError as e:
            _report(console, catalog, e)
            return EXIT_FAILURES

    _emit(formatter.format_result(result), formatter, output, console)
    for error in result.errors:
        _report(console, catalog, error)
    return EXIT_OK if result.succeeded else EXIT_FAILURES


async def _run_batch(
    batch_file: Path,
    config: LinkscopeConfig,
    output: Optional[Path],
    console: Console,
    catalog: ErrorCatalog,
) -> int:
    formatter = get_formatter(config.output_format)
    urls = read_url_file(batch_file)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Starting...", total=len(urls))
        async with BatchOrchestrator(
            catalog=catalog,
            hooks=_ProgressHooks(progress, task_id),
            renderer_kind=config.renderer,
            headless=config.headless,
        ) as batch:
            outcome = await batch.process_batch(urls, config.extraction)

    _emit(formatter.format_batch(outcome), formatter, output, console)

    summary = outcome.summary
    console.print()
    console.print("[bold]Results:[/bold]")
    console.print(f"  URLs processed: {summary.total_urls}")
    console.print(f"  Successful: {summary.successful_urls}")
    console.print(f"  Failed: {summary.failed_urls}")
    console.print(f"  Links found: {summary.total_links}")
    for entry in summary.errors:
        console.print(f"[red]Failed:[/red] {escape(entry.url)}")
        _report(console, catalog, entry.error)

    return EXIT_OK if summary.failed_urls == 0 else EXIT_FAILURES


def run_extraction(args: argparse.Namespace) -> int:
    """Run a single-URL or batch extraction with given arguments."""
    console = Console(stderr=True)
    catalog = ErrorCatalog(verbose=args.verbose)

    if bool(args.url) == bool(args.batch):
        console.print("[red]Error:[/red] Provide either a URL or --batch FILE")
        return EXIT_INVALID_INPUT

    try:
        config = build_config(args)
    except LinkscopeError as e:
        _report(console, catalog, e)
        return EXIT_INVALID_INPUT
    except (pydantic.ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        return EXIT_INVALID_INPUT

    # Library INFO messages stay quiet unless asked for
    level = config.log_level if (args.verbose or args.config) else "WARNING"
    setup_logging(level=level, log_file=config.log_file)

    if not args.batch:
        console.print(f"[bold blue]linkscope[/bold blue] v{__version__}")

    try:
        if args.batch:
            return asyncio.run(_run_batch(args.batch, config, args.output, console, catalog))
        return asyncio.run(_run_single(args.url, config, args.output, console, catalog))
    except ValidationError as e:
        _report(console, catalog, e)
        return EXIT_INVALID_INPUT
    except Exception as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if args.verbose:
            console.print_exception()
        return EXIT_FAILURES


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    return run_extraction(args)


if __name__ == "__main__":
    sys.exit(main())
