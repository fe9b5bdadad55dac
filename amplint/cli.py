"""Command-line entry point for the AMP linter."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO, Tuple

from . import __version__
from .config import DEFAULT_USER_AGENT, USER_AGENTS, LintConfig, load_config
from .context import Context
from .engine import lint_document
from .exceptions import AmplintError, FetchError
from .formatters import FORMATS, outputter_for
from .gate import NETWORK_GATE
from .http import AiohttpClient, HttpClient
from .logging_config import configure_logging
from .url import fetch_to_curl

logger = logging.getLogger(__name__)

STDIN_URL = "-"
MODES = ("auto", "sxg", "amp", "ampstory")
IGNORED_CURL_FLAGS = {"curl", "--compressed"}

EPILOG = """\
Examples:
  $ amplint https://amp.dev/
  $ amplint --force sxg https://amp.dev/
  $ amplint -t tsv curl 'https://example.com/story.html' -H 'cookie: consent=1' --compressed
"""


def parse_header(value: str) -> Tuple[str, str]:
    name, sep, content = value.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"expected 'Name: value', got [{value}]")
    return name.strip().lower(), content.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amplint",
        usage="amplint [options] URL|copy_as_cURL",
        description="Check a published AMP page against distribution requirements.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "targets",
        nargs="*",
        metavar="URL",
        help="URL to lint, '-' to read the document from stdin, or a pasted 'copy as cURL' command.",
    )
    parser.add_argument(
        "-t",
        "--format",
        type=str.lower,
        choices=FORMATS,
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "-f",
        "--force",
        type=str.lower,
        choices=MODES,
        default="auto",
        help="Override document type detection (default: auto).",
    )
    parser.add_argument(
        "-A",
        "--user-agent",
        type=str.lower,
        choices=sorted(USER_AGENTS),
        default=None,
        help=f"User agent to send (default: {DEFAULT_USER_AGENT}).",
    )
    parser.add_argument(
        "-H",
        "--header",
        dest="headers",
        type=parse_header,
        action="append",
        default=[],
        help="Request header 'Name: value' (repeatable).",
    )
    parser.add_argument(
        "-b",
        "--cookie",
        dest="cookies",
        action="append",
        default=[],
        help="Cookie string to send, as with curl (repeatable).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML file overriding timeouts, concurrency, caches and the validator command.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_url(candidates: Iterable[str]) -> Optional[str]:
    """Pick the document URL out of positional (and unrecognised curl) arguments."""

    candidates = [c for c in candidates if c not in IGNORED_CURL_FLAGS]
    if STDIN_URL in candidates:
        return STDIN_URL
    return next((c for c in candidates if c.startswith("http")), None)


def build_headers(
    headers: Iterable[Tuple[str, str]],
    cookies: Iterable[str] = (),
    user_agent: Optional[str] = None,
) -> Dict[str, str]:
    """Combine ``-H``, ``-b`` and ``-A`` into one request header mapping."""

    merged: Dict[str, str] = dict(headers)
    cookies = list(cookies)
    if cookies:
        merged["cookie"] = "; ".join(filter(None, [merged.get("cookie"), *cookies]))
    if user_agent:
        merged["user-agent"] = USER_AGENTS[user_agent]
    else:
        merged.setdefault("user-agent", USER_AGENTS[DEFAULT_USER_AGENT])
    return merged


async def load_document(
    url: str,
    headers: Dict[str, str],
    http: HttpClient,
    stdin: Optional[TextIO] = None,
) -> Tuple[str, Dict[str, str]]:
    """Return the document body and response headers."""

    if url == STDIN_URL:
        return (stdin or sys.stdin).read(), {}
    curl = fetch_to_curl(url, headers)
    try:
        response = await http.fetch(url, headers=headers)
    except FetchError as exc:
        raise FetchError(f"couldn't load [{url}]: {exc.message} [debug: {curl}]", url=url, curl=curl) from exc
    if not response.ok:
        raise FetchError(
            f"couldn't load [{url}]: status {response.status} [debug: {curl}]",
            url=url,
            status=response.status,
            curl=curl,
        )
    return response.text(), dict(response.headers)


async def easy_lint(
    url: str,
    headers: Dict[str, str],
    mode: str = "auto",
    report_format: str = "text",
    config: Optional[LintConfig] = None,
    stdin: Optional[TextIO] = None,
    http: Optional[HttpClient] = None,
) -> str:
    """Fetch (or read) a document, lint it and render the report."""

    config = config or LintConfig()
    async with AsyncExitStack() as stack:
        if http is None:
            http = await stack.enter_async_context(AiohttpClient(config))
        body, raw_headers = await load_document(url, headers, http, stdin)
        context = Context.from_body(
            url,
            body,
            http=http,
            headers=headers,
            raw_headers=raw_headers,
            config=config,
        )
        report = await lint_document(context, mode)
    return outputter_for(report_format)(report)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args, extras = parser.parse_known_args(argv)
    configure_logging(args.verbose)

    url = resolve_url(list(args.targets) + list(extras))
    if url is None:
        parser.error("a URL (or '-' for stdin) is required")
    ignored = [arg for arg in extras if arg not in IGNORED_CURL_FLAGS and arg != url]
    if ignored:
        logger.info("ignoring unsupported arguments: %s", " ".join(ignored))
    headers = build_headers(args.headers, args.cookies, args.user_agent)

    try:
        config = load_config(args.config)
        NETWORK_GATE.set_limit(config.max_concurrency)
        output = asyncio.run(easy_lint(url, headers, args.force, args.format, config))
    except AmplintError as exc:
        logger.debug("lint aborted", extra=exc.as_log_fields())
        sys.stderr.write(f"error: {exc.message}\n")
        return 1
    except Exception as exc:  # pylint: disable=broad-except
        logger.debug("lint aborted", exc_info=True)
        sys.stderr.write(f"error: {exc}\n")
        return 1
    print(output)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
