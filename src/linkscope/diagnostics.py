"""Error diagnostics, log journal and redirect-chain tracking."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional, cast

from typing_extensions import assert_never

from .errors import (
    AuthenticationError,
    ErrorKind,
    LinkscopeError,
    NetworkError,
    PageTimeoutError,
    ParseError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class RedirectHop:
    """One HTTP redirect observed while loading a page."""

    from_url: str
    to_url: str
    status_code: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class RedirectChain:
    """Ordered redirect hops starting at ``original_url``."""

    original_url: str
    final_url: str
    redirects: list[RedirectHop] = field(default_factory=list)

    @property
    def total_redirects(self) -> int:
        return len(self.redirects)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original_url": self.original_url,
            "final_url": self.final_url,
            "total_redirects": self.total_redirects,
            "redirects": [
                {
                    "from": hop.from_url,
                    "to": hop.to_url,
                    "status_code": hop.status_code,
                    "timestamp": hop.timestamp.isoformat(),
                }
                for hop in self.redirects
            ],
        }


@dataclass
class LogEntry:
    """A message recorded in the catalog's journal."""

    level: int
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    context: Optional[dict[str, Any]] = None
    error: Optional[BaseException] = None

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "level": self.level_name,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }
        if self.context:
            data["context"] = self.context
        if self.error is not None:
            data["error"] = str(self.error)
        return data


class ErrorCatalog:
    """
    Per-orchestrator home for diagnostics and redirect bookkeeping.

    One catalog is created for each extraction or batch orchestrator and
    passed explicitly to the components that report into it, so parallel
    orchestrators in the same process never share journals or redirect
    chains.

    Example:
        catalog = ErrorCatalog(verbose=True)
        catalog.track_redirect("http://a.com", "https://a.com", 301)
        print(catalog.render(error))
    """

    def __init__(self, verbose: bool = False, log: Optional[logging.Logger] = None) -> None:
        """
        Initialize the catalog.

        Args:
            verbose: Forward info/debug messages to the logger, not only
                     warnings and errors
            log: Logger to forward to (defaults to this module's logger)
        """
        self.verbose = verbose
        self.logger = log or logger
        self._entries: list[LogEntry] = []
        self._chains: dict[str, RedirectChain] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def render(self, error: BaseException) -> str:
        """
        Render a multi-line diagnostic with remediation suggestions.

        Args:
            error: The failure to describe

        Returns:
            Human-readable diagnostic text
        """
        if not isinstance(error, LinkscopeError):
            return f"Unexpected error: {error}"

        kind = error.kind
        match kind:
            case ErrorKind.NETWORK:
                return self._render_network(cast(NetworkError, error))
            case ErrorKind.TIMEOUT:
                return self._render_timeout(cast(PageTimeoutError, error))
            case ErrorKind.AUTHENTICATION:
                return self._render_authentication(cast(AuthenticationError, error))
            case ErrorKind.PARSE:
                return self._render_parse(cast(ParseError, error))
            case ErrorKind.VALIDATION:
                return self._render_validation(cast(ValidationError, error))
            case _:
                assert_never(kind)

    def _render_network(self, error: NetworkError) -> str:
        lines = [
            f"Network Error: Failed to connect to {error.url}",
            f"Reason: {error.message}",
        ]
        if error.retries > 0:
            lines.append(f"Retries attempted: {error.retries}")
        lines += [
            "",
            "Possible solutions:",
            "  - Check your internet connection",
            "  - Verify the URL is correct and accessible",
            "  - Check if a proxy or VPN is required",
            "  - Try increasing the timeout value",
        ]
        if error.cause is not None:
            lines += ["", f"Original error: {error.cause}"]
        return "\n".join(lines)

    def _render_timeout(self, error: PageTimeoutError) -> str:
        return "\n".join(
            [
                "Timeout Error: Page load exceeded timeout limit",
                f"URL: {error.url}",
                f"Timeout: {error.timeout}ms ({error.timeout / 1000:.1f}s)",
                "",
                "Possible solutions:",
                "  - Increase the timeout value using --timeout",
                "  - Check if the page is slow to load or has performance issues",
                "  - Verify the page does not have infinite loading states",
                "  - Try opening the page in a browser to confirm it loads",
            ]
        )

    def _render_authentication(self, error: AuthenticationError) -> str:
        lines = [
            "Authentication Error: Access denied",
            f"URL: {error.url}",
            f"Status Code: {error.status_code}",
            "",
        ]
        if error.status_code == 401:
            lines += [
                "This page requires authentication.",
                "Possible solutions:",
                "  - Provide authentication cookies using --cookie",
                "  - Add authorization headers using --header",
                "  - Ensure you have valid credentials for this resource",
            ]
        else:
            lines += [
                "Access to this page is forbidden.",
                "Possible solutions:",
                "  - Check if you have permission to access this resource",
                "  - Verify your IP address is not blocked",
                "  - Try using a different User-Agent string",
                "  - Check if the page requires specific headers or cookies",
            ]
        return "\n".join(lines)

    def _render_parse(self, error: ParseError) -> str:
        lines = [
            "Parse Error: Failed to parse page content",
            f"URL: {error.url}",
            f"Reason: {error.message}",
        ]
        if error.partial_links:
            lines += ["", f"Partially extracted {len(error.partial_links)} links before failure."]
        lines += [
            "",
            "Possible solutions:",
            "  - Check if the page has valid HTML structure",
            "  - Verify the page loaded completely",
            "  - Try opening the page in a browser to inspect its content",
            "  - Enable verbose logging to see detailed parsing information",
        ]
        return "\n".join(lines)

    def _render_validation(self, error: ValidationError) -> str:
        return "\n".join(
            [
                "Validation Error: Invalid input parameter",
                f"Parameter: {error.parameter}",
                f"Validation Rule: {error.rule}",
                f"Reason: {error.message}",
                "",
                "Please check your input and try again.",
            ]
        )

    def handle_error(self, error: BaseException, **context: Any) -> None:
        """Record an error in the journal and log its diagnostic."""
        self.log(logging.ERROR, self.render(error), context or None, error)

    # ------------------------------------------------------------------
    # Redirect chains
    # ------------------------------------------------------------------

    def track_redirect(
        self,
        from_url: str,
        to_url: str,
        status_code: int,
        origin: Optional[str] = None,
    ) -> None:
        """
        Record a redirect hop.

        Hops are grouped by ``origin``, the URL the load started from, and
        by ``from_url`` when no origin is given.
        """
        hop = RedirectHop(from_url=from_url, to_url=to_url, status_code=status_code)
        key = origin or from_url

        with self._lock:
            chain = self._chains.get(key)
            if chain is None:
                chain = RedirectChain(original_url=key, final_url=to_url)
                self._chains[key] = chain
            chain.final_url = to_url
            chain.redirects.append(hop)

        self.info(
            f"Redirect: {from_url} -> {to_url} ({status_code})",
            from_url=from_url,
            to_url=to_url,
            status_code=status_code,
        )

    def get_redirect_chain(self, url: str) -> Optional[RedirectChain]:
        """Get the redirect chain that started at ``url``."""
        with self._lock:
            return self._chains.get(url)

    def redirect_chains(self) -> list[RedirectChain]:
        """Get every tracked redirect chain."""
        with self._lock:
            return list(self._chains.values())

    def clear_redirect_chains(self) -> None:
        with self._lock:
            self._chains.clear()

    @staticmethod
    def format_redirect_chain(chain: RedirectChain) -> str:
        """Format a redirect chain as readable text."""
        lines = [
            f"Redirect Chain for {chain.original_url}:",
            f"Total Redirects: {chain.total_redirects}",
            f"Final URL: {chain.final_url}",
            "",
            "Redirect Path:",
        ]
        for index, hop in enumerate(chain.redirects, start=1):
            lines.append(f"  {index}. {hop.from_url}")
            lines.append(f"     -> {hop.to_url} ({hop.status_code})")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    def log(
        self,
        level: int,
        message: str,
        context: Optional[dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """
        Append to the journal and forward to the logger.

        Messages below WARNING are only forwarded in verbose mode; the
        journal always keeps them.
        """
        entry = LogEntry(level=level, message=message, context=context, error=error)
        with self._lock:
            self._entries.append(entry)

        if self.verbose or level >= logging.WARNING:
            if context and self.verbose:
                self.logger.log(level, "%s | %s", message, json.dumps(context, default=str))
            else:
                self.logger.log(level, message)

    def debug(self, message: str, **context: Any) -> None:
        self.log(logging.DEBUG, message, context or None)

    def info(self, message: str, **context: Any) -> None:
        self.log(logging.INFO, message, context or None)

    def warn(self, message: str, **context: Any) -> None:
        self.log(logging.WARNING, message, context or None)

    def error(self, message: str, error: Optional[BaseException] = None, **context: Any) -> None:
        self.log(logging.ERROR, message, context or None, error)

    def logs(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def logs_by_level(self, level: int) -> list[LogEntry]:
        return [entry for entry in self.logs() if entry.level == level]

    def clear_logs(self) -> None:
        with self._lock:
            self._entries.clear()

    def export_logs_as_json(self) -> str:
        return json.dumps([entry.to_dict() for entry in self.logs()], indent=2, default=str)

    def export_logs_as_text(self) -> str:
        lines: list[str] = []
        for entry in self.logs():
            line = f"[{entry.timestamp.isoformat()}] [{entry.level_name}] {entry.message}"
            if entry.context:
                line += f"\n  Context: {json.dumps(entry.context, default=str)}"
            if entry.error is not None:
                line += f"\n  Error: {entry.error}"
            lines.append(line)
        return "\n".join(lines)
