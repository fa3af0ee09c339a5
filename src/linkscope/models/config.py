"""Pydantic option and configuration models for linkscope."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Cookie(BaseModel):
    """A cookie to set before loading a page."""

    name: str = Field(..., min_length=1)
    value: str
    domain: Optional[str] = Field(None, description="Cookie domain (defaults to the page host)")
    path: str = Field("/", description="Cookie path")
    expires: Optional[float] = Field(None, description="Expiry as a Unix timestamp")
    http_only: bool = False
    secure: bool = False
    same_site: Optional[Literal["Strict", "Lax", "None"]] = None

    model_config = {"extra": "forbid"}


class FilterCriteria(BaseModel):
    """Compound link filter. Every supplied criterion must hold."""

    domains: list[str] = Field(default_factory=list, description="Domain allow-list")
    exclude_domains: list[str] = Field(default_factory=list, description="Domain deny-list")
    internal_only: bool = Field(False, description="Keep only same-host links")
    external_only: bool = Field(False, description="Keep only external http(s) links")
    url_pattern: Optional[str] = Field(None, description="Regular expression the URL must match")
    protocols: list[str] = Field(default_factory=list, description="Protocols to keep (e.g. 'https')")

    model_config = {"extra": "forbid"}

    def is_empty(self) -> bool:
        """Check if no criterion is set."""
        return not (
            self.domains
            or self.exclude_domains
            or self.internal_only
            or self.external_only
            or self.url_pattern
            or self.protocols
        )


class RenderConfig(BaseModel):
    """Per-load settings handed to a Renderer."""

    timeout: int = Field(30000, ge=1, description="Navigation timeout in milliseconds")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra HTTP headers")
    cookies: list[Cookie] = Field(default_factory=list, description="Cookies to set")
    user_agent: Optional[str] = Field(None, description="Custom User-Agent")
    proxy: Optional[str] = Field(None, description="Proxy server URL")
    wait_for_selector: Optional[str] = Field(None, description="CSS selector to wait for")

    model_config = {"extra": "forbid"}


class ExtractionOptions(RenderConfig):
    """Options for a single-URL extraction."""

    filter: Optional[FilterCriteria] = Field(None, description="Filter applied to the final link set")
    include_metadata: bool = Field(False, description="Aggregate occurrence metadata per URL")
    verbose: bool = Field(False, description="Forward info/debug diagnostics to the log")

    def render_config(self) -> RenderConfig:
        """Extract the settings the Renderer needs."""
        return RenderConfig(
            timeout=self.timeout,
            headers=dict(self.headers),
            cookies=list(self.cookies),
            user_agent=self.user_agent,
            proxy=self.proxy,
            wait_for_selector=self.wait_for_selector,
        )


class BatchOptions(ExtractionOptions):
    """Options for a batch run."""

    concurrency: int = Field(3, ge=1, description="Maximum concurrent extractions")


class LinkscopeConfig(BaseModel):
    """
    Root configuration model for linkscope.

    YAML format:
        renderer: browser
        max_retries: 2
        output_format: markdown
        extraction:
          timeout: 15000
          concurrency: 5
          include_metadata: true
          filter:
            internal_only: true
    """

    extraction: BatchOptions = Field(default_factory=BatchOptions)
    renderer: Literal["browser", "static"] = Field(
        "browser",
        description="Page renderer: headless browser or static HTML",
    )
    headless: bool = Field(True, description="Run the browser headless")
    max_retries: int = Field(3, ge=0, description="Retries for network failures on single URLs")
    output_format: Literal["json", "csv", "markdown", "text"] = Field("text", description="Output format")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", description="Logging level")
    log_file: Optional[Path] = Field(None, description="Log file path")

    model_config = {"extra": "forbid"}

    def to_yaml(self) -> str:
        """Serialize config to YAML string."""
        import yaml

        return yaml.dump(self.model_dump(mode="json", exclude_none=True), default_flow_style=False)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> "LinkscopeConfig":
        """Load config from YAML string."""
        import yaml

        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)

    @classmethod
    def from_yaml_file(cls, path: Path) -> "LinkscopeConfig":
        """Load config from YAML file."""
        return cls.from_yaml(Path(path).read_text(encoding="utf-8"))
