"""Tests for option and configuration models."""

import pytest
from pydantic import ValidationError

from linkscope.logging_config import setup_logging
from linkscope.models.config import (
    BatchOptions,
    Cookie,
    ExtractionOptions,
    FilterCriteria,
    LinkscopeConfig,
    RenderConfig,
)


class TestOptionModels:
    """Tests for the pydantic option models."""

    def test_defaults(self):
        options = BatchOptions()

        assert options.timeout == 30000
        assert options.concurrency == 3
        assert options.include_metadata is False
        assert options.filter is None

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            ExtractionOptions(timeot=5)

    @pytest.mark.parametrize("concurrency", [0, -1])
    def test_concurrency_must_be_positive(self, concurrency):
        with pytest.raises(ValidationError):
            BatchOptions(concurrency=concurrency)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            RenderConfig(timeout=0)

    def test_render_config_copies_render_fields(self):
        options = ExtractionOptions(
            timeout=1000,
            headers={"A": "1"},
            cookies=[Cookie(name="s", value="v")],
            filter=FilterCriteria(internal_only=True),
        )

        config = options.render_config()

        assert type(config) is RenderConfig
        assert config.timeout == 1000
        assert config.cookies[0].name == "s"
        config.headers["B"] = "2"
        assert options.headers == {"A": "1"}

    def test_filter_criteria_is_empty(self):
        assert FilterCriteria().is_empty()
        assert not FilterCriteria(protocols=["https"]).is_empty()


class TestLinkscopeConfig:
    """Tests for YAML configuration."""

    def test_from_yaml(self):
        config = LinkscopeConfig.from_yaml(
            """
renderer: static
max_retries: 1
output_format: csv
extraction:
  timeout: 15000
  concurrency: 5
  include_metadata: true
  filter:
    internal_only: true
    url_pattern: /api/
"""
        )

        assert config.renderer == "static"
        assert config.max_retries == 1
        assert config.extraction.concurrency == 5
        assert config.extraction.filter.url_pattern == "/api/"

    def test_empty_yaml_gives_defaults(self):
        assert LinkscopeConfig.from_yaml("") == LinkscopeConfig()

    def test_yaml_round_trip(self, tmp_path):
        config = LinkscopeConfig(output_format="markdown", extraction=BatchOptions(headers={"X": "y"}))
        path = tmp_path / "linkscope.yaml"
        path.write_text(config.to_yaml(), encoding="utf-8")

        assert LinkscopeConfig.from_yaml_file(path) == config

    def test_invalid_renderer(self):
        with pytest.raises(ValidationError):
            LinkscopeConfig.from_yaml("renderer: netscape")


class TestSetupLogging:
    """Tests for logging setup."""

    def test_configures_package_logger(self, tmp_path):
        log_file = tmp_path / "linkscope.log"
        logger = setup_logging(level="DEBUG", log_file=log_file, force=True)

        try:
            logger.debug("written to file")
            assert logger.name == "linkscope"
            assert logger.propagate is False
            assert len(logger.handlers) == 2
            assert "written to file" in log_file.read_text(encoding="utf-8")
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
            logger.propagate = True
