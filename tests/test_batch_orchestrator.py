"""Tests for bounded-concurrency batch extraction."""

import asyncio

import pytest

from linkscope.batch.orchestrator import BatchOrchestrator, read_url_file, summarize
from linkscope.errors import NetworkError, ParseError, ValidationError
from linkscope.extraction.orchestrator import ExtractionHooks, ExtractionOrchestrator
from linkscope.models.config import BatchOptions
from linkscope.models.links import ExtractionResult, Link, RawAnchorObservation
from linkscope.rendering.protocols import PageObservation


class MockRenderer:
    """Renderer with per-URL delays and failures."""

    def __init__(self, delays=None, failures=None):
        self.delays = delays or {}
        self.failures = failures or {}
        self.loads: list[str] = []

    async def load(self, url, config):
        self.loads.append(url)
        await asyncio.sleep(self.delays.get(url, 0.01))
        if url in self.failures:
            raise self.failures[url]
        return PageObservation(url=url, final_url=url)

    async def get_anchors(self, page):
        return [
            RawAnchorObservation(href="/one", anchor_text="One"),
            RawAnchorObservation(href="https://elsewhere.org/", anchor_text="Elsewhere"),
        ]

    async def close(self, page):
        pass


class ConcurrencyProbe(ExtractionHooks):
    """Track how many extractions are in flight at once."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self.started: list[str] = []

    def on_extract_start(self, url):
        self.active += 1
        self.peak = max(self.peak, self.active)
        self.started.append(url)

    def on_extract_end(self, url, result):
        self.active -= 1


URLS = [f"https://site{i}.example/" for i in range(6)]


class TestProcessBatch:
    """Tests for BatchOrchestrator.process_batch."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 2, 3])
    async def test_concurrency_cap(self, concurrency):
        probe = ConcurrencyProbe()
        batch = BatchOrchestrator(renderer=MockRenderer(), hooks=probe)

        outcome = await batch.process_batch(URLS, BatchOptions(concurrency=concurrency))

        assert probe.peak == concurrency
        assert outcome.summary.total_urls == len(URLS)

    @pytest.mark.asyncio
    async def test_fifo_admission(self):
        probe = ConcurrencyProbe()
        batch = BatchOrchestrator(renderer=MockRenderer(), hooks=probe)

        await batch.process_batch(URLS, BatchOptions(concurrency=1))

        assert probe.started == URLS

    @pytest.mark.asyncio
    async def test_results_keep_input_order(self):
        a, b, c = "https://a.example/", "https://b.example/", "https://c.example/"
        renderer = MockRenderer(
            delays={a: 0.15, b: 0.0, c: 0.05},
            failures={b: NetworkError("unreachable", b)},
        )
        batch = BatchOrchestrator(renderer=renderer)

        outcome = await batch.process_batch([a, b, c], BatchOptions(concurrency=3))

        assert [result.source_url for result in outcome.results] == [a, b, c]
        assert outcome.results[1].errors and not outcome.results[0].errors

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self):
        valid, invalid = "https://ok.example/", "https://broken.example/"
        renderer = MockRenderer(failures={invalid: NetworkError("DNS lookup failed", invalid)})
        batch = BatchOrchestrator(renderer=renderer)

        outcome = await batch.process_batch([valid, invalid, "https://ok2.example/"])
        summary = outcome.summary

        assert summary.total_urls == 3
        assert summary.failed_urls == 1
        assert summary.successful_urls == 2
        assert len(summary.errors) >= 1
        assert summary.errors[0].url == invalid
        assert summary.total_links == 4

    @pytest.mark.asyncio
    async def test_crashing_extraction_becomes_failed_result(self):
        class CrashingExtractor(ExtractionOrchestrator):
            async def extract(self, url, options=None):
                if "crash" in url:
                    raise RuntimeError("extractor exploded")
                return await super().extract(url, options)

        extractor = CrashingExtractor(renderer=MockRenderer())
        batch = BatchOrchestrator(extractor=extractor)

        outcome = await batch.process_batch(["https://fine.example/", "https://crash.example/"])
        crashed = outcome.results[1]

        assert isinstance(crashed.errors[0], RuntimeError)
        assert crashed.links == []
        assert crashed.statistics.unique_links == 0
        assert outcome.summary.successful_urls == 1

    @pytest.mark.asyncio
    async def test_concurrency_argument_overrides_options(self):
        probe = ConcurrencyProbe()
        batch = BatchOrchestrator(renderer=MockRenderer(), hooks=probe)

        await batch.process_batch(URLS, BatchOptions(concurrency=5), concurrency=1)

        assert probe.peak == 1

    @pytest.mark.asyncio
    async def test_reads_url_file(self, tmp_path):
        url_file = tmp_path / "urls.txt"
        url_file.write_text("# docs\nhttps://a.example/\n\n   \nhttps://b.example/\n", encoding="utf-8")
        renderer = MockRenderer()
        batch = BatchOrchestrator(renderer=renderer)

        outcome = await batch.process_batch(str(url_file))

        assert [result.source_url for result in outcome.results] == ["https://a.example/", "https://b.example/"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("source", [[], ["", "   "]])
    async def test_empty_source_rejected_before_work(self, source):
        renderer = MockRenderer()
        batch = BatchOrchestrator(renderer=renderer)

        with pytest.raises(ValidationError) as excinfo:
            await batch.process_batch(source)

        assert excinfo.value.parameter == "urls"
        assert renderer.loads == []

    @pytest.mark.asyncio
    async def test_comment_only_file_rejected(self, tmp_path):
        url_file = tmp_path / "urls.txt"
        url_file.write_text("# nothing here\n\n", encoding="utf-8")

        with pytest.raises(ValidationError) as excinfo:
            await BatchOrchestrator(renderer=MockRenderer()).process_batch(url_file)

        assert excinfo.value.parameter == "urls"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [0, -2])
    async def test_non_positive_concurrency_rejected(self, concurrency):
        with pytest.raises(ValidationError) as excinfo:
            await BatchOrchestrator(renderer=MockRenderer()).process_batch(URLS, concurrency=concurrency)
        assert excinfo.value.parameter == "concurrency"

    @pytest.mark.asyncio
    async def test_batch_shares_one_catalog(self):
        batch = BatchOrchestrator(renderer=MockRenderer())
        assert batch.catalog is batch.extractor.catalog

        await batch.process_batch(URLS[:2])

        assert any("Processing batch of 2 URLs" in entry.message for entry in batch.catalog.logs())


class TestReadUrlFile:
    """Tests for batch-file parsing."""

    def test_skips_comments_and_blanks(self, tmp_path):
        url_file = tmp_path / "urls.txt"
        url_file.write_text("\n# comment\n  https://a.example/  \n\t\nhttps://b.example/\n", encoding="utf-8")

        assert read_url_file(url_file) == ["https://a.example/", "https://b.example/"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError) as excinfo:
            read_url_file(tmp_path / "missing.txt")
        assert excinfo.value.parameter == "file_path"


class TestSummarize:
    """Tests for summary computation."""

    def test_zero_links_still_successful(self):
        summary = summarize([ExtractionResult(source_url="https://a.example/")])
        assert summary.successful_urls == 1
        assert summary.success_rate == 100.0

    def test_links_counted_only_for_successes(self):
        link = Link(
            url="https://a.example/x",
            description="X",
            anchor_text="X",
            protocol="https",
            is_internal=True,
            is_external=False,
        )
        partial = ExtractionResult(
            source_url="https://b.example/",
            links=[link],
            errors=[ParseError("late failure", "https://b.example/"), NetworkError("n", "https://b.example/")],
        )
        ok = ExtractionResult(source_url="https://a.example/", links=[link, link])

        summary = summarize([ok, partial])

        assert summary.total_links == 2
        assert summary.failed_urls == 1
        assert [entry.url for entry in summary.errors] == ["https://b.example/"] * 2
        assert summary.to_dict()["success_rate"] == 50.0
