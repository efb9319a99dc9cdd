"""Tests for the scrape orchestrator"""
import asyncio
from unittest.mock import AsyncMock

from collectors.monitoring import MonitoringCollector
from collectors.pipeline import PipelineRunner
from collectors.reducer import SeriesReducer
from config import Config
from metrics.counters import Counter
from metrics.models import MetricType
from metrics.sink import SampleSink
from tests.fakes import FakeMonitoringClient, descriptor_pages, fetch_error, make_series, series_pages

T5 = "2026-10-19T12:00:05Z"
BOOKKEEPING = [
    "stackdriver_monitoring_api_calls_total",
    "stackdriver_monitoring_scrapes_total",
    "stackdriver_monitoring_scrape_errors_total",
    "stackdriver_monitoring_last_scrape_error",
    "stackdriver_monitoring_last_scrape_timestamp",
    "stackdriver_monitoring_last_scrape_duration_seconds",
]


def by_name(sink):
    return {s.name: s for s in sink.snapshot()}


class TestMonitoringCollector:
    """Test bookkeeping around a scrape"""
    
    def setup_method(self):
        """Setup test fixtures"""
        self.config = Config(project_id="test-project", metrics_type_prefixes="a.com/", metrics_interval=120)
    
    def make_client(self, fail=False):
        return FakeMonitoringClient(
            descriptors={"a.com/": descriptor_pages(["a.com/x", "a.com/y"])},
            series={
                "a.com/x": series_pages([make_series("a.com/x", [(T5, 1.0)])]),
                "a.com/y": series_pages([make_series("a.com/y", [(T5, 2.0)])]),
            },
            series_errors={"a.com/y": fetch_error()} if fail else None,
        )
    
    def test_successful_scrape(self):
        client = self.make_client()
        collector = MonitoringCollector(self.config, client)
        sink = SampleSink()
        
        outcome = asyncio.run(collector.collect(sink))
        metrics = by_name(sink)
        
        assert outcome.had_error is False
        assert outcome.api_calls == 3
        assert outcome.samples == 2
        for name in BOOKKEEPING:
            assert name in metrics
            assert metrics[name].label_keys == ["project_id"]
            assert metrics[name].label_values == ["test-project"]
        assert metrics["stackdriver_monitoring_api_calls_total"].value == 3
        assert metrics["stackdriver_monitoring_api_calls_total"].metric_type == MetricType.COUNTER
        assert metrics["stackdriver_monitoring_scrapes_total"].value == 1
        assert metrics["stackdriver_monitoring_scrape_errors_total"].value == 0
        assert metrics["stackdriver_monitoring_last_scrape_error"].value == 0
        assert metrics["stackdriver_monitoring_last_scrape_timestamp"].value > 0
        assert metrics["stackdriver_monitoring_last_scrape_duration_seconds"].value >= 0
    
    def test_window_matches_metrics_interval(self):
        client = self.make_client()
        collector = MonitoringCollector(self.config, client)
        
        asyncio.run(collector.collect(SampleSink()))
        
        window = client.series_calls[0][1]
        assert (window.end - window.start).total_seconds() == 120
    
    def test_failed_scrape_is_flagged_not_raised(self):
        collector = MonitoringCollector(self.config, self.make_client(fail=True))
        sink = SampleSink()
        
        outcome = asyncio.run(collector.collect(sink))
        metrics = by_name(sink)
        
        assert outcome.had_error is True
        assert str(outcome.error) == "backend unavailable"
        assert metrics["stackdriver_monitoring_scrape_errors_total"].value == 1
        assert metrics["stackdriver_monitoring_last_scrape_error"].value == 1
        assert metrics["stackdriver_monitoring_scrapes_total"].value == 1
    
    def test_counters_accumulate_across_scrapes(self):
        collector = MonitoringCollector(self.config, self.make_client(fail=True))
        
        asyncio.run(collector.collect(SampleSink()))
        collector.client.series_errors.clear()
        sink = SampleSink()
        outcome = asyncio.run(collector.collect(sink))
        metrics = by_name(sink)
        
        assert outcome.had_error is False
        assert metrics["stackdriver_monitoring_scrapes_total"].value == 2
        assert metrics["stackdriver_monitoring_scrape_errors_total"].value == 1
        assert metrics["stackdriver_monitoring_last_scrape_error"].value == 0
        assert metrics["stackdriver_monitoring_api_calls_total"].value == 6
    
    def test_unexpected_runner_exception_is_contained(self):
        collector = MonitoringCollector(self.config, self.make_client())
        collector.runner.run_scrape = AsyncMock(side_effect=RuntimeError("unexpected"))
        sink = SampleSink()
        
        outcome = asyncio.run(collector.collect(sink))
        
        assert outcome.had_error is True
        assert set(by_name(sink)) == set(BOOKKEEPING)
    
    def test_injected_runner_counts_api_calls(self):
        client = self.make_client()
        runner = PipelineRunner(client, SeriesReducer(), Counter())
        collector = MonitoringCollector(self.config, client, runner=runner)
        sink = SampleSink()

        outcome = asyncio.run(collector.collect(sink))

        assert outcome.api_calls == 3
        assert by_name(sink)["stackdriver_monitoring_api_calls_total"].value == 3

    def test_custom_namespace(self):
        config = Config(project_id="p", metrics_type_prefixes="a.com/",
                        metrics_namespace="gcp", metrics_subsystem="")
        collector = MonitoringCollector(config, self.make_client())
        sink = SampleSink()
        
        asyncio.run(collector.collect(sink))
        
        names = set(by_name(sink))
        assert "gcp_api_calls_total" in names
        assert "gcp_a_com_x" in names
