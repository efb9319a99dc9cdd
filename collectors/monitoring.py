"""Cloud Monitoring collector: runs one scrape and reports bookkeeping metrics"""
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from config import Config
from logging_config import get_logger, log_error, log_scrape_completed
from metrics.counters import Counter, Gauge
from metrics.models import MetricSample, MetricType
from metrics.sink import SampleSink
from monitoring.models import ScrapeWindow
from utils.naming import build_fq_name
from .pipeline import PipelineRunner
from .reducer import SeriesReducer


logger = get_logger(__name__)


@dataclass
class ScrapeOutcome:
    """Result of one scrape"""
    api_calls: int
    had_error: bool
    samples: int = 0
    duration_seconds: float = 0.0
    error: Optional[Exception] = None


class MonitoringCollector:
    """Scrapes the configured metric type prefixes into a sink"""

    def __init__(self, config: Config, client, runner: Optional[PipelineRunner] = None):
        self.config = config
        self.client = client

        # an injected runner brings the counter it increments
        self.api_calls_total = runner.api_calls if runner is not None else Counter()
        self.scrapes_total = Counter()
        self.scrape_errors_total = Counter()
        self.last_scrape_error = Gauge()
        self.last_scrape_timestamp = Gauge()
        self.last_scrape_duration_seconds = Gauge()

        self.runner = runner or PipelineRunner(
            client,
            SeriesReducer(
                namespace=config.metrics_namespace,
                subsystem=config.metrics_subsystem,
                collision_policy=config.label_collision_policy,
            ),
            self.api_calls_total,
            max_concurrent_requests=config.max_concurrent_requests,
            cancel_on_error=config.cancel_on_error,
        )

    @property
    def name(self) -> str:
        return "monitoring"

    async def collect(self, sink: SampleSink) -> ScrapeOutcome:
        """Run one scrape into ``sink``. Pipeline failures are logged and flagged, never raised."""
        begun = time.monotonic()
        window = ScrapeWindow.ending_at(datetime.now(timezone.utc), self.config.metrics_interval)

        error = None
        try:
            error = await self.runner.run_scrape(self.config.metrics_type_prefix_list, window, sink)
        except Exception as e:
            error = e

        error_metric = 0.0
        if error is not None:
            error_metric = 1.0
            self.scrape_errors_total.inc()
            log_error(logger, error, {
                "component": "monitoring_scrape",
                "project_id": self.config.project_id,
                "message": "Error while getting Google Stackdriver Monitoring metrics",
            })

        self.scrapes_total.inc()
        self.last_scrape_error.set(error_metric)
        self.last_scrape_timestamp.set(float(int(time.time())))
        duration = time.monotonic() - begun
        self.last_scrape_duration_seconds.set(duration)

        samples_count = len(sink)
        sink.emit_many(self.bookkeeping_samples())

        api_calls = int(self.api_calls_total.value)
        log_scrape_completed(logger, samples_count, duration, api_calls, had_error=error is not None)

        return ScrapeOutcome(
            api_calls=api_calls,
            had_error=error is not None,
            samples=samples_count,
            duration_seconds=duration,
            error=error,
        )

    def bookkeeping_samples(self) -> List[MetricSample]:
        """Current values of the exporter's own metrics"""
        definitions = [
            ("api_calls_total", self.api_calls_total, MetricType.COUNTER,
             "Total number of Google Stackdriver Monitoring API calls made."),
            ("scrapes_total", self.scrapes_total, MetricType.COUNTER,
             "Total number of Google Stackdriver Monitoring metrics scrapes."),
            ("scrape_errors_total", self.scrape_errors_total, MetricType.COUNTER,
             "Total number of Google Stackdriver Monitoring metrics scrape errors."),
            ("last_scrape_error", self.last_scrape_error, MetricType.GAUGE,
             "Whether the last metrics scrape from Google Stackdriver Monitoring resulted in an error (1 for error, 0 for success)."),
            ("last_scrape_timestamp", self.last_scrape_timestamp, MetricType.GAUGE,
             "Number of seconds since 1970 since last metrics scrape from Google Stackdriver Monitoring."),
            ("last_scrape_duration_seconds", self.last_scrape_duration_seconds, MetricType.GAUGE,
             "Duration of the last metrics scrape from Google Stackdriver Monitoring."),
        ]

        return [
            MetricSample(
                name=build_fq_name(self.config.metrics_namespace, self.config.metrics_subsystem, name),
                value=metric.value,
                help_text=help_text,
                label_keys=["project_id"],
                label_values=[self.config.project_id],
                metric_type=metric_type,
            )
            for name, metric, metric_type, help_text in definitions
        ]
