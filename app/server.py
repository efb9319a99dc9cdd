"""FastAPI server setup and routes"""
import asyncio
import time
import os
from typing import Optional
from fastapi import FastAPI, Response, HTTPException
from fastapi.responses import HTMLResponse
from config import Config
from collectors.monitoring import MonitoringCollector, ScrapeOutcome
from metrics.exporters.prometheus import CONTENT_TYPE, PrometheusExporter
from metrics.sink import SampleSink
from monitoring.client import MonitoringClient
from logging_config import get_logger, log_error


logger = get_logger(__name__)


class MetricsServer:
    """FastAPI server for the Cloud Monitoring exporter"""

    def __init__(self, config: Config, client: Optional[MonitoringClient] = None,
                 collector: Optional[MonitoringCollector] = None):
        self.config = config
        self.app = FastAPI(
            title="Stackdriver Exporter",
            version=config.service_version,
            docs_url=None,  # Disable docs for security
            redoc_url=None,  # Disable redoc for security
            openapi_url=None  # Disable OpenAPI schema for security
        )
        self.client = client or MonitoringClient(config)
        self.collector = collector or MonitoringCollector(config, self.client)
        self.exporter = PrometheusExporter(config)

        # Collection state
        self.start_time = time.time()
        self.last_collection_time = 0
        self.collection_count = 0
        self.collection_errors = 0
        self.last_outcome: Optional[ScrapeOutcome] = None
        self.last_sink: Optional[SampleSink] = None
        self.collection_task = None

        self._setup_routes()
        self._setup_events()

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get('/metrics', response_class=Response)
        def get_metrics():
            """Serve the last scrape in Prometheus format"""
            return Response(self.exporter.read_metrics(), media_type=CONTENT_TYPE)

        @self.app.get('/health')
        def health_check():
            """Health check endpoint"""
            age = time.time() - self.last_collection_time if self.last_collection_time > 0 else float('inf')
            is_healthy = age < self.config.collection_interval * 2

            health_data = {
                "status": "healthy" if is_healthy else "unhealthy",
                "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                "collection_interval": self.config.collection_interval,
                "total_collections": self.collection_count,
                "collection_errors": self.collection_errors,
                "exporter_healthy": self.exporter.is_healthy()
            }

            if not is_healthy:
                raise HTTPException(status_code=503, detail=health_data)

            return health_data

        @self.app.get('/status')
        def get_status():
            """Detailed status information"""
            age = time.time() - self.last_collection_time if self.last_collection_time > 0 else float('inf')
            outcome = self.last_outcome

            return {
                "service": {
                    "name": self.config.service_name,
                    "version": self.config.service_version,
                    "uptime_seconds": round(time.time() - self.start_time, 1),
                    "hostname": os.uname().nodename
                },
                "monitoring": {
                    "project_id": self.config.project_id,
                    "metrics_type_prefixes": self.config.metrics_type_prefix_list,
                    "metrics_interval_seconds": self.config.metrics_interval,
                    "max_concurrent_requests": self.config.max_concurrent_requests,
                    "api_calls_total": int(self.collector.api_calls_total.value),
                    "inflight_workers": self.collector.runner.inflight
                },
                "collection": {
                    "interval_seconds": self.config.collection_interval,
                    "last_collection_seconds_ago": round(age, 1) if age != float('inf') else None,
                    "total_collections": self.collection_count,
                    "collection_errors": self.collection_errors,
                    "success_rate": round((self.collection_count - self.collection_errors) / max(self.collection_count, 1) * 100, 1),
                    "last_samples": outcome.samples if outcome else None,
                    "last_duration_seconds": round(outcome.duration_seconds, 3) if outcome else None,
                    "last_error": str(outcome.error) if outcome and outcome.error else None,
                    "late_samples": self.last_sink.late_samples if self.last_sink else None
                }
            }

        @self.app.post('/collect')
        async def manual_collect():
            """Manually trigger a scrape"""
            try:
                outcome = await self._collect_metrics()
                return {
                    "success": not outcome.had_error,
                    "message": "Metrics collection triggered",
                    "collection_count": self.collection_count,
                    "samples": outcome.samples
                }
            except Exception as e:
                log_error(logger, e, {"component": "manual_collection", "endpoint": "/collect"})
                raise HTTPException(status_code=500, detail={"error": str(e)})

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Landing page"""
            return f"""
            <html>
            <head><title>Stackdriver Exporter</title></head>
            <body>
                <h1>Stackdriver Exporter</h1>
                <p>Project: {self.config.project_id}</p>
                <p><a href="/metrics">Metrics</a> | <a href="/health">Health</a> | <a href="/status">Status</a></p>
            </body>
            </html>
            """

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            """Initialize the application"""
            self.start_time = time.time()
            logger.info(
                "Application startup initiated",
                service_name=self.config.service_name,
                service_version=self.config.service_version,
                collection_interval=self.config.collection_interval,
                event_type="server_startup"
            )

            await self.client.start()
            await self.exporter.start()
            self.collection_task = asyncio.create_task(self._collection_loop())

        @self.app.on_event("shutdown")
        async def shutdown_event():
            """Cleanup on shutdown"""
            logger.info("Shutting down metrics exporter", event_type="server_shutdown")

            if self.collection_task:
                self.collection_task.cancel()
                try:
                    await self.collection_task
                except asyncio.CancelledError:
                    pass

            await self.exporter.shutdown()
            await self.client.close()

    async def _collection_loop(self):
        """Background scrape loop"""
        while True:
            try:
                await self._collect_metrics()
                await asyncio.sleep(self.config.collection_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                log_error(logger, e, {"component": "collection_loop", "collection_errors": self.collection_errors})
                await asyncio.sleep(min(self.config.collection_interval, 30))

    async def _collect_metrics(self) -> ScrapeOutcome:
        """Run one scrape and publish its samples"""
        try:
            self.collection_count += 1
            sink = SampleSink()
            outcome = await self.collector.collect(sink)
            if outcome.had_error:
                self.collection_errors += 1

            # workers left running after an error are counted, not exported
            await self.exporter.export_metrics(sink.seal())

            self.last_collection_time = time.time()
            self.last_outcome = outcome
            self.last_sink = sink
            return outcome

        except Exception as e:
            log_error(logger, e, {"component": "metrics_collection", "collection_count": self.collection_count})
            self.collection_errors += 1
            raise

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
