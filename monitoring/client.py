"""Async client for the Cloud Monitoring v3 listing calls"""
from typing import Any, Dict, Optional

import httpx

from config import Config
from logging_config import get_logger
from utils.naming import project_resource
from .auth import TokenProvider, create_token_provider
from .errors import FetchError
from .models import MetricDescriptorPage, ScrapeWindow, TimeSeriesPage


logger = get_logger(__name__)


def descriptor_filter(prefix: str) -> str:
    return f'metric.type = starts_with("{prefix}")'


def time_series_filter(metric_type: str) -> str:
    return f'metric.type="{metric_type}"'


class MonitoringClient:
    """Fetches one page of metric descriptors or time series per call"""

    def __init__(self, config: Config, token_provider: Optional[TokenProvider] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.token_provider = token_provider or create_token_provider(config.access_token)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._project_path = f"/v3/{project_resource(config.project_id)}"

    async def start(self) -> None:
        """Open the underlying HTTP connection pool"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.config.monitoring_api_url,
                timeout=self.config.request_timeout,
                transport=self._transport,
            )
            logger.info(
                "Monitoring client started",
                api_url=self.config.monitoring_api_url,
                project_id=self.config.project_id,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Monitoring client closed")

    async def __aenter__(self) -> "MonitoringClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def list_metric_descriptors(self, prefix: str, page_token: str = "") -> MetricDescriptorPage:
        params = {"filter": descriptor_filter(prefix)}
        if page_token:
            params["pageToken"] = page_token
        data = await self._get(f"{self._project_path}/metricDescriptors", params)
        return MetricDescriptorPage.from_dict(data)

    async def list_time_series(self, metric_type: str, window: ScrapeWindow,
                               page_token: str = "") -> TimeSeriesPage:
        params = {
            "filter": time_series_filter(metric_type),
            "interval.startTime": window.start_wire(),
            "interval.endTime": window.end_wire(),
        }
        if page_token:
            params["pageToken"] = page_token
        data = await self._get(f"{self._project_path}/timeSeries", params)
        return TimeSeriesPage.from_dict(data)

    async def _get(self, path: str, params: Dict[str, str]) -> Dict[str, Any]:
        if self._client is None:
            await self.start()

        try:
            token = await self.token_provider.get_token()
            response = await self._client.get(
                path, params=params, headers={"Authorization": f"Bearer {token}"}
            )
        except Exception as e:
            raise FetchError(f"Request to {path} failed: {e}") from e

        if response.status_code != 200:
            raise FetchError(
                f"Request to {path} failed with status {response.status_code}: {self._error_message(response)}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Response from {path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise FetchError(f"Response from {path} is not a JSON object")
        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return body["error"].get("message", "")
        return str(body)[:200]
