"""Concurrent scrape pipeline: prefixes, descriptors, time series pages"""
import asyncio
from typing import Iterable, Optional, Set

from logging_config import get_logger
from metrics.counters import Counter
from metrics.sink import SampleSink
from monitoring.models import MetricDescriptor, ScrapeWindow
from .errgroup import ErrorGroup
from .reducer import SeriesReducer


logger = get_logger(__name__)


class PipelineRunner:
    """Fans a scrape out per prefix and per descriptor and streams samples to a sink.

    Every page fetch counts as one API call. Errors are collected per prefix,
    first one wins; workers already running are left to finish and keep
    emitting samples unless ``cancel_on_error`` is set. Descriptor workers of
    one scrape share a limit of ``max_concurrent_requests``.
    """

    def __init__(self, client, reducer: SeriesReducer, api_calls: Counter,
                 max_concurrent_requests: int = 16, cancel_on_error: bool = False):
        self.client = client
        self.reducer = reducer
        self.api_calls = api_calls
        self.max_concurrent_requests = max_concurrent_requests
        self.cancel_on_error = cancel_on_error
        self._inflight: Set[asyncio.Task] = set()

    @property
    def inflight(self) -> int:
        """Number of workers still running, including stragglers of finished scrapes"""
        return len(self._inflight)

    async def run_scrape(self, prefixes: Iterable[str], window: ScrapeWindow,
                         sink: SampleSink) -> Optional[Exception]:
        """Scrape every prefix; return the first error or None"""
        limiter = asyncio.Semaphore(self.max_concurrent_requests)
        group = ErrorGroup("prefixes", cancel_on_error=self.cancel_on_error, tracker=self._inflight)

        for prefix in prefixes:
            group.spawn(self._scrape_prefix, prefix, window, sink, limiter)

        return await group.wait()

    async def drain(self) -> None:
        """Wait until every worker, including those left behind by an error, is done"""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def _scrape_prefix(self, prefix: str, window: ScrapeWindow, sink: SampleSink,
                             limiter: asyncio.Semaphore) -> None:
        logger.debug("Listing metric descriptors", prefix=prefix)
        group = ErrorGroup(prefix, cancel_on_error=self.cancel_on_error,
                           limiter=limiter, tracker=self._inflight)
        try:
            page_token = ""
            while not group.failed:
                self.api_calls.inc()
                try:
                    page = await self.client.list_metric_descriptors(prefix, page_token)
                except Exception as e:
                    group.report(e)
                    break

                # a sibling may have failed while this page was in flight
                if group.failed:
                    logger.debug("Dropping descriptor page after error", prefix=prefix,
                                 descriptors=len(page.descriptors))
                    break

                for descriptor in page.descriptors:
                    group.spawn(self._scrape_descriptor, descriptor, window, sink)

                page_token = page.next_page_token
                if not page_token:
                    break

            error = await group.wait()
        except asyncio.CancelledError:
            group.cancel()
            raise

        if error is not None:
            raise error

    async def _scrape_descriptor(self, descriptor: MetricDescriptor, window: ScrapeWindow,
                                 sink: SampleSink) -> None:
        logger.debug("Retrieving time series", metric_type=descriptor.type)
        page_token = ""
        while True:
            self.api_calls.inc()
            page = await self.client.list_time_series(descriptor.type, window, page_token)

            for series in page.series:
                sample = self.reducer.reduce(series, descriptor)
                if sample is not None:
                    sink.emit(sample)

            page_token = page.next_page_token
            if not page_token:
                break
