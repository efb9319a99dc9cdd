"""Sample sink shared by concurrent pipeline workers"""
import threading
from typing import Iterable, List
from .models import MetricSample


class SampleSink:
    """Collects samples in arrival order; safe for concurrent producers.

    Once sealed, the sink stops storing samples and only counts them as late.
    """

    def __init__(self):
        self._samples: List[MetricSample] = []
        self._lock = threading.Lock()
        self._sealed = False
        self._late = 0

    def emit(self, sample: MetricSample) -> None:
        with self._lock:
            if self._sealed:
                self._late += 1
                return
            self._samples.append(sample)

    def emit_many(self, samples: Iterable[MetricSample]) -> None:
        samples = list(samples)
        with self._lock:
            if self._sealed:
                self._late += len(samples)
                return
            self._samples.extend(samples)

    def snapshot(self) -> List[MetricSample]:
        """Copy of the samples received so far"""
        with self._lock:
            return list(self._samples)

    def seal(self) -> List[MetricSample]:
        """Stop accepting samples and return the final snapshot"""
        with self._lock:
            self._sealed = True
            return list(self._samples)

    @property
    def late_samples(self) -> int:
        """Samples emitted after the sink was sealed"""
        with self._lock:
            return self._late

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
