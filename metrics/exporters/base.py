"""Base exporter interface"""
import abc
from typing import List
from metrics.models import MetricSample


class BaseExporter(abc.ABC):
    """Abstract base class for metric exporters"""
    
    def __init__(self, config):
        self.config = config
    
    @abc.abstractmethod
    async def start(self) -> None:
        """Initialize the exporter"""
        pass
    
    @abc.abstractmethod
    async def export_metrics(self, metrics: List[MetricSample]) -> None:
        """Export metrics using this exporter"""
        pass
    
    @abc.abstractmethod
    async def shutdown(self) -> None:
        """Cleanup the exporter"""
        pass
    
    @abc.abstractmethod
    def is_healthy(self) -> bool:
        """Check if exporter is healthy"""
        pass
