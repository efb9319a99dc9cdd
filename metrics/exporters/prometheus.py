"""Prometheus text exposition exporter"""
from datetime import datetime
from typing import Dict, List, Optional
from .base import BaseExporter
from metrics.models import MetricSample
from logging_config import get_logger


logger = get_logger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


class PrometheusExporter(BaseExporter):
    """Renders samples to the Prometheus text format, optionally mirrored to a file"""
    
    def __init__(self, config):
        super().__init__(config)
        self.metrics_file = getattr(config, "prometheus_file", None)
        self._content: Optional[str] = None
        self._healthy = False
    
    async def start(self) -> None:
        """Initialize the Prometheus exporter"""
        try:
            if self.metrics_file:
                self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
            self._healthy = True
            logger.info("Prometheus exporter started", metrics_file=str(self.metrics_file) if self.metrics_file else None)
        except Exception as e:
            logger.error(f"Failed to start Prometheus exporter: {e}")
            self._healthy = False
            raise
    
    async def export_metrics(self, metrics: List[MetricSample]) -> None:
        """Replace the current exposition with ``metrics``"""
        content = self.render(metrics)
        self._content = content
        
        if not self.metrics_file:
            return
        
        try:
            # Write atomically using temporary file
            temp_file = self.metrics_file.with_suffix('.tmp')
            temp_file.write_text(content, encoding='utf-8')
            temp_file.replace(self.metrics_file)
            self._healthy = True
            logger.debug(f"Exported {len(metrics)} metrics to Prometheus file")
        except OSError as e:
            logger.error(f"Failed to write Prometheus metrics: {e}")
            self._healthy = False
    
    async def shutdown(self) -> None:
        """Cleanup the Prometheus exporter"""
        self._healthy = False
        logger.info("Prometheus exporter shutdown")
    
    def is_healthy(self) -> bool:
        """Check if exporter is healthy"""
        return self._healthy
    
    def read_metrics(self) -> str:
        """Latest rendered exposition"""
        if self._content is None:
            return "# No metrics available\n"
        return self._content
    
    def render(self, metrics: List[MetricSample]) -> str:
        """Generate Prometheus exposition format output"""
        lines = []
        
        for metric_name, metric_list in self._group_metrics_by_name(metrics).items():
            lines.append(f"# HELP {metric_name} {escape_help(metric_list[0].help_text)}")
            lines.append(f"# TYPE {metric_name} {metric_list[0].metric_type.value}")
            for metric in metric_list:
                lines.append(metric.to_prometheus_line())
        
        lines.append(f"# Generated at {datetime.now().astimezone().isoformat()}")
        lines.append("")  # Final newline
        
        return "\n".join(lines)
    
    def _group_metrics_by_name(self, metrics: List[MetricSample]) -> Dict[str, List[MetricSample]]:
        """Group metrics by name, preserving order"""
        grouped = {}
        for metric in metrics:
            if metric.name not in grouped:
                grouped[metric.name] = []
            grouped[metric.name].append(metric)
        return grouped
