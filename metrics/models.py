"""Metric sample models"""
from dataclasses import dataclass, field
from typing import List
from enum import Enum


class MetricType(Enum):
    """Prometheus metric types"""
    COUNTER = "counter"
    GAUGE = "gauge"


class LabelCollisionPolicy(str, Enum):
    """What to do when two labels of a sample share a key"""
    PASSTHROUGH = "passthrough"
    RENAME = "rename"


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


@dataclass
class MetricSample:
    """A single normalized sample.

    Label keys and values are positionally paired and keep their order,
    duplicates included.
    """
    name: str
    value: float
    help_text: str = ""
    label_keys: List[str] = field(default_factory=list)
    label_values: List[str] = field(default_factory=list)
    metric_type: MetricType = MetricType.GAUGE
    
    def __post_init__(self):
        if len(self.label_keys) != len(self.label_values):
            raise ValueError(
                f"Metric {self.name} has {len(self.label_keys)} label keys but {len(self.label_values)} values"
            )
    
    @property
    def labels(self) -> List[tuple]:
        return list(zip(self.label_keys, self.label_values))
    
    def to_prometheus_line(self) -> str:
        """Convert to Prometheus exposition format"""
        labels_str = ""
        if self.label_keys:
            label_pairs = [f'{k}="{escape_label_value(str(v))}"' for k, v in self.labels]
            labels_str = "{" + ",".join(label_pairs) + "}"
        
        return f"{self.name}{labels_str} {format_sample_value(self.value)}"


def format_sample_value(value: float) -> str:
    if value != value:
        return "NaN"
    if value == float("inf"):
        return "+Inf"
    if value == float("-inf"):
        return "-Inf"
    return repr(float(value))
