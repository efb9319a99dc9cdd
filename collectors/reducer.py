"""Reduce a Cloud Monitoring time series to a single sample"""
from typing import Dict, List, Optional, Tuple

from logging_config import get_logger
from metrics.models import LabelCollisionPolicy, MetricSample, MetricType
from monitoring.errors import PointValueError
from monitoring.models import MetricDescriptor, Point, TimeSeries, parse_timestamp_nanos
from utils.naming import build_fq_name, normalize_metric_name


logger = get_logger(__name__)

METRIC_KIND_TYPES: Dict[str, MetricType] = {
    "GAUGE": MetricType.GAUGE,
    "DELTA": MetricType.COUNTER,
    "CUMULATIVE": MetricType.COUNTER,
}

SUPPORTED_VALUE_TYPES = ("BOOL", "INT64", "DOUBLE")


def newest_point(points: List[Point]) -> Optional[Point]:
    """Return the point with the latest interval end time.

    Among points sharing the latest end time the last one in scan order
    wins. Raises TimestampParseError if any end time is invalid.
    """
    newest = None
    newest_end = None
    for point in points:
        end = parse_timestamp_nanos(point.end_time)
        if newest_end is None or end >= newest_end:
            newest_end = end
            newest = point
    return newest


def point_value(point: Point, value_type: str) -> float:
    value = point.value
    if value_type == "BOOL":
        if value.bool_value is None:
            raise PointValueError(f"Point at {point.end_time} has no boolValue")
        return 1.0 if value.bool_value else 0.0
    if value_type == "INT64":
        if value.int64_value is None:
            raise PointValueError(f"Point at {point.end_time} has no int64Value")
        return float(value.int64_value)
    if value.double_value is None:
        raise PointValueError(f"Point at {point.end_time} has no doubleValue")
    return value.double_value


class SeriesReducer:
    """Turns one time series plus its descriptor into zero or one sample"""

    def __init__(self, namespace: str = "stackdriver", subsystem: str = "monitoring",
                 collision_policy: LabelCollisionPolicy = LabelCollisionPolicy.PASSTHROUGH):
        self.namespace = namespace
        self.subsystem = subsystem
        self.collision_policy = collision_policy

    def reduce(self, series: TimeSeries, descriptor: MetricDescriptor) -> Optional[MetricSample]:
        point = newest_point(series.points)
        if point is None:
            logger.debug("Discarding series without points", metric_type=series.metric_type)
            return None

        metric_type = METRIC_KIND_TYPES.get(series.metric_kind)
        if metric_type is None:
            logger.debug("Discarding series with unsupported metric kind",
                         metric_type=series.metric_type, metric_kind=series.metric_kind)
            return None

        if series.value_type not in SUPPORTED_VALUE_TYPES:
            logger.debug("Discarding series with unsupported value type",
                         metric_type=series.metric_type, value_type=series.value_type)
            return None

        label_keys, label_values = self.build_labels(series, descriptor)
        return MetricSample(
            name=build_fq_name(self.namespace, self.subsystem, normalize_metric_name(series.metric_type)),
            value=point_value(point, series.value_type),
            help_text=descriptor.description,
            label_keys=label_keys,
            label_values=label_values,
            metric_type=metric_type,
        )

    def build_labels(self, series: TimeSeries, descriptor: MetricDescriptor) -> Tuple[List[str], List[str]]:
        label_keys = ["unit", "resource_type"]
        label_values = [descriptor.unit, series.resource_type]

        for prefix, labels in (("metric", series.metric_labels), ("resource", series.resource_labels)):
            for key, value in labels.items():
                if key in label_keys:
                    if self.collision_policy == LabelCollisionPolicy.RENAME:
                        key = self._unique_key(f"{prefix}_{key}", label_keys)
                    else:
                        logger.warning("Duplicate label key passed through, exposition will be rejected",
                                       metric_type=series.metric_type, label=key, source=prefix)
                label_keys.append(key)
                label_values.append(value)

        return label_keys, label_values

    @staticmethod
    def _unique_key(key: str, taken: List[str]) -> str:
        candidate = key
        suffix = 1
        while candidate in taken:
            suffix += 1
            candidate = f"{key}_{suffix}"
        return candidate
