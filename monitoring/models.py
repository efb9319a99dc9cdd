"""Cloud Monitoring API data models"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from .errors import TimestampParseError

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<fraction>\d{1,9}))?(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_timestamp_nanos(value: str) -> int:
    """Parse an RFC 3339 timestamp into nanoseconds since the epoch.

    Python's datetime stops at microseconds, the API sends up to nine
    fractional digits, so the fraction is handled separately.
    """
    match = _RFC3339.match(value or "")
    if not match:
        raise TimestampParseError(value, "not an RFC 3339 timestamp")

    offset = match.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        base = datetime.fromisoformat(f"{match.group('date')}T{match.group('time')}{offset}")
    except ValueError as e:
        raise TimestampParseError(value, str(e)) from e

    seconds = (base - _EPOCH) // timedelta(seconds=1)
    fraction = (match.group("fraction") or "").ljust(9, "0")
    return seconds * 1_000_000_000 + int(fraction)


def format_timestamp(moment: datetime) -> str:
    """Serialize a datetime as RFC 3339 UTC with a fixed nine-digit fraction"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond:06d}000Z"


@dataclass(frozen=True)
class ScrapeWindow:
    """Closed time interval a scrape asks time series for"""
    start: datetime
    end: datetime

    @classmethod
    def ending_at(cls, now: datetime, interval_seconds: float) -> "ScrapeWindow":
        now = now.astimezone(timezone.utc)
        return cls(start=now - timedelta(seconds=interval_seconds), end=now)

    def start_wire(self) -> str:
        return format_timestamp(self.start)

    def end_wire(self) -> str:
        return format_timestamp(self.end)


@dataclass(frozen=True)
class MetricDescriptor:
    """Metadata of a metric family"""
    type: str
    unit: str = ""
    description: str = ""
    metric_kind: str = ""
    value_type: str = ""
    display_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricDescriptor":
        return cls(
            type=data.get("type", ""),
            unit=data.get("unit", ""),
            description=data.get("description", ""),
            metric_kind=data.get("metricKind", ""),
            value_type=data.get("valueType", ""),
            display_name=data.get("displayName", ""),
        )


def _parse_double(raw: Any) -> float:
    # JSON cannot carry NaN or infinities, the API sends them as strings
    if isinstance(raw, str):
        lowered = raw.lower()
        if lowered == "nan":
            return math.nan
        if lowered in ("infinity", "+infinity"):
            return math.inf
        if lowered == "-infinity":
            return -math.inf
    return float(raw)


@dataclass(frozen=True)
class TypedValue:
    """A point value; at most one of the fields is set"""
    bool_value: Optional[bool] = None
    int64_value: Optional[int] = None
    double_value: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypedValue":
        data = data or {}
        bool_value = data.get("boolValue")
        int64_value = data.get("int64Value")
        double_value = data.get("doubleValue")
        return cls(
            bool_value=bool(bool_value) if bool_value is not None else None,
            int64_value=int(int64_value) if int64_value is not None else None,
            double_value=_parse_double(double_value) if double_value is not None else None,
        )


@dataclass(frozen=True)
class Point:
    """One timestamped value. ``end_time`` is kept as sent on the wire."""
    end_time: str
    value: TypedValue = field(default_factory=TypedValue)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Point":
        interval = data.get("interval") or {}
        return cls(
            end_time=interval.get("endTime", ""),
            value=TypedValue.from_dict(data.get("value")),
        )


@dataclass(frozen=True)
class TimeSeries:
    """A labeled stream of points for one monitored resource"""
    metric_type: str
    metric_kind: str
    value_type: str
    resource_type: str = ""
    metric_labels: Dict[str, str] = field(default_factory=dict)
    resource_labels: Dict[str, str] = field(default_factory=dict)
    points: List[Point] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSeries":
        metric = data.get("metric") or {}
        resource = data.get("resource") or {}
        return cls(
            metric_type=metric.get("type", ""),
            metric_kind=data.get("metricKind", ""),
            value_type=data.get("valueType", ""),
            resource_type=resource.get("type", ""),
            metric_labels=dict(metric.get("labels") or {}),
            resource_labels=dict(resource.get("labels") or {}),
            points=[Point.from_dict(p) for p in data.get("points") or []],
        )


@dataclass
class MetricDescriptorPage:
    descriptors: List[MetricDescriptor]
    next_page_token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricDescriptorPage":
        return cls(
            descriptors=[MetricDescriptor.from_dict(d) for d in data.get("metricDescriptors") or []],
            next_page_token=data.get("nextPageToken") or "",
        )


@dataclass
class TimeSeriesPage:
    series: List[TimeSeries]
    next_page_token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeSeriesPage":
        return cls(
            series=[TimeSeries.from_dict(s) for s in data.get("timeSeries") or []],
            next_page_token=data.get("nextPageToken") or "",
        )
