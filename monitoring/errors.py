"""Errors raised while scraping Cloud Monitoring"""


class MonitoringError(Exception):
    """Base class for scrape errors"""


class FetchError(MonitoringError):
    """A descriptor or time series page could not be fetched"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class TimestampParseError(MonitoringError):
    """A point's interval end time is not a valid RFC 3339 timestamp"""

    def __init__(self, value: str, reason: str = ""):
        message = f"Error parsing TimeSeries Point interval end time `{value}`"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.value = value


class PointValueError(MonitoringError):
    """The newest point does not carry the value its value type declares"""
